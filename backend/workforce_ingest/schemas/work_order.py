"""Work-order (daily manpower requirement) import schema."""

from __future__ import annotations

from typing import Any

from workforce_ingest.core.constants import EntityKind
from workforce_ingest.schemas.fields import EntitySchema, FieldSpec
from workforce_ingest.schemas.validators import as_int, as_text, non_negative_int


def _total_manpower_check(values: dict[str, Any]) -> list[str]:
    male, female = values.get("maleGuardsRequired"), values.get("femaleGuardsRequired")
    if non_negative_int(male) or non_negative_int(female):
        return []
    if as_int(male) + as_int(female) == 0:
        return ["Total manpower must be greater than zero."]
    return []


def work_order_key(values: dict[str, Any]) -> str:
    """Site code, once resolved kept in siteCode."""
    return as_text(values.get("siteCode") or values.get("siteId") or "").lower()


WORK_ORDER_SCHEMA = EntitySchema(
    kind=EntityKind.WORK_ORDER,
    collection="workOrders",
    label="work order",
    fields=(
        FieldSpec("district", "CITY"),
        FieldSpec("siteId", "TC CODE", required=True),
        FieldSpec("siteName", "CENTER"),
        FieldSpec(
            "maleGuardsRequired", "MALE", required=True,
            validate=non_negative_int, transform=as_int,
        ),
        FieldSpec(
            "femaleGuardsRequired", "FEMALE", required=True,
            validate=non_negative_int, transform=as_int,
        ),
    ),
    row_checks=(_total_manpower_check,),
    natural_key=work_order_key,
    check_existing_keys=False,
    extra_template_headers=("03-Aug-25",),
    template_example={
        "CITY": "Ernakulam",
        "TC CODE": "SITE-001",
        "CENTER": "Main Branch",
        "MALE": "4",
        "FEMALE": "2",
    },
)
