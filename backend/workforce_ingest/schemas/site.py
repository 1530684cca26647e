"""Site registration import schema."""

from __future__ import annotations

from typing import Any

from workforce_ingest.core.constants import EntityKind
from workforce_ingest.schemas.fields import EntitySchema, FieldSpec
from workforce_ingest.schemas.validators import as_geopoint, as_text, geolocation


def site_key(values: dict[str, Any]) -> str:
    """lower(clientName) + "_" + lower(siteName)."""
    return f"{as_text(values.get('clientName') or '').lower()}_{as_text(values.get('siteName') or '').lower()}"


SITE_SCHEMA = EntitySchema(
    kind=EntityKind.SITE,
    collection="sites",
    label="site",
    fields=(
        FieldSpec("clientName", "Client Name", required=True),
        FieldSpec("siteName", "Site Name", required=True),
        FieldSpec("siteId", "Site ID", headers=("TC Code",)),
        FieldSpec("siteAddress", "Site Address", required=True, headers=("Address",)),
        FieldSpec(
            "geolocation", "Geolocation", required=True,
            validate=geolocation, transform=as_geopoint,
            headers=("Geo Location", "Lat Long"),
        ),
        FieldSpec("district", "District", headers=("City",), default=""),
    ),
    natural_key=site_key,
    check_existing_keys=True,
    template_example={
        "Client Name": "Example Client Inc.",
        "Site Name": "Main Branch",
        "Site ID": "SITE-001",
        "Site Address": "123 Example St, Example City, EX 12345",
        "Geolocation": "10.1234,76.5432",
        "District": "Example District",
    },
)
