"""Entity schemas, one per importable entity kind."""

from __future__ import annotations

from workforce_ingest.core.constants import EntityKind
from workforce_ingest.pipeline.errors import ConfigurationError
from workforce_ingest.schemas.employee import EMPLOYEE_SCHEMA
from workforce_ingest.schemas.fields import EntitySchema, FieldSpec, MediaFieldSpec
from workforce_ingest.schemas.site import SITE_SCHEMA
from workforce_ingest.schemas.work_order import WORK_ORDER_SCHEMA

SCHEMA_REGISTRY: dict[EntityKind, EntitySchema] = {
    EntityKind.EMPLOYEE: EMPLOYEE_SCHEMA,
    EntityKind.SITE: SITE_SCHEMA,
    EntityKind.WORK_ORDER: WORK_ORDER_SCHEMA,
}


def get_schema(entity_kind: EntityKind | str) -> EntitySchema:
    try:
        return SCHEMA_REGISTRY[EntityKind(entity_kind)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"Unknown entity kind: {entity_kind}") from None


__all__ = ["EntitySchema", "FieldSpec", "MediaFieldSpec", "SCHEMA_REGISTRY", "get_schema"]
