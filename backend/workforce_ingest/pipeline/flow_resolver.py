"""
FlowResolver — maps an entity kind to its ordered step sequence.

Every flow shares the same skeleton:

    detect format → parse → validate → [kind-specific] →
    duplicates → derive → media → commit

To add a new entity kind:
    1. Add its EntitySchema under workforce_ingest.schemas
    2. Register a flow builder in FLOW_REGISTRY below
"""

from __future__ import annotations

from typing import Callable

from workforce_ingest.core.constants import EntityKind
from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.errors import ConfigurationError
from workforce_ingest.pipeline.step import PipelineStep

# ─── Import all steps ─────────────────────────────────
from workforce_ingest.pipeline.steps.commit_records import CommitRecordsStep
from workforce_ingest.pipeline.steps.derive_fields import DeriveFieldsStep
from workforce_ingest.pipeline.steps.detect_duplicates import DetectDuplicatesStep
from workforce_ingest.pipeline.steps.detect_format import DetectFormatStep
from workforce_ingest.pipeline.steps.parse_rows import ParseRowsStep
from workforce_ingest.pipeline.steps.process_media import ProcessMediaStep
from workforce_ingest.pipeline.steps.resolve_sites import ResolveSitesStep
from workforce_ingest.pipeline.steps.resolve_work_date import ResolveWorkDateStep
from workforce_ingest.pipeline.steps.validate_schema import ValidateSchemaStep

logger = get_logger(__name__)


def _common_pre_steps() -> list[PipelineStep]:
    """Steps that run for EVERY entity kind before validation."""
    return [
        DetectFormatStep(),
        ParseRowsStep(),
    ]


def _common_post_steps() -> list[PipelineStep]:
    """Steps that run for EVERY entity kind after validation."""
    return [
        DetectDuplicatesStep(),
        DeriveFieldsStep(),
        ProcessMediaStep(),
        CommitRecordsStep(),
    ]


def _default_flow() -> list[PipelineStep]:
    """Employees and sites: the rows carry everything they need."""
    return [
        *_common_pre_steps(),
        ValidateSchemaStep(),
        *_common_post_steps(),
    ]


def _work_order_flow() -> list[PipelineStep]:
    """
    Work orders: the work date comes from the header row and every line
    must reference a registered site.
    """
    return [
        *_common_pre_steps(),
        ResolveWorkDateStep(),
        ValidateSchemaStep(),
        ResolveSitesStep(),
        *_common_post_steps(),
    ]


# ═══════════════════════════════════════════════════════════
#  Flow Registry
# ═══════════════════════════════════════════════════════════

FLOW_REGISTRY: dict[EntityKind, Callable[[], list[PipelineStep]]] = {
    EntityKind.EMPLOYEE: _default_flow,
    EntityKind.SITE: _default_flow,
    EntityKind.WORK_ORDER: _work_order_flow,
}


class FlowResolver:
    """Resolves an entity kind to a fresh list of pipeline steps."""

    def __init__(self, registry: dict[EntityKind, Callable[[], list[PipelineStep]]] | None = None) -> None:
        self.registry = registry or FLOW_REGISTRY

    def resolve(self, entity_kind: EntityKind | str) -> list[PipelineStep]:
        """
        Return the ordered step list for the given entity kind.

        Raises:
            ConfigurationError: no flow is registered for the kind.
        """
        try:
            builder = self.registry[EntityKind(entity_kind)]
        except (KeyError, ValueError):
            raise ConfigurationError(
                f"No import flow registered for '{entity_kind}'",
                step_name="flow_resolution",
            ) from None

        steps = builder()
        logger.debug("Flow resolved", entity_kind=str(entity_kind), steps=[s.name for s in steps])
        return steps

    def list_available_flows(self) -> list[str]:
        """Return all registered entity kinds."""
        return [str(kind) for kind in self.registry]
