"""
PipelineEngine — the orchestrator that runs import steps sequentially.

Responsibilities:
    - Resolve the entity schema and the step sequence via FlowResolver
    - Execute each step with timing, logging, and error handling
    - Retry retryable steps with exponential backoff
    - Stop at the first job- or chunk-level error
    - Return a JobReport built from whatever the context holds
"""

from __future__ import annotations

import asyncio
import traceback
from datetime import datetime, timezone

import structlog

from workforce_ingest.core.constants import EntityKind, StepStatus
from workforce_ingest.core.logging import get_logger
from workforce_ingest.pipeline.context import ImportContext, ImportOptions, ImportServices, StepResult
from workforce_ingest.pipeline.errors import PipelineError, StepExecutionError
from workforce_ingest.pipeline.flow_resolver import FlowResolver
from workforce_ingest.pipeline.report import JobReport, build_report
from workforce_ingest.pipeline.step import PipelineStep
from workforce_ingest.schemas import get_schema


class PipelineEngine:
    """
    Runs a sequence of PipelineStep objects against an ImportContext.

    Usage::

        engine = PipelineEngine()
        report = await engine.run(
            entity_kind=EntityKind.SITE,
            filename="sites.xlsx",
            content=upload_bytes,
            services=ImportServices(document_store, blob_store),
        )
        return report.to_response()
    """

    def __init__(self, flow_resolver: FlowResolver | None = None) -> None:
        self.flow_resolver = flow_resolver or FlowResolver()
        self.logger = get_logger("pipeline.engine")

    async def run(
        self,
        *,
        entity_kind: EntityKind | str,
        filename: str,
        content: bytes,
        services: ImportServices,
        options: ImportOptions | None = None,
        format_hint: str | None = None,
        job_id: str | None = None,
    ) -> JobReport:
        """
        Full import of one uploaded file.

        Raises:
            ConfigurationError: unknown entity kind (nothing was read).
        """
        schema = get_schema(entity_kind)
        kind = schema.kind
        ctx = ImportContext(
            entity_kind=kind,
            schema=schema,
            filename=filename,
            content=content,
            services=services,
            options=options or ImportOptions.from_settings(),
            format_hint=format_hint,
        )
        if job_id:
            ctx.job_id = job_id

        steps = self.flow_resolver.resolve(kind)
        report = await self.run_steps(ctx, steps)

        self.logger.info(
            "Import finished",
            job_id=ctx.job_id,
            entity_kind=str(kind),
            status=str(report.status),
            total_rows=report.total_rows,
            records_committed=report.records_committed,
            duration_ms=report.duration_ms,
        )
        return report

    async def run_steps(
        self,
        ctx: ImportContext,
        steps: list[PipelineStep],
    ) -> JobReport:
        """
        Execute an ordered list of steps against a context.

        Can be called directly (bypassing flow resolution) for testing
        or when you have a pre-built step list.
        """
        started_at = datetime.now(timezone.utc)

        log = self.logger.bind(
            job_id=ctx.job_id,
            entity_kind=str(ctx.entity_kind),
            total_steps=len(steps),
        )
        log.info("Import started", filename=ctx.filename, size_bytes=len(ctx.content))

        for index, step in enumerate(steps):
            step_number = index + 1
            step_log = log.bind(
                step_name=step.name,
                step_index=step_number,
            )

            # ── Check skip condition ──────────────────
            try:
                if await step.should_skip(ctx):
                    step_log.info("Step skipped")
                    now = datetime.now(timezone.utc)
                    ctx.step_results.append(StepResult(
                        step_name=step.name,
                        status=StepStatus.SKIPPED,
                        started_at=now,
                        completed_at=now,
                    ))
                    continue
            except Exception as exc:
                step_log.warning("should_skip raised, running step anyway", error=str(exc))

            # ── Execute step (with retry) ─────────────
            step_log.info(f"Step {step_number}/{len(steps)}: {step.description}")

            result = await self._execute_with_retry(step, ctx, step_log)
            ctx.step_results.append(result)

            if result.status == StepStatus.COMPLETED:
                step_log.info(
                    "Step completed",
                    duration_ms=result.duration_ms,
                    metadata=result.metadata,
                )
                continue

            step_log.error(
                "Step failed, import stopping",
                error=result.error,
                records_committed=ctx.records_committed,
            )
            ctx.add_error(f"Step '{step.name}' failed: {result.error}")
            break

        return build_report(ctx, started_at=started_at, completed_at=datetime.now(timezone.utc))

    async def _execute_with_retry(
        self,
        step: PipelineStep,
        ctx: ImportContext,
        log: structlog.stdlib.BoundLogger,
    ) -> StepResult:
        """
        Execute a step.  Retryable steps are retried on StepExecutionError
        up to max_retries attempts; any other error fails the step at once.
        """
        max_attempts = step.max_retries if step.retryable else 1

        for attempt in range(1, max_attempts + 1):
            started_at = datetime.now(timezone.utc)
            try:
                return await step.execute(ctx)

            except StepExecutionError as exc:
                if step.retryable and attempt < max_attempts:
                    wait_seconds = ctx.options.retry_backoff_seconds * 2 ** (attempt - 1)
                    log.warning(
                        f"Step failed (attempt {attempt}/{max_attempts}), retrying in {wait_seconds}s",
                        error=str(exc),
                    )
                    await asyncio.sleep(wait_seconds)
                    continue

                ctx.failure = exc
                return step._failure(started_at, str(exc), metadata={"attempts": attempt})

            except PipelineError as exc:
                ctx.failure = exc
                return step._failure(started_at, str(exc), metadata={
                    "error_type": type(exc).__name__,
                    **exc.details,
                })

            except Exception as exc:
                # Unexpected error: never retry
                log.exception("Unexpected error in step", error=str(exc))
                ctx.failure = exc
                return step._failure(
                    started_at,
                    f"Unexpected: {exc}",
                    metadata={"traceback": traceback.format_exc()},
                )

        ctx.failure = StepExecutionError("Retry loop exited unexpectedly", job_id=ctx.job_id, step_name=step.name)
        return step._failure(datetime.now(timezone.utc), str(ctx.failure))
