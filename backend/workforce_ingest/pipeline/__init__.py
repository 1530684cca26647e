"""
Import pipeline — step-based orchestration of tabular bulk imports.

    parse -> validate/normalize -> detect duplicates -> derive fields ->
    process media -> commit in bounded batches -> report

Entry point: workforce_ingest.pipeline.engine.PipelineEngine.
"""
