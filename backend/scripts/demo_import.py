#!/usr/bin/env python3
"""
Demo script — run the import engine locally without Docker/Celery.

Imports sites, then work orders that reference them, then employees,
all against in-memory stores, and prints the per-step trace and per-row
outcomes of each job.

Usage:
    cd backend
    python -m scripts.demo_import
"""

import asyncio
import os
import sys
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


SITES_CSV = b"""Client Name,Site Name,Site ID,Site Address,Geolocation,District
Example Client Inc.,Main Branch,SITE-001,"123 Example St, Example City","10.1234,76.5432",Ernakulam
Example Client Inc.,Harbour Gate,SITE-002,"9 Harbour Rd, Kochi","9.9312,76.2673",Ernakulam
example client inc.,MAIN BRANCH,SITE-003,"Duplicate of row 1","10.1,76.5",Ernakulam
Example Client Inc.,No Geo,SITE-004,"Somewhere","95,76.5",Thrissur
"""

WORK_ORDERS_CSV = b"""CITY,TC CODE,CENTER,MALE,FEMALE,03-Aug-25
Ernakulam,SITE-002,Harbour Gate,4,2,
Ernakulam,SITE-999,Unknown Center,1,1,
Ernakulam,SITE-002,Harbour Gate,0,0,
"""

EMPLOYEES_CSV = b"""FirstName,LastName,PhoneNumber,ClientName,JoiningDate,Gender,IDProofType,IDProofNumber,ResourceIDNumber
Anil,Kumar,9876543210,TCS,2025-04-01,Male,Aadhar Card,1234 1234 1234,RES-1001
Meera,Nair,98765,Global Ventures,01/05/2025,Female,,,
Ravi,Menon,9123456780,Acme,45000,Male,,,
Sara,Thomas,9000000001,TCS,2025-05-10,Female,,,
"""


async def run_job(engine, services, options, entity_kind, filename, content):
    print("\n" + "=" * 70)
    print(f"  {entity_kind.upper()} IMPORT: {filename}")
    print("=" * 70)

    report = await engine.run(
        entity_kind=entity_kind,
        filename=filename,
        content=content,
        services=services,
        options=options,
    )
    _print_report(report)
    return report


def _print_report(report):
    """Pretty-print a JobReport."""
    print(f"\n{'─' * 50}")
    print(f"  Job ID       : {report.job_id[:12]}...")
    print(f"  Status       : {report.status}")
    print(f"  Message      : {report.message}")
    print(f"  Committed    : {report.records_committed}/{report.total_rows}")
    print(f"  Duration     : {report.duration_ms}ms")

    print("\n  Step Results:")
    for sr in report.step_results:
        icon = "✓" if sr["status"] == "COMPLETED" else "✗" if sr["status"] == "FAILED" else "⊘"
        print(f"    {icon} {sr['step_name']} ({sr['duration_ms']}ms)")
        for k, v in sr.get("metadata", {}).items():
            print(f"        {k}: {v}")

    print("\n  Rows:")
    for outcome in report.outcomes:
        item = outcome.to_response()
        print(f"    #{item['rowIndex']:<3} {item['status']:<9} {item['message']}")
        for warning in item.get("warnings", []):
            print(f"         ⚠  {warning}")
    print(f"{'─' * 50}\n")


async def main():
    from workforce_ingest.core.logging import setup_logging
    from workforce_ingest.pipeline.context import ImportOptions, ImportServices
    from workforce_ingest.pipeline.engine import PipelineEngine
    from workforce_ingest.storage import InMemoryBlobStore, InMemoryDocumentStore

    setup_logging("WARNING")     # quiet logs, show formatted output only

    print("\n╔" + "═" * 68 + "╗")
    print("║           WORKFORCE IMPORT — PIPELINE ENGINE DEMO                  ║")
    print("╚" + "═" * 68 + "╝")

    store = InMemoryDocumentStore()
    services = ImportServices(document_store=store, blob_store=InMemoryBlobStore())
    options = ImportOptions(retry_backoff_seconds=0, today=date(2025, 6, 1))
    engine = PipelineEngine()

    await run_job(engine, services, options, "site", "sites.csv", SITES_CSV)
    await run_job(engine, services, options, "work_order", "work_orders.csv", WORK_ORDERS_CSV)
    await run_job(engine, services, options, "employee", "employees.csv", EMPLOYEES_CSV)

    print("Stored documents:")
    for collection, docs in store.collections.items():
        print(f"  {collection}: {len(docs)}")
    print(f"Identifier counters: {store.counters}\n")


if __name__ == "__main__":
    asyncio.run(main())
