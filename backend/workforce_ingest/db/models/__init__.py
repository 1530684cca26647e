"""
Models package — re-exports Base and all models.

Import models here so `Base.metadata.create_all` picks up every table.

When adding a new model:
    1. Create `workforce_ingest/db/models/<table_name>.py`
    2. Import it here
"""

from workforce_ingest.db.models.base import Base
from workforce_ingest.db.models.import_job import ImportJob
from workforce_ingest.db.models.stored_document import StoreCounter, StoredDocument

__all__ = [
    "Base",
    "ImportJob",
    "StoreCounter",
    "StoredDocument",
]
