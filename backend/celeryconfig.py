"""
Celery configuration for the import workers.

Loaded by `celery_app.config_from_object("celeryconfig")` in
workforce_ingest/tasks/__init__.py.  Broker/result-backend URLs come
from environment variables, defaulting to localhost for local dev.
"""

import os

# ═══════════════════════════════════════════════════════════
#  Broker & Result Backend
# ═══════════════════════════════════════════════════════════

broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")

# ═══════════════════════════════════════════════════════════
#  Serialization: JSON only
# ═══════════════════════════════════════════════════════════

task_serializer = "json"
result_serializer = "json"
accept_content = ["json"]

# ═══════════════════════════════════════════════════════════
#  Timezone
# ═══════════════════════════════════════════════════════════

timezone = "UTC"
enable_utc = True

# ═══════════════════════════════════════════════════════════
#  Task Execution
# ═══════════════════════════════════════════════════════════

# Imports are not idempotent across retries of a half-committed job:
# acknowledge on receipt so a crashed worker does not re-run committed chunks.
task_acks_late = False

# One import at a time per worker process
worker_prefetch_multiplier = 1

# Hosting deadline of one import job
task_soft_time_limit = 530    # raises SoftTimeLimitExceeded
task_time_limit = 540         # 9 min: hard kill

# ═══════════════════════════════════════════════════════════
#  Result Expiry: auto-clean after 24h
# ═══════════════════════════════════════════════════════════

result_expires = 86400

# ═══════════════════════════════════════════════════════════
#  Worker Settings
# ═══════════════════════════════════════════════════════════

# Restart worker after N tasks (image decoding grows the heap)
worker_max_tasks_per_child = 50

worker_send_task_events = False
task_send_sent_event = False

# ═══════════════════════════════════════════════════════════
#  Task Routes
# ═══════════════════════════════════════════════════════════
# Run a dedicated worker for imports:
#   celery -A workforce_ingest.tasks worker -Q imports

task_routes = {
    "workforce_ingest.tasks.import_tasks.*": {"queue": "imports"},
}

task_default_queue = "default"
