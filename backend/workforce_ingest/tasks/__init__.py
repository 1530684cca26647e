"""
Celery application factory.
"""

from celery import Celery

celery_app = Celery("workforce_ingest")
celery_app.config_from_object("celeryconfig")

# Auto-discover tasks in these modules
celery_app.autodiscover_tasks([
    "workforce_ingest.tasks.import_tasks",
])
