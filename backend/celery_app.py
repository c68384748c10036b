from celery import Celery

from dialcrm.core.config import settings
from dialcrm.core.logging import configure_logging

configure_logging()

celery_app = Celery(
    "dialcrm",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["dialcrm.tasks"],
)

celery_app.conf.beat_schedule = {
    "sync-dialpad-calls": {
        "task": "dialcrm.tasks.sync_dialpad_calls",
        "schedule": float(settings.sync_interval_seconds),
    },
    "drain-enrichment-outbox": {
        "task": "dialcrm.tasks.drain_enrichment_outbox",
        "schedule": float(settings.enrichment_drain_interval_seconds),
    },
}
