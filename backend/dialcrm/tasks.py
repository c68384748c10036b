import logging
from datetime import timedelta

from celery import shared_task
from sqlalchemy.orm import Session

from dialcrm.core.clock import utcnow
from dialcrm.core.config import settings
from dialcrm.core.database import SessionLocal
from dialcrm.services.dialpad_client import DialpadClient
from dialcrm.services.enrichment import (
    dispatch_enrichment,
    pending_task_ids,
    release_stale_tasks,
    run_enrichment_task,
)
from dialcrm.services.sync import sync_calls

logger = logging.getLogger(__name__)


@shared_task(
    name="dialcrm.tasks.sync_dialpad_calls",
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 5},
)
def sync_dialpad_calls(self, limit: int = 100):
    db: Session = SessionLocal()
    try:
        result = sync_calls(db, DialpadClient(), limit=limit)
        return {"synced": result["synced"], "total": result["total"]}
    finally:
        db.close()


@shared_task(name="dialcrm.tasks.run_enrichment")
def run_enrichment(task_id: int):
    db: Session = SessionLocal()
    try:
        task = run_enrichment_task(db, task_id)
        return task.status if task else None
    finally:
        db.close()


@shared_task(name="dialcrm.tasks.drain_enrichment_outbox")
def drain_enrichment_outbox(limit: int = 100):
    # Rows younger than one drain interval are still in flight from their webhook.
    cutoff = utcnow() - timedelta(seconds=settings.enrichment_drain_interval_seconds)
    db: Session = SessionLocal()
    try:
        release_stale_tasks(db)
        task_ids = pending_task_ids(db, limit=limit, created_before=cutoff)
    finally:
        db.close()
    if task_ids:
        logger.info("Re-dispatching %s pending enrichment tasks", len(task_ids))
        dispatch_enrichment(task_ids)
    return len(task_ids)
