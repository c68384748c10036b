"""Outbox of analysis/summarization work queued by webhook deliveries.

Rows are written in the same transaction as the call upsert and executed by
Celery workers. A worker claims a row by moving it from ``pending`` to
``running`` in one UPDATE, so a row dispatched twice still runs once. Failed
rows go back to ``pending`` until they run out of attempts; rows stuck in
``running`` past the claim timeout are released by the beat drain.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from dialcrm.core.clock import utcnow
from dialcrm.core.config import settings
from dialcrm.core.errors import NoTranscriptError
from dialcrm.models import EnrichmentTask
from dialcrm.services.analysis import analyze_call
from dialcrm.services.summarization import CallSummarizer, summarize_call

logger = logging.getLogger(__name__)

ANALYZE = "analyze"
SUMMARIZE = "summarize"
KINDS = (ANALYZE, SUMMARIZE)

PENDING = "pending"
RUNNING = "running"
DONE = "done"
FAILED = "failed"


def enqueue_enrichment(db: Session, call_id: int) -> List[EnrichmentTask]:
    tasks = [EnrichmentTask(call_id=call_id, kind=kind, status=PENDING) for kind in KINDS]
    db.add_all(tasks)
    db.flush()
    return tasks


def dispatch_enrichment(task_ids: Iterable[int]) -> None:
    from dialcrm.tasks import run_enrichment

    for task_id in task_ids:
        try:
            run_enrichment.delay(task_id)
        except Exception:
            logger.exception("Failed to dispatch enrichment task %s", task_id)


def pending_task_ids(db: Session, limit: int = 100, created_before: Optional[datetime] = None) -> List[int]:
    query = db.query(EnrichmentTask.id).filter(EnrichmentTask.status == PENDING)
    if created_before is not None:
        query = query.filter(EnrichmentTask.created_at <= created_before)
    rows = query.order_by(EnrichmentTask.id).limit(limit).all()
    return [row.id for row in rows]


def claim_task(db: Session, task_id: int) -> bool:
    result = db.execute(
        update(EnrichmentTask)
        .where(EnrichmentTask.id == task_id, EnrichmentTask.status == PENDING)
        .values(status=RUNNING, claimed_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def release_stale_tasks(db: Session, timeout_seconds: Optional[int] = None) -> int:
    """Put ``running`` rows whose worker vanished back to ``pending``."""
    timeout = timeout_seconds if timeout_seconds is not None else settings.enrichment_claim_timeout_seconds
    result = db.execute(
        update(EnrichmentTask)
        .where(
            EnrichmentTask.status == RUNNING,
            EnrichmentTask.claimed_at <= utcnow() - timedelta(seconds=timeout),
        )
        .values(status=PENDING, claimed_at=None)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    if result.rowcount:
        logger.warning("Released %s stale enrichment tasks", result.rowcount)
    return result.rowcount


def run_enrichment_task(
    db: Session, task_id: int, summarizer: Optional[CallSummarizer] = None
) -> Optional[EnrichmentTask]:
    if not claim_task(db, task_id):
        logger.info("Enrichment task %s already claimed or finished", task_id)
        return db.get(EnrichmentTask, task_id, populate_existing=True)
    task = db.get(EnrichmentTask, task_id, populate_existing=True)
    call_id, kind = task.call_id, task.kind
    try:
        if kind == ANALYZE:
            analyze_call(db, call_id)
        elif kind == SUMMARIZE:
            summarize_call(db, call_id, summarizer or CallSummarizer())
        else:
            raise ValueError(f"Unknown enrichment kind: {kind}")
    except NoTranscriptError as exc:
        db.rollback()
        return _finish(db, task_id, FAILED, exc.message)
    except Exception as exc:
        db.rollback()
        logger.exception("Enrichment task %s (%s) failed for call %s", task_id, kind, call_id)
        return _record_failure(db, task_id, f"{type(exc).__name__}: {exc}")
    return _finish(db, task_id, DONE)


def _finish(db: Session, task_id: int, status: str, error: Optional[str] = None) -> EnrichmentTask:
    task = db.get(EnrichmentTask, task_id)
    task.status = status
    task.attempts += 1
    task.last_error = error
    task.processed_at = utcnow()
    db.commit()
    return task


def _record_failure(db: Session, task_id: int, error: str) -> EnrichmentTask:
    task = db.get(EnrichmentTask, task_id)
    task.attempts += 1
    task.last_error = error
    task.claimed_at = None
    if task.attempts >= settings.enrichment_max_attempts:
        task.status = FAILED
        task.processed_at = utcnow()
    else:
        task.status = PENDING
    db.commit()
    return task
