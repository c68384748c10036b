from datetime import timedelta

from dialcrm import tasks
from dialcrm.core.clock import utcnow
from dialcrm.core.config import settings
from dialcrm.core.errors import SummaryError
from dialcrm.models import CallAnalytics, CallRecord, EnrichmentTask, Note
from dialcrm.services.enrichment import (
    ANALYZE,
    SUMMARIZE,
    claim_task,
    enqueue_enrichment,
    pending_task_ids,
    release_stale_tasks,
    run_enrichment_task,
)


def _queued_call(db, transcript="Great demo, we will send the contract on Monday."):
    record = CallRecord(direction="inbound", transcript=transcript, duration_seconds=240)
    db.add(record)
    db.flush()
    task_ids = {task.kind: task.id for task in enqueue_enrichment(db, record.id)}
    db.commit()
    return record, task_ids


def test_enqueue_creates_pending_rows(db):
    record, task_ids = _queued_call(db)
    assert set(task_ids) == {ANALYZE, SUMMARIZE}
    assert pending_task_ids(db) == sorted(task_ids.values())


def test_run_tasks_enriches_call(db, summarizer):
    record, task_ids = _queued_call(db)
    analyzed = run_enrichment_task(db, task_ids[ANALYZE])
    summarized = run_enrichment_task(db, task_ids[SUMMARIZE], summarizer=summarizer)

    assert analyzed.status == "done"
    assert summarized.status == "done"
    assert summarized.attempts == 1
    assert db.query(CallAnalytics).filter(CallAnalytics.call_id == record.id).count() == 1
    notes = db.query(Note).filter(Note.source_call_id == record.id).all()
    assert len(notes) == 2
    assert pending_task_ids(db) == []


def test_done_task_is_not_rerun(db, summarizer):
    record, task_ids = _queued_call(db)
    run_enrichment_task(db, task_ids[SUMMARIZE], summarizer=summarizer)
    run_enrichment_task(db, task_ids[SUMMARIZE], summarizer=summarizer)
    assert len(summarizer.transcripts) == 1


def test_missing_transcript_fails_without_retry(db):
    record, task_ids = _queued_call(db, transcript="")
    task = run_enrichment_task(db, task_ids[ANALYZE])
    assert task.status == "failed"
    assert task.last_error == "No transcript available for analysis"


def test_failure_is_retried_until_max_attempts(db, summarizer, monkeypatch):
    monkeypatch.setattr(settings, "enrichment_max_attempts", 2)
    summarizer.error = SummaryError("Failed to generate summary")
    record, task_ids = _queued_call(db)

    task = run_enrichment_task(db, task_ids[SUMMARIZE], summarizer=summarizer)
    assert task.status == "pending"
    assert task.attempts == 1
    assert "SummaryError" in task.last_error

    task = run_enrichment_task(db, task_ids[SUMMARIZE], summarizer=summarizer)
    assert task.status == "failed"
    assert task.attempts == 2
    assert db.query(Note).count() == 0


def test_drain_redispatches_pending_tasks(db, monkeypatch):
    record, task_ids = _queued_call(db)
    dispatched = []
    monkeypatch.setattr(tasks, "SessionLocal", lambda: db)
    monkeypatch.setattr(tasks, "dispatch_enrichment", lambda ids: dispatched.extend(ids))
    monkeypatch.setattr(db, "close", lambda: None)
    monkeypatch.setattr(settings, "enrichment_drain_interval_seconds", 0)

    assert tasks.drain_enrichment_outbox() == 2
    assert dispatched == sorted(task_ids.values())
    assert db.query(EnrichmentTask).filter(EnrichmentTask.status == "pending").count() == 2


def test_claimed_task_runs_once(db, session_factory, summarizer):
    record, task_ids = _queued_call(db)
    other_worker = session_factory()
    try:
        assert claim_task(other_worker, task_ids[SUMMARIZE]) is True
        assert claim_task(other_worker, task_ids[SUMMARIZE]) is False
    finally:
        other_worker.close()

    task = run_enrichment_task(db, task_ids[SUMMARIZE], summarizer=summarizer)
    assert task.status == "running"
    assert summarizer.transcripts == []
    assert db.query(Note).count() == 0


def test_redispatched_task_summarizes_once(db, summarizer):
    record, task_ids = _queued_call(db)
    for _ in range(2):
        run_enrichment_task(db, task_ids[SUMMARIZE], summarizer=summarizer)
    assert len(summarizer.transcripts) == 1
    assert db.query(Note).filter(Note.source_call_id == record.id).count() == 1


def test_stale_running_task_is_released(db):
    record, task_ids = _queued_call(db)
    claim_task(db, task_ids[ANALYZE])
    task = db.get(EnrichmentTask, task_ids[ANALYZE], populate_existing=True)
    task.claimed_at = utcnow() - timedelta(hours=1)
    db.commit()
    claim_task(db, task_ids[SUMMARIZE])

    assert release_stale_tasks(db, timeout_seconds=600) == 1
    db.expire_all()
    assert db.get(EnrichmentTask, task_ids[ANALYZE]).status == "pending"
    assert db.get(EnrichmentTask, task_ids[SUMMARIZE]).status == "running"
