"""Keyword heuristics that score a call transcript.

All matching is substring counting on the lower-cased transcript, so "no"
also matches inside "know".
"""

import logging
import math
import re
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from dialcrm.core.clock import utcnow
from dialcrm.core.errors import NoTranscriptError
from dialcrm.models import CallAnalytics, CallRecord, Note
from dialcrm.services.calls import dialect_insert, get_call

logger = logging.getLogger(__name__)

POSITIVE_WORDS = ["great", "excellent", "perfect", "love", "interested", "definitely", "yes", "awesome"]
NEGATIVE_WORDS = ["no", "not", "issue", "problem", "disappointed", "cancel", "difficult"]
ACTION_PHRASES = ["will", "should", "need to", "going to", "plan to"]
TOPICS = ["pricing", "timeline", "features", "integration", "support", "contract"]

KEYWORD_WEIGHT = 0.1
LABEL_THRESHOLD = 0.2
MAX_ACTION_ITEMS = 5
MIN_ACTION_LENGTH = 10
FULL_DURATION_SECONDS = 600
DEFAULT_TALK_TIME_RATIO = 0.5


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def sentiment_score(transcript: str) -> float:
    text = transcript.lower()
    positive = sum(text.count(word) for word in POSITIVE_WORDS)
    negative = sum(text.count(word) for word in NEGATIVE_WORDS)
    score = (positive - negative) * KEYWORD_WEIGHT
    return max(-1.0, min(1.0, score))


def sentiment_label(score: float) -> str:
    if score > LABEL_THRESHOLD:
        return "positive"
    if score < -LABEL_THRESHOLD:
        return "negative"
    return "neutral"


def action_items(transcript: str) -> List[str]:
    items = []
    for sentence in re.split(r"[.!?]+", transcript):
        lowered = sentence.lower()
        if not any(phrase in lowered for phrase in ACTION_PHRASES):
            continue
        cleaned = sentence.strip()
        if len(cleaned) > MIN_ACTION_LENGTH:
            items.append(cleaned)
    return items[:MAX_ACTION_ITEMS]


def key_topics(transcript: str) -> List[str]:
    text = transcript.lower()
    return [topic for topic in TOPICS if topic in text]


def quality_score(duration_seconds: int | None, score: float) -> int:
    duration_points = min((duration_seconds or 0) / FULL_DURATION_SECONDS * 50, 50)
    sentiment_points = (score + 1) * 25
    return _round_half_up(duration_points + sentiment_points)


def compute_metrics(transcript: str, duration_seconds: int | None) -> Dict[str, Any]:
    score = sentiment_score(transcript)
    return {
        "sentiment_score": round(score, 2),
        "sentiment_label": sentiment_label(score),
        "key_topics": key_topics(transcript),
        "action_items": action_items(transcript),
        "call_quality_score": quality_score(duration_seconds, score),
        "talk_time_ratio": DEFAULT_TALK_TIME_RATIO,
    }


def summary_note_content(metrics: Dict[str, Any]) -> str:
    lines = [
        f"Sentiment: {metrics['sentiment_label']} ({metrics['sentiment_score'] * 100:.0f}%)",
        f"Topics: {', '.join(metrics['key_topics'])}" if metrics["key_topics"] else "",
        f"Actions: {' | '.join(metrics['action_items'])}" if metrics["action_items"] else "",
        f"Quality: {metrics['call_quality_score']}/100",
    ]
    return "AI Call Summary\n" + "\n".join(line for line in lines if line)


def _upsert_analytics(db: Session, call_id: int, metrics: Dict[str, Any]) -> CallAnalytics:
    now = utcnow()
    stmt = dialect_insert(db)(CallAnalytics).values(call_id=call_id, updated_at=now, **metrics)
    changes = {key: stmt.excluded[key] for key in metrics}
    changes["updated_at"] = now
    stmt = stmt.on_conflict_do_update(index_elements=[CallAnalytics.call_id], set_=changes).returning(
        CallAnalytics.id
    )
    analytics_id = db.execute(stmt).scalar_one()
    return db.get(CallAnalytics, analytics_id, populate_existing=True)


def _create_summary_note(db: Session, call: CallRecord, metrics: Dict[str, Any]) -> None:
    call_id = call.id
    try:
        db.add(
            Note(
                deal_id=call.related_deal_id,
                contact_id=call.related_contact_id,
                company_id=call.related_company_id,
                content=summary_note_content(metrics),
                note_type="ai_summary",
                source_call_id=call_id,
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("AI note creation failed for call %s", call_id)


def analyze_call(db: Session, call_id: int) -> CallAnalytics:
    call = get_call(db, call_id)
    if not (call.transcript or "").strip():
        raise NoTranscriptError("No transcript available for analysis", details={"call_id": call_id})
    logger.info("Analyzing call %s", call_id)
    metrics = compute_metrics(call.transcript, call.duration_seconds)
    analytics = _upsert_analytics(db, call.id, metrics)
    db.commit()
    _create_summary_note(db, call, metrics)
    db.refresh(analytics)
    return analytics
