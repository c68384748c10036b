import logging
from typing import Optional, Tuple

from openai import OpenAI, OpenAIError
from sqlalchemy.orm import Session

from dialcrm.core.clock import as_utc
from dialcrm.core.config import settings
from dialcrm.core.errors import ConfigurationError, SummaryError
from dialcrm.models import Note
from dialcrm.services.calls import get_call

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a sales call analyst. Summarize call transcripts professionally, "
    "highlighting key points, decisions, next steps, and any concerns. "
    "Keep summaries concise but informative (3-5 sentences)."
)


class CallSummarizer:
    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None) -> None:
        self._client = client
        self.model = model or settings.openai_model

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not settings.openai_api_key:
                raise ConfigurationError("OPENAI_API_KEY not configured")
            self._client = OpenAI(api_key=settings.openai_api_key)
        return self._client

    def summarize(self, transcript: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": f"Summarize this sales call transcript:\n\n{transcript}"},
                ],
            )
        except OpenAIError as exc:
            logger.error("OpenAI summary request failed: %s", exc)
            raise SummaryError("Failed to generate summary", details=str(exc)) from exc
        content = response.choices[0].message.content
        if not content:
            raise SummaryError("Failed to generate summary", details="empty completion")
        return content.strip()


def summarize_call(db: Session, call_id: int, summarizer: CallSummarizer) -> Optional[Tuple[str, Note]]:
    """Summarize a call transcript into an ai_summary note.

    Returns ``None`` when the call has no transcript; nothing is written then.
    """
    call = get_call(db, call_id)
    if not (call.transcript or "").strip():
        logger.info("No transcript available for call %s", call_id)
        return None
    logger.info("Generating AI summary for call %s", call_id)
    summary = summarizer.summarize(call.transcript)
    stamp = as_utc(call.call_timestamp or call.created_at)
    heading = f"**Call Summary** ({stamp:%Y-%m-%d %H:%M} UTC)" if stamp else "**Call Summary**"
    note = Note(
        deal_id=call.related_deal_id,
        contact_id=call.related_contact_id,
        company_id=call.related_company_id,
        content=f"{heading}\n\n{summary}",
        note_type="ai_summary",
        source_call_id=call.id,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    logger.info("Summary saved as note %s", note.id)
    return summary, note
