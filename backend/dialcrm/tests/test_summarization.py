from types import SimpleNamespace

import pytest
from openai import OpenAIError

from dialcrm.core.config import settings
from dialcrm.core.errors import ConfigurationError, SummaryError
from dialcrm.models import CallRecord, Note
from dialcrm.services.summarization import SYSTEM_PROMPT, CallSummarizer


def _call(db, transcript):
    record = CallRecord(direction="inbound", transcript=transcript, related_deal_id="deal-3", related_company_id="co-1")
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _openai(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_summarize_call_creates_note(client, rep_headers, summarizer, db):
    record = _call(db, "Customer wants pricing details next week.")
    response = client.post("/dialpad/summarize-call", json={"call_id": record.id}, headers=rep_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["summary"] == summarizer.summary
    assert summarizer.transcripts == ["Customer wants pricing details next week."]

    note = db.get(Note, data["note_id"])
    assert note.note_type == "ai_summary"
    assert note.deal_id == "deal-3"
    assert note.company_id == "co-1"
    assert note.content.startswith("**Call Summary** (")
    assert note.content.endswith(summarizer.summary)


def test_summarize_without_transcript(client, rep_headers, summarizer, db):
    record = _call(db, None)
    response = client.post("/dialpad/summarize-call", json={"call_id": record.id}, headers=rep_headers)
    assert response.status_code == 200
    assert response.json() == {"message": "No transcript available"}
    assert summarizer.transcripts == []
    assert db.query(Note).count() == 0


def test_summarize_missing_call(client, rep_headers):
    response = client.post("/dialpad/summarize-call", json={"call_id": 424242}, headers=rep_headers)
    assert response.status_code == 404


def test_summarize_provider_failure(client, rep_headers, summarizer, db):
    summarizer.error = SummaryError("Failed to generate summary", details="rate limited")
    record = _call(db, "Short call.")
    response = client.post("/dialpad/summarize-call", json={"call_id": record.id}, headers=rep_headers)
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate summary", "details": "rate limited"}
    assert db.query(Note).count() == 0


def test_summarizer_sends_prompt():
    completions = FakeCompletions(content="  Deal is progressing.  ")
    summarizer = CallSummarizer(client=_openai(completions), model="test-model")
    assert summarizer.summarize("hello") == "Deal is progressing."
    request = completions.requests[0]
    assert request["model"] == "test-model"
    assert request["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert request["messages"][1]["content"].endswith("hello")


def test_summarizer_wraps_openai_errors():
    summarizer = CallSummarizer(client=_openai(FakeCompletions(error=OpenAIError("boom"))))
    with pytest.raises(SummaryError):
        summarizer.summarize("hello")


def test_summarizer_requires_api_key(monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", None)
    with pytest.raises(ConfigurationError):
        CallSummarizer().summarize("hello")
