from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dialcrm.core.database import get_db
from dialcrm.core.deps import get_current_user, get_summarizer
from dialcrm.models import User
from dialcrm.schemas import AnalyzeResponse, CallAnalyticsOut, CallIdRequest
from dialcrm.services.analysis import analyze_call
from dialcrm.services.summarization import CallSummarizer, summarize_call

router = APIRouter(prefix="/dialpad", tags=["call-intelligence"])


@router.post("/analyze-call", response_model=AnalyzeResponse)
def analyze(payload: CallIdRequest, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    analytics = analyze_call(db, payload.call_id)
    return AnalyzeResponse(analytics=CallAnalyticsOut.model_validate(analytics))


@router.post("/summarize-call")
def summarize(
    payload: CallIdRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    summarizer: CallSummarizer = Depends(get_summarizer),
) -> dict:
    result = summarize_call(db, payload.call_id, summarizer)
    if result is None:
        return {"message": "No transcript available"}
    summary, note = result
    return {"success": True, "summary": summary, "note_id": note.id}
