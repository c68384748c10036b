from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    username: str = Field(min_length=3, max_length=150)
    password: str = Field(min_length=5, max_length=128)


class UserOut(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str
    is_active: bool

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=150)
    password: str = Field(min_length=8, max_length=128)
    role: str = Field(default="REP", pattern="^(ADMIN|REP)$")
    email: Optional[str] = None
    full_name: Optional[str] = None


class AuthorizeResponse(BaseModel):
    url: str
    state: str


class OAuthExchangeRequest(BaseModel):
    code: str = Field(min_length=1)
    state: str = Field(min_length=1)
    code_verifier: Optional[str] = None


class ConnectionStatus(BaseModel):
    connected: bool
    expires_at: Optional[datetime] = None


class SuccessResponse(BaseModel):
    success: bool = True


class MakeCallRequest(BaseModel):
    to_number: str = Field(min_length=1)
    from_number: Optional[str] = None
    contact_id: Optional[str] = None
    deal_id: Optional[str] = None


class MakeCallResponse(BaseModel):
    success: bool = True
    call: dict[str, Any]


class SyncRequest(BaseModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    limit: int = Field(default=100, ge=1, le=1000)


class SyncedCall(BaseModel):
    id: int
    dialpad_call_id: Optional[str]
    direction: str
    duration_seconds: Optional[int]
    status: Optional[str]
    action: str


class SyncResponse(BaseModel):
    success: bool = True
    synced: int
    total: int
    calls: List[SyncedCall]


class WebhookResponse(BaseModel):
    success: bool = True
    webhook_id: int


class CallIdRequest(BaseModel):
    call_id: int


class CallAnalyticsOut(BaseModel):
    id: int
    call_id: int
    sentiment_score: Optional[float]
    sentiment_label: Optional[str]
    key_topics: List[str] = []
    action_items: List[str] = []
    call_quality_score: Optional[int]
    talk_time_ratio: Optional[float]

    class Config:
        from_attributes = True


class AnalyzeResponse(BaseModel):
    success: bool = True
    analytics: CallAnalyticsOut


class SendSmsRequest(BaseModel):
    to_number: str = Field(min_length=1)
    message: str = Field(min_length=1, max_length=1600)
    contact_id: Optional[str] = None
    deal_id: Optional[str] = None
    company_id: Optional[str] = None


class SendSmsResponse(BaseModel):
    success: bool = True
    message_id: Optional[str]
    sms: dict[str, Any]


class CallRecordOut(BaseModel):
    id: int
    dialpad_call_id: Optional[str]
    direction: str
    duration_seconds: Optional[int]
    caller_number: Optional[str]
    callee_number: Optional[str]
    status: Optional[str]
    outcome: Optional[str]
    outbound_type: Optional[str]
    recording_url: Optional[str]
    transcript: Optional[str]
    related_contact_id: Optional[str]
    related_deal_id: Optional[str]
    related_company_id: Optional[str]
    call_timestamp: Optional[datetime]
    notes: Optional[str]

    class Config:
        from_attributes = True


class CallLogCreate(BaseModel):
    direction: str = Field(default="outbound", pattern="^(inbound|outbound)$")
    duration_seconds: int = Field(default=0, ge=0)
    caller_number: Optional[str] = None
    callee_number: Optional[str] = None
    status: str = "completed"
    outcome: Optional[str] = None
    outbound_type: Optional[str] = None
    transcript: Optional[str] = None
    related_contact_id: Optional[str] = None
    related_deal_id: Optional[str] = None
    related_company_id: Optional[str] = None
    call_timestamp: Optional[datetime] = None
    notes: Optional[str] = None


class PaginatedCalls(BaseModel):
    items: List[CallRecordOut]
    total: int
    page: int
    page_size: int


class NoteOut(BaseModel):
    id: int
    deal_id: Optional[str]
    contact_id: Optional[str]
    company_id: Optional[str]
    content: str
    note_type: str
    source_call_id: Optional[int]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class DashboardSummary(BaseModel):
    total_calls: int
    inbound_calls: int
    outbound_calls: int
    answered_calls: int
    total_duration_seconds: int
    average_sentiment: Optional[float]


class EodReportCreate(BaseModel):
    report_date: date
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    summary: Optional[str] = None


class EodReportOut(EodReportCreate):
    id: int
    user_id: int
    notified_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EodNotifyRequest(BaseModel):
    eod_id: int
    user_email: Optional[str] = None
    user_name: Optional[str] = None
