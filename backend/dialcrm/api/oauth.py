from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from dialcrm.core.database import get_db
from dialcrm.core.deps import get_current_user, get_dialpad_client
from dialcrm.models import DialpadToken, User
from dialcrm.schemas import AuthorizeResponse, ConnectionStatus, OAuthExchangeRequest, SuccessResponse
from dialcrm.services.audit import log_event
from dialcrm.services.dialpad_client import DialpadClient
from dialcrm.services.tokens import exchange_authorization_code, issue_oauth_state

router = APIRouter(prefix="/dialpad", tags=["dialpad-oauth"])


@router.get("/oauth/authorize", response_model=AuthorizeResponse)
def authorize(
    code_challenge: Optional[str] = Query(default=None, max_length=128),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    client: DialpadClient = Depends(get_dialpad_client),
):
    state, url = issue_oauth_state(db, user, client, code_challenge)
    return AuthorizeResponse(url=url, state=state)


@router.post("/oauth-exchange", response_model=SuccessResponse)
def oauth_exchange(
    payload: OAuthExchangeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    client: DialpadClient = Depends(get_dialpad_client),
):
    exchange_authorization_code(db, user, client, payload.code, payload.state, payload.code_verifier)
    log_event(db, "dialpad_connect", "success", user_id=user.id)
    return SuccessResponse()


@router.get("/oauth/status", response_model=ConnectionStatus)
def connection_status(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    token = db.query(DialpadToken).filter(DialpadToken.user_id == user.id).first()
    if not token:
        return ConnectionStatus(connected=False)
    return ConnectionStatus(connected=True, expires_at=token.expires_at)
