"""Dialpad OAuth token lifecycle: state issuance, code exchange and refresh."""

import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from dialcrm.core.clock import as_utc, utcnow
from dialcrm.core.config import settings
from dialcrm.core.errors import AuthError, ExchangeError, NotConnectedError, OAuthStateError, ProviderError
from dialcrm.models import DialpadToken, OAuthState, User
from dialcrm.services.dialpad_client import DialpadClient

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 3600


def issue_oauth_state(
    db: Session, user: User, client: DialpadClient, code_challenge: Optional[str] = None
) -> tuple[str, str]:
    state = secrets.token_urlsafe(32)
    url = client.authorize_url(state, code_challenge)
    db.add(
        OAuthState(
            state=state,
            user_id=user.id,
            code_challenge=code_challenge,
            expires_at=utcnow() + timedelta(minutes=settings.oauth_state_ttl_minutes),
        )
    )
    db.commit()
    return state, url


def consume_oauth_state(db: Session, user: User, state: str) -> OAuthState:
    stored = db.query(OAuthState).filter(OAuthState.state == state).first()
    if not stored or stored.user_id != user.id:
        raise OAuthStateError("Invalid OAuth state")
    if stored.consumed_at is not None:
        raise OAuthStateError("OAuth state already used")
    if as_utc(stored.expires_at) <= utcnow():
        raise OAuthStateError("OAuth state expired")
    stored.consumed_at = utcnow()
    db.commit()
    return stored


def upsert_token(db: Session, user_id: int, payload: dict) -> DialpadToken:
    expires_at = utcnow() + timedelta(seconds=int(payload.get("expires_in") or DEFAULT_EXPIRES_IN))
    token = db.query(DialpadToken).filter(DialpadToken.user_id == user_id).first()
    if not token:
        token = DialpadToken(user_id=user_id)
        db.add(token)
    token.access_token = payload["access_token"]
    token.refresh_token = payload.get("refresh_token") or token.refresh_token
    token.token_type = payload.get("token_type") or token.token_type
    token.scope = payload.get("scope") or token.scope
    token.expires_at = expires_at
    token.updated_at = utcnow()
    db.commit()
    db.refresh(token)
    return token


def exchange_authorization_code(
    db: Session,
    user: User,
    client: DialpadClient,
    code: str,
    state: str,
    code_verifier: Optional[str] = None,
) -> DialpadToken:
    consume_oauth_state(db, user, state)
    try:
        payload = client.exchange_code(code, code_verifier)
    except ProviderError as exc:
        logger.warning("Dialpad code exchange rejected for user %s", user.id)
        raise ExchangeError("Token exchange failed", details=exc.body) from exc
    if not payload.get("access_token"):
        raise ExchangeError("Token exchange failed", details="access_token missing from response")
    return upsert_token(db, user.id, payload)


def get_valid_access_token(db: Session, user: User, client: DialpadClient) -> str:
    token = db.query(DialpadToken).filter(DialpadToken.user_id == user.id).first()
    if not token:
        raise NotConnectedError("Dialpad not connected for this user")
    if as_utc(token.expires_at) > utcnow():
        return token.access_token
    if not token.refresh_token:
        raise AuthError("Failed to refresh token", details="no refresh token stored")
    logger.info("Refreshing expired Dialpad token for user %s", user.id)
    try:
        payload = client.refresh_token(token.refresh_token)
    except ProviderError as exc:
        raise AuthError("Failed to refresh token", details=exc.body or exc.message) from exc
    if not payload.get("access_token"):
        raise AuthError("Failed to refresh token", details="access_token missing from response")
    return upsert_token(db, user.id, payload).access_token
