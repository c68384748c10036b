from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from dialcrm.core.database import get_db
from dialcrm.core.security import InvalidToken, read_access_token
from dialcrm.models import User
from dialcrm.services.dialpad_client import DialpadClient
from dialcrm.services.email import EmailRelay
from dialcrm.services.summarization import CallSummarizer


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    try:
        username = read_access_token(token)
    except InvalidToken as exc:
        raise _unauthorized("Invalid token") from exc
    user = db.query(User).filter(User.username == username).one_or_none()
    if user is None or not user.is_active:
        raise _unauthorized("Inactive user")
    return user


def require_role(*roles: str):
    def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"{' or '.join(roles)} role required")
        return user

    return checker


require_admin = require_role("ADMIN")


def get_dialpad_client() -> DialpadClient:
    return DialpadClient()


def get_summarizer() -> CallSummarizer:
    return CallSummarizer()


def get_email_relay() -> EmailRelay:
    return EmailRelay()
