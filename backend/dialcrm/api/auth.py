from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from dialcrm.core.database import get_db
from dialcrm.core.security import create_access_token, verify_password
from dialcrm.models import User
from dialcrm.schemas import LoginRequest, TokenResponse
from dialcrm.services.audit import log_event
from dialcrm.services.rate_limit import RateLimiter

router = APIRouter(prefix="/auth", tags=["auth"])
rate_limiter = RateLimiter()


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)):
    client_key = request.client.host if request.client else payload.username
    if not rate_limiter.hit(client_key):
        log_event(db, "login", "blocked", "rate limited")
        raise HTTPException(status_code=429, detail="Too many attempts")
    user = db.query(User).filter(User.username == payload.username).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        log_event(db, "login", "failed", "invalid credentials", user_id=user.id if user else None)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User inactive")
    log_event(db, "login", "success", user_id=user.id)
    rate_limiter.reset(client_key)
    return TokenResponse(access_token=create_access_token(user.username))
