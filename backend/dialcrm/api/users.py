from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from dialcrm.core.database import get_db
from dialcrm.core.deps import get_current_user, require_admin
from dialcrm.core.security import hash_password
from dialcrm.models import User
from dialcrm.schemas import UserCreate, UserOut
from dialcrm.services.audit import log_event

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserOut)
def get_me(user: User = Depends(get_current_user)):
    return user


@router.post("", response_model=UserOut)
def create_user(payload: UserCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    if db.query(User).filter(User.username == payload.username).first():
        raise HTTPException(status_code=400, detail="Username already exists")
    user = User(
        username=payload.username,
        email=payload.email,
        full_name=payload.full_name,
        hashed_password=hash_password(payload.password),
        role=payload.role,
    )
    db.add(user)
    db.commit()
    log_event(db, "create_user", "success", user_id=admin.id, details={"username": user.username})
    db.refresh(user)
    return user
