from sqlalchemy.orm import Session

from dialcrm.models import AuditLog


def log_event(
    db: Session,
    action: str,
    status: str,
    message: str = "",
    user_id: int | None = None,
    details: dict | None = None,
) -> None:
    db.add(
        AuditLog(
            user_id=user_id,
            action=action,
            status=status,
            message=message,
            details=details or {},
        )
    )
    db.commit()
