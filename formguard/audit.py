from sqlalchemy.orm import Session

from formguard.models import AuditLog


def log_event(
    db: Session,
    event_type: str,
    ip_address: str | None = None,
    details: str | None = None,
) -> None:
    db.add(
        AuditLog(
            event_type=event_type,
            ip_address=ip_address,
            details=details,
        )
    )
    db.commit()
