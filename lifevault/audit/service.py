from uuid import UUID
from sqlmodel import Session, func, select
from ..models.Audit import AuditLog, GENESIS_HASH
from typing import Optional

def log_event(db: Session, actor_id: Optional[UUID], action: str, details: Optional[str] = None) -> AuditLog:
    """
    Appends a new event to the AuditLog chain.
    """
    last_entry = db.exec(select(AuditLog).order_by(AuditLog.id.desc())).first()

    previous_hash = last_entry.current_hash if last_entry else GENESIS_HASH

    new_log = AuditLog(
        actor_id=actor_id,
        action=action,
        details=details or "",
        previous_hash=previous_hash,
        current_hash="",  # calculated below, needs the timestamp
    )
    new_log.current_hash = new_log.calculate_hash()

    db.add(new_log)
    db.commit()
    db.refresh(new_log)

    return new_log

def verify_chain(db: Session) -> bool:
    """
    Recomputes every hash in order; False if any entry was altered or removed.
    """
    previous_hash = GENESIS_HASH
    for entry in db.exec(select(AuditLog).order_by(AuditLog.id.asc())):
        if entry.previous_hash != previous_hash or entry.calculate_hash() != entry.current_hash:
            return False
        previous_hash = entry.current_hash
    return True

def list_events(db: Session, page: int, limit: int) -> tuple[list[AuditLog], int]:
    total = db.exec(select(func.count()).select_from(AuditLog)).one()
    entries = db.exec(
        select(AuditLog).order_by(AuditLog.id.desc()).offset((page - 1) * limit).limit(limit)
    ).all()
    return list(entries), total
