from typing import List

from sqlalchemy.orm import Session

from models.audit_log import AuditLog
from schemas.audit_log import AuditLogCreate


def create_audit_log(db: Session, log_entry: AuditLogCreate) -> AuditLog:
    """Stage an audit row; committing is left to the caller."""
    entry = AuditLog(**log_entry.model_dump())
    db.add(entry)
    return entry


def get_record_history(db: Session, table_name: str, record_id: int, skip: int = 0, limit: int = 50) -> List[AuditLog]:
    return (
        db.query(AuditLog)
        .filter(AuditLog.table_name == table_name, AuditLog.record_id == record_id)
        .order_by(AuditLog.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
