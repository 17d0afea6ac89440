from sqlalchemy import Column, Integer, String, DateTime, JSON, Index
from database import Base
from models.audit_mixin import now_local


class AuditLog(Base):
    """Before/after snapshot of a changed row. Written inside the caller's transaction."""
    __tablename__ = "audit_log"
    __table_args__ = (Index('ix_audit_log_table_record', 'table_name', 'record_id'),)

    id = Column(Integer, primary_key=True, index=True)
    table_name = Column(String(64), nullable=False)
    record_id = Column(Integer, nullable=False)
    action = Column(String(16), nullable=False)  # CREATE, UPDATE, DELETE or RESTORE
    changed_by = Column(String, nullable=False)
    changed_at = Column(DateTime(timezone=True), default=now_local, nullable=False)
    old_values = Column(JSON, default=dict)
    new_values = Column(JSON, default=dict)
