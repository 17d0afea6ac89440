from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin


class AppConfig(Base, TimestampMixin):
    """Per-user key/value setting such as ``currency`` or ``default_tax_rate``."""
    __tablename__ = "app_config"
    __table_args__ = (UniqueConstraint('user_id', 'name', name='uq_app_config_user_name'),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    # Stored as text; typed accessors in crud.app_config parse it
    value = Column(Text, nullable=False)
