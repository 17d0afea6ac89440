from sqlalchemy import Column, Integer, String, Text, Boolean, Enum, ForeignKey, UniqueConstraint
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class AccountType(enum.Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

class AccountGroup(Base, TimestampMixin):
    __tablename__ = "account_groups"
    __table_args__ = (UniqueConstraint('user_id', 'name', name='_user_account_group_name_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(Enum(AccountType), nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
