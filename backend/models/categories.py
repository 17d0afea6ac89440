from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin

class IncomeCategory(Base, TimestampMixin):
    __tablename__ = "income_categories"
    __table_args__ = (UniqueConstraint('user_id', 'name', name='_user_income_category_name_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(20), nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)

class ExpenseCategory(Base, TimestampMixin):
    __tablename__ = "expense_categories"
    __table_args__ = (UniqueConstraint('user_id', 'name', name='_user_expense_category_name_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(20), nullable=True)
    is_default = Column(Boolean, default=False, nullable=False)
