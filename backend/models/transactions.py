from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class TransactionType(enum.Enum):
    PAYMENT_IN = "payment_in"
    PAYMENT_OUT = "payment_out"
    SALES_INVOICE = "sales_invoice"
    SALES_ORDER = "sales_order"
    SALES_RETURN = "sales_return"
    PURCHASE_INVOICE = "purchase_invoice"
    PURCHASE_ORDER = "purchase_order"
    PURCHASE_RETURN = "purchase_return"
    INCOME = "income"
    EXPENSE = "expense"

class Transaction(Base, TimestampMixin):
    """Activity feed row, one per live document. Amount is signed: inflows positive."""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    transaction_type = Column(Enum(TransactionType), nullable=False, index=True)
    reference_id = Column(Integer, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=True)
    status = Column(String(30), nullable=True)
    payment_method = Column(String(30), nullable=True)
    reference_number = Column(String, nullable=True)
