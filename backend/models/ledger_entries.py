from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class EntryType(enum.Enum):
    DEBIT = "debit"
    CREDIT = "credit"

class LedgerEntry(Base, TimestampMixin):
    """One side of a posted document. Rows are replaced whenever the document is re-posted."""
    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    reference_type = Column(String(30), nullable=False)  # same vocabulary as TransactionType
    reference_id = Column(Integer, nullable=False)
    account_id = Column(Integer, ForeignKey("account_groups.id"), nullable=False)
    entry_type = Column(Enum(EntryType), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(Text, nullable=True)

    account = relationship("AccountGroup")
