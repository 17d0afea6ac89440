from sqlalchemy import Column, Integer, String, Text, Numeric, Enum, ForeignKey
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class PartyStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BLOCKED = "blocked"

class Customer(Base, TimestampMixin):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    company = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    zip_code = Column(String, nullable=True)
    country = Column(String, nullable=True)
    contact_person = Column(String, nullable=True)
    category = Column(String, nullable=True)
    status = Column(Enum(PartyStatus), default=PartyStatus.ACTIVE, nullable=False)
    notes = Column(Text, nullable=True)
    credit_limit = Column(Numeric(12, 2), nullable=True)
    payment_terms = Column(String, nullable=True)
    tax_id = Column(String, nullable=True)
    tags = Column(String, nullable=True)  # comma separated

    # Maintained by crud.balances whenever an invoice, payment or return changes
    outstanding_balance = Column(Numeric(12, 2), default=0, server_default='0', nullable=False)
    total_purchases = Column(Numeric(12, 2), default=0, server_default='0', nullable=False)
