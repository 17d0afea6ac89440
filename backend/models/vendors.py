from sqlalchemy import Column, Integer, String, Text, Numeric, Enum, ForeignKey, Date
from database import Base
from models.audit_mixin import TimestampMixin
from models.customers import PartyStatus

class Vendor(Base, TimestampMixin):
    __tablename__ = "vendors"

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
    website = Column(String, nullable=True)
    category = Column(String, nullable=True)
    status = Column(Enum(PartyStatus), default=PartyStatus.ACTIVE, nullable=False)
    notes = Column(Text, nullable=True)
    credit_limit = Column(Numeric(12, 2), nullable=True)
    payment_terms = Column(String, nullable=True)
    tax_id = Column(String, nullable=True)
    bank_details = Column(Text, nullable=True)
    tags = Column(String, nullable=True)

    # Amount owed to the vendor and lifetime purchases from them
    outstanding_balance = Column(Numeric(12, 2), default=0, server_default='0', nullable=False)
    total_purchases = Column(Numeric(12, 2), default=0, server_default='0', nullable=False)
    last_purchase_date = Column(Date, nullable=True)
