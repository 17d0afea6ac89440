from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import AuditMixin

class InvoiceStatus(enum.Enum):
    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"

class SalesInvoice(Base, AuditMixin):
    __tablename__ = "sales_invoices"
    __table_args__ = (UniqueConstraint('user_id', 'invoice_number', name='_user_sales_invoice_number_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    invoice_number = Column(String, nullable=False, index=True)
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    status = Column(Enum(InvoiceStatus), default=InvoiceStatus.UNPAID, nullable=False)
    subtotal = Column(Numeric(12, 2), default=0, nullable=False)
    tax = Column(Numeric(12, 2), default=0, nullable=False)
    total = Column(Numeric(12, 2), default=0, nullable=False)
    amount_paid = Column(Numeric(12, 2), default=0, server_default='0', nullable=False)  # sum of live payment items
    notes = Column(Text, nullable=True)

    # Relationships
    customer = relationship("Customer")
    items = relationship("SalesInvoiceItem", back_populates="invoice", cascade="all, delete-orphan")

    @property
    def customer_name(self):
        return self.customer.name if self.customer else None

    @property
    def balance_due(self):
        return (self.total or 0) - (self.amount_paid or 0)
