from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import AuditMixin
from models.enums import PaymentMethod

class PaymentStatus(enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class PaymentIn(Base, AuditMixin):
    """Money received from a customer, optionally allocated to sales invoices."""
    __tablename__ = "payments_in"
    __table_args__ = (UniqueConstraint('user_id', 'payment_number', name='_user_payment_in_number_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    payment_number = Column(String, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(Enum(PaymentMethod), default=PaymentMethod.CASH, nullable=False)
    reference_number = Column(String, nullable=True)
    status = Column(Enum(PaymentStatus), default=PaymentStatus.COMPLETED, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    customer = relationship("Customer")
    items = relationship("PaymentInItem", back_populates="payment", cascade="all, delete-orphan")

    @property
    def customer_name(self):
        return self.customer.name if self.customer else None

class PaymentInItem(Base):
    __tablename__ = "payment_in_items"

    id = Column(Integer, primary_key=True, index=True)
    payment_id = Column(Integer, ForeignKey("payments_in.id"), nullable=False)
    invoice_id = Column(Integer, ForeignKey("sales_invoices.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)

    payment = relationship("PaymentIn", back_populates="items")
    invoice = relationship("SalesInvoice")

    @property
    def invoice_number(self):
        return self.invoice.invoice_number if self.invoice else None
