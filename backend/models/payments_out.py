from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin
from models.enums import PaymentMethod
from models.payments_in import PaymentStatus

class PaymentOut(Base, AuditMixin):
    """Money paid to a vendor, optionally allocated to purchase invoices."""
    __tablename__ = "payments_out"
    __table_args__ = (UniqueConstraint('user_id', 'payment_number', name='_user_payment_out_number_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    payment_number = Column(String, nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(Enum(PaymentMethod), default=PaymentMethod.CASH, nullable=False)
    reference_number = Column(String, nullable=True)
    status = Column(Enum(PaymentStatus), default=PaymentStatus.COMPLETED, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    vendor = relationship("Vendor")
    items = relationship("PaymentOutItem", back_populates="payment", cascade="all, delete-orphan")

    @property
    def vendor_name(self):
        return self.vendor.name if self.vendor else None

class PaymentOutItem(Base):
    __tablename__ = "payment_out_items"

    id = Column(Integer, primary_key=True, index=True)
    payment_id = Column(Integer, ForeignKey("payments_out.id"), nullable=False)
    invoice_id = Column(Integer, ForeignKey("purchase_invoices.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)

    payment = relationship("PaymentOut", back_populates="items")
    invoice = relationship("PurchaseInvoice")

    @property
    def invoice_number(self):
        return self.invoice.invoice_number if self.invoice else None
