from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin
from models.sales_invoices import InvoiceStatus

class PurchaseInvoice(Base, AuditMixin):
    __tablename__ = "purchase_invoices"
    __table_args__ = (UniqueConstraint('user_id', 'invoice_number', name='_user_purchase_invoice_number_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    invoice_number = Column(String, nullable=False, index=True)
    invoice_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    status = Column(Enum(InvoiceStatus), default=InvoiceStatus.UNPAID, nullable=False)
    subtotal = Column(Numeric(12, 2), default=0, nullable=False)
    tax = Column(Numeric(12, 2), default=0, nullable=False)
    total = Column(Numeric(12, 2), default=0, nullable=False)
    amount_paid = Column(Numeric(12, 2), default=0, server_default='0', nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    vendor = relationship("Vendor")
    items = relationship("PurchaseInvoiceItem", back_populates="invoice", cascade="all, delete-orphan")

    @property
    def vendor_name(self):
        return self.vendor.name if self.vendor else None

    @property
    def balance_due(self):
        return (self.total or 0) - (self.amount_paid or 0)
