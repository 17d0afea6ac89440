from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin
from models.sales_returns import ReturnStatus

class PurchaseReturn(Base, AuditMixin):
    __tablename__ = "purchase_returns"
    __table_args__ = (UniqueConstraint('user_id', 'return_number', name='_user_purchase_return_number_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    return_number = Column(String, nullable=False, index=True)
    return_date = Column(Date, nullable=False)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    original_invoice_id = Column(Integer, ForeignKey("purchase_invoices.id"), nullable=True)
    original_invoice_number = Column(String, nullable=True)
    status = Column(Enum(ReturnStatus), default=ReturnStatus.DRAFT, nullable=False)
    subtotal = Column(Numeric(12, 2), default=0, nullable=False)
    tax = Column(Numeric(12, 2), default=0, nullable=False)
    total = Column(Numeric(12, 2), default=0, nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    vendor = relationship("Vendor")
    original_invoice = relationship("PurchaseInvoice")
    items = relationship("PurchaseReturnItem", back_populates="purchase_return", cascade="all, delete-orphan")

    @property
    def vendor_name(self):
        return self.vendor.name if self.vendor else None

class PurchaseReturnItem(Base):
    __tablename__ = "purchase_return_items"

    id = Column(Integer, primary_key=True, index=True)
    return_id = Column(Integer, ForeignKey("purchase_returns.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    description = Column(String, nullable=True)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)
    reason = Column(String, nullable=True)

    purchase_return = relationship("PurchaseReturn", back_populates="items")
    product = relationship("Product")
