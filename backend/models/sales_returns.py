from sqlalchemy import Column, Integer, String, Text, Numeric, Date, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import AuditMixin

class ReturnStatus(enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"

class SalesReturn(Base, AuditMixin):
    __tablename__ = "sales_returns"
    __table_args__ = (UniqueConstraint('user_id', 'return_number', name='_user_sales_return_number_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    return_number = Column(String, nullable=False, index=True)
    return_date = Column(Date, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    original_invoice_id = Column(Integer, ForeignKey("sales_invoices.id"), nullable=True)
    original_invoice_number = Column(String, nullable=True)
    status = Column(Enum(ReturnStatus), default=ReturnStatus.DRAFT, nullable=False)
    subtotal = Column(Numeric(12, 2), default=0, nullable=False)
    tax = Column(Numeric(12, 2), default=0, nullable=False)
    total = Column(Numeric(12, 2), default=0, nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    customer = relationship("Customer")
    original_invoice = relationship("SalesInvoice")
    items = relationship("SalesReturnItem", back_populates="sales_return", cascade="all, delete-orphan")

    @property
    def customer_name(self):
        return self.customer.name if self.customer else None

class SalesReturnItem(Base):
    __tablename__ = "sales_return_items"

    id = Column(Integer, primary_key=True, index=True)
    return_id = Column(Integer, ForeignKey("sales_returns.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    description = Column(String, nullable=True)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)
    reason = Column(String, nullable=True)

    sales_return = relationship("SalesReturn", back_populates="items")
    product = relationship("Product")
