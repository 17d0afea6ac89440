from sqlalchemy import Column, Integer, Numeric, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from database import Base

class PurchaseInvoiceItem(Base):
    __tablename__ = "purchase_invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("purchase_invoices.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    description = Column(String, nullable=True)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    invoice = relationship("PurchaseInvoice", back_populates="items")
    product = relationship("Product")
