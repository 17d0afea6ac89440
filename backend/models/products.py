from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, ForeignKey, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin

class Product(Base, TimestampMixin):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint('user_id', 'sku', name='_user_product_sku_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    product_name = Column(String, nullable=False)
    sku = Column(String, nullable=True)
    barcode = Column(String, nullable=True)
    category = Column(String, nullable=True)
    brand = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    cost_price = Column(Numeric(12, 2), default=0, nullable=False)
    selling_price = Column(Numeric(12, 2), default=0, nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=True)  # percent

    stock_quantity = Column(Numeric(12, 3), default=0, server_default='0', nullable=False)
    unit = Column(String(20), nullable=True)
    reorder_level = Column(Numeric(12, 3), nullable=True)
    vendor = Column(String, nullable=True)
    location = Column(String, nullable=True)

    short_description = Column(String(255), nullable=True)
    full_description = Column(Text, nullable=True)
    weight = Column(Numeric(10, 3), nullable=True)
    length = Column(Numeric(10, 3), nullable=True)
    width = Column(Numeric(10, 3), nullable=True)
    height = Column(Numeric(10, 3), nullable=True)
    tags = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
