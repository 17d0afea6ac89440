from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from utils import split_tags

class ProductBase(BaseModel):
    product_name: str = Field(min_length=1)
    sku: Optional[str] = None
    barcode: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    is_active: bool = True
    cost_price: Decimal = Field(default=Decimal(0), ge=0)
    selling_price: Decimal = Field(default=Decimal(0), ge=0)
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    stock_quantity: Decimal = Decimal(0)
    unit: Optional[str] = None
    reorder_level: Optional[Decimal] = Field(default=None, ge=0)
    vendor: Optional[str] = None
    location: Optional[str] = None
    short_description: Optional[str] = None
    full_description: Optional[str] = None
    weight: Optional[Decimal] = None
    length: Optional[Decimal] = None
    width: Optional[Decimal] = None
    height: Optional[Decimal] = None
    tags: List[str] = []
    notes: Optional[str] = None

class ProductCreate(ProductBase):
    pass

class ProductUpdate(BaseModel):
    product_name: Optional[str] = Field(default=None, min_length=1)
    sku: Optional[str] = None
    barcode: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    is_active: Optional[bool] = None
    cost_price: Optional[Decimal] = Field(default=None, ge=0)
    selling_price: Optional[Decimal] = Field(default=None, ge=0)
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)
    stock_quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    reorder_level: Optional[Decimal] = Field(default=None, ge=0)
    vendor: Optional[str] = None
    location: Optional[str] = None
    short_description: Optional[str] = None
    full_description: Optional[str] = None
    weight: Optional[Decimal] = None
    length: Optional[Decimal] = None
    width: Optional[Decimal] = None
    height: Optional[Decimal] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None

class Product(ProductBase):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('tags', mode='before')
    @classmethod
    def parse_tags(cls, v):
        return split_tags(v) if isinstance(v, str) or v is None else v

    class Config:
        from_attributes = True
