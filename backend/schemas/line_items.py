from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal

class LineItemCreate(BaseModel):
    # Either a catalogue product or a free-text description
    product_id: Optional[int] = None
    description: Optional[str] = None
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    notes: Optional[str] = None

class LineItem(BaseModel):
    id: int
    product_id: Optional[int] = None
    description: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal
    notes: Optional[str] = None

    class Config:
        from_attributes = True

class ReturnItemCreate(BaseModel):
    product_id: Optional[int] = None
    description: Optional[str] = None
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    reason: Optional[str] = None

class ReturnItem(BaseModel):
    id: int
    product_id: Optional[int] = None
    description: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal
    reason: Optional[str] = None

    class Config:
        from_attributes = True
