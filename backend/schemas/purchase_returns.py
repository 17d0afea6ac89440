from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.sales_returns import ReturnStatus
from schemas.line_items import ReturnItemCreate, ReturnItem

class PurchaseReturnBase(BaseModel):
    vendor_id: int
    return_date: date
    original_invoice_id: Optional[int] = None
    # Free-text reference when the invoice is not linked by id
    original_invoice_number: Optional[str] = None
    status: ReturnStatus = ReturnStatus.DRAFT
    notes: Optional[str] = None

class PurchaseReturnCreate(PurchaseReturnBase):
    return_number: Optional[str] = None
    tax: Optional[Decimal] = Field(default=None, ge=0)
    items: List[ReturnItemCreate] = Field(min_length=1)

class PurchaseReturnUpdate(BaseModel):
    vendor_id: Optional[int] = None
    return_number: Optional[str] = None
    return_date: Optional[date] = None
    original_invoice_id: Optional[int] = None
    original_invoice_number: Optional[str] = None
    status: Optional[ReturnStatus] = None
    tax: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None
    items: Optional[List[ReturnItemCreate]] = Field(default=None, min_length=1)

class PurchaseReturn(PurchaseReturnBase):
    id: int
    return_number: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    vendor_name: Optional[str] = None
    items: List[ReturnItem] = []
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
