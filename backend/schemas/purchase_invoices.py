from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.sales_invoices import InvoiceStatus
from schemas.line_items import LineItemCreate, LineItem

class PurchaseInvoiceBase(BaseModel):
    vendor_id: int
    invoice_date: date
    due_date: Optional[date] = None
    notes: Optional[str] = None

class PurchaseInvoiceCreate(PurchaseInvoiceBase):
    invoice_number: Optional[str] = None  # generated when omitted
    status: Optional[InvoiceStatus] = None  # only CANCELLED is taken as-is, the rest is derived from payments
    tax: Optional[Decimal] = Field(default=None, ge=0)  # defaults to subtotal * default tax rate
    items: List[LineItemCreate] = Field(min_length=1)

    @model_validator(mode='after')
    def check_dates(self):
        if self.due_date and self.due_date < self.invoice_date:
            raise ValueError("due_date cannot be before invoice_date")
        return self

class PurchaseInvoiceUpdate(BaseModel):
    vendor_id: Optional[int] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[InvoiceStatus] = None
    tax: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None
    # When present, replaces every existing item
    items: Optional[List[LineItemCreate]] = Field(default=None, min_length=1)

class PurchaseInvoice(PurchaseInvoiceBase):
    id: int
    invoice_number: str
    status: InvoiceStatus
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    vendor_name: Optional[str] = None
    items: List[LineItem] = []
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
