from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.enums import PaymentMethod
from models.payments_in import PaymentStatus

class PaymentItemCreate(BaseModel):
    invoice_id: int
    amount: Decimal = Field(gt=0)
    notes: Optional[str] = None

class PaymentItem(BaseModel):
    id: int
    invoice_id: int
    invoice_number: Optional[str] = None
    amount: Decimal
    notes: Optional[str] = None

    class Config:
        from_attributes = True

class PaymentInBase(BaseModel):
    customer_id: int
    payment_date: date
    payment_method: PaymentMethod = PaymentMethod.CASH
    reference_number: Optional[str] = None
    status: PaymentStatus = PaymentStatus.COMPLETED
    notes: Optional[str] = None

class PaymentInCreate(PaymentInBase):
    payment_number: Optional[str] = None
    # Must equal the sum of items when items are given; required otherwise
    amount: Optional[Decimal] = Field(default=None, gt=0)
    items: List[PaymentItemCreate] = []

class PaymentInUpdate(BaseModel):
    customer_id: Optional[int] = None
    payment_number: Optional[str] = None
    payment_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    reference_number: Optional[str] = None
    status: Optional[PaymentStatus] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)
    notes: Optional[str] = None
    items: Optional[List[PaymentItemCreate]] = None

class PaymentIn(PaymentInBase):
    id: int
    payment_number: str
    amount: Decimal
    customer_name: Optional[str] = None
    items: List[PaymentItem] = []
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
