from pydantic import BaseModel, Field
from typing import Optional
import datetime as dt
from decimal import Decimal
from models.enums import PaymentMethod, RecordStatus

class ExpenseBase(BaseModel):
    category_id: int
    amount: Decimal = Field(gt=0)
    date: dt.date
    description: Optional[str] = None
    vendor_name: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    reference_number: Optional[str] = None
    receipt: Optional[str] = Field(default=None, max_length=500)
    tax_deductible: bool = False
    reimbursable: bool = False
    status: RecordStatus = RecordStatus.PENDING

class ExpenseCreate(ExpenseBase):
    pass

class ExpenseUpdate(BaseModel):
    category_id: Optional[int] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)
    date: Optional[dt.date] = None
    description: Optional[str] = None
    vendor_name: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    reference_number: Optional[str] = None
    receipt: Optional[str] = Field(default=None, max_length=500)
    tax_deductible: Optional[bool] = None
    reimbursable: Optional[bool] = None
    status: Optional[RecordStatus] = None

class Expense(ExpenseBase):
    id: int
    category_name: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True
