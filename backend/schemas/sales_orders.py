from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.sales_orders import SalesOrderStatus
from schemas.line_items import LineItemCreate, LineItem

class SalesOrderBase(BaseModel):
    customer_id: int
    order_date: date
    status: SalesOrderStatus = SalesOrderStatus.DRAFT
    notes: Optional[str] = None

class SalesOrderCreate(SalesOrderBase):
    order_number: Optional[str] = None
    tax: Optional[Decimal] = Field(default=None, ge=0)
    items: List[LineItemCreate] = Field(min_length=1)

class SalesOrderUpdate(BaseModel):
    customer_id: Optional[int] = None
    order_number: Optional[str] = None
    order_date: Optional[date] = None
    status: Optional[SalesOrderStatus] = None
    tax: Optional[Decimal] = Field(default=None, ge=0)
    notes: Optional[str] = None
    items: Optional[List[LineItemCreate]] = Field(default=None, min_length=1)

class SalesOrder(SalesOrderBase):
    id: int
    order_number: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    customer_name: Optional[str] = None
    items: List[LineItem] = []
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
