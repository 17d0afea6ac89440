from pydantic import BaseModel
from typing import List, Optional
from datetime import date
from decimal import Decimal

class DocumentReportRow(BaseModel):
    id: int
    number: str
    date: date
    counterparty_id: int
    counterparty_name: Optional[str] = None
    status: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    amount_paid: Decimal
    balance_due: Decimal

class DocumentReportSummary(BaseModel):
    total: Decimal
    subtotal: Decimal
    tax: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    count: int
    average: Decimal

class CounterpartyTotal(BaseModel):
    counterparty_id: int
    counterparty_name: Optional[str] = None
    count: int
    total: Decimal

class ProductTotal(BaseModel):
    product_id: Optional[int] = None
    description: str
    quantity: Decimal
    amount: Decimal
    # quantity * product cost price
    cost_of_goods: Decimal

class DateTotal(BaseModel):
    date: date
    count: int
    total: Decimal

class StatusTotal(BaseModel):
    status: str
    count: int
    total: Decimal

class DocumentReport(BaseModel):
    """Sales or purchase invoice report. Cancelled invoices only show up in by_status."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    rows: List[DocumentReportRow]
    summary: DocumentReportSummary
    by_counterparty: List[CounterpartyTotal]
    by_product: List[ProductTotal]
    by_date: List[DateTotal]
    by_status: List[StatusTotal]

class RecordReportRow(BaseModel):
    id: int
    date: date
    category_id: int
    category_name: Optional[str] = None
    description: Optional[str] = None
    payment_method: str
    reference_number: Optional[str] = None
    status: str
    amount: Decimal

class RecordReportSummary(BaseModel):
    total: Decimal
    count: int
    average: Decimal
    max: Decimal
    min: Decimal

class PaymentMethodTotal(BaseModel):
    payment_method: str
    count: int
    total: Decimal

class CategoryTotal(BaseModel):
    category_id: int
    category_name: Optional[str] = None
    count: int
    total: Decimal
    percentage: Decimal

class RecordReport(BaseModel):
    """Income or expense report. Cancelled records are excluded."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    rows: List[RecordReportRow]
    summary: RecordReportSummary
    by_category: List[CategoryTotal]
    by_payment_method: List[PaymentMethodTotal]
    by_date: List[DateTotal]
