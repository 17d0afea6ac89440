from pydantic import BaseModel
from typing import Optional, List
from datetime import date
from decimal import Decimal
from models.transactions import TransactionType

class Transaction(BaseModel):
    id: int
    transaction_type: TransactionType
    reference_id: int
    amount: Decimal
    date: date
    description: Optional[str] = None
    status: Optional[str] = None
    payment_method: Optional[str] = None
    reference_number: Optional[str] = None

    class Config:
        from_attributes = True

class TransactionTypeSummary(BaseModel):
    transaction_type: TransactionType
    total: Decimal
    count: int

class TransactionReport(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    net_total: Decimal
    summary: List[TransactionTypeSummary]
    transactions: List[Transaction]
