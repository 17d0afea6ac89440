from pydantic import BaseModel
from typing import Optional, List
from datetime import date
from decimal import Decimal
from models.ledger_entries import EntryType
from models.account_groups import AccountType

class LedgerEntry(BaseModel):
    id: int
    date: date
    reference_type: str
    reference_id: int
    account_id: int
    entry_type: EntryType
    amount: Decimal
    description: Optional[str] = None

    class Config:
        from_attributes = True

class LedgerReportEntry(LedgerEntry):
    account_name: str
    account_type: AccountType
    debit: Decimal
    credit: Decimal
    balance: Decimal

class LedgerReport(BaseModel):
    account_id: Optional[int] = None
    account_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    opening_balance: Decimal
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal
    entries: List[LedgerReportEntry]
