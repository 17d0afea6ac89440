from pydantic import BaseModel
from typing import List
from datetime import date
from decimal import Decimal
from models.account_groups import AccountType

class AccountBalance(BaseModel):
    account_id: int
    account_name: str
    account_type: AccountType
    debit: Decimal
    credit: Decimal
    balance: Decimal

class BalanceSheetSection(BaseModel):
    accounts: List[AccountBalance]
    total: Decimal

class BalanceSheet(BaseModel):
    as_of_date: date
    assets: BalanceSheetSection
    liabilities: BalanceSheetSection
    equity: BalanceSheetSection
    # revenue - expenses, carried into equity
    retained_earnings: Decimal
    total_assets: Decimal
    total_liabilities_and_equity: Decimal
    balanced: bool

class ProfitAndLoss(BaseModel):
    start_date: date
    end_date: date
    revenue: BalanceSheetSection
    expenses: BalanceSheetSection
    net_income: Decimal
