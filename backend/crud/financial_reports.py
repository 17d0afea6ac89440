"""
Statements built from ledger entries.

Every posted document contributes one debit and one credit of equal amount, so
assets always equal liabilities + equity + (revenue - expenses) here.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, case
from sqlalchemy.orm import Session

from crud.documents import money
from models.account_groups import AccountGroup, AccountType
from models.ledger_entries import LedgerEntry, EntryType
from schemas.financial_reports import AccountBalance, BalanceSheet, BalanceSheetSection, ProfitAndLoss

# Account types whose natural balance is on the debit side
DEBIT_NORMAL = {AccountType.ASSET, AccountType.EXPENSE}


def normal_balance(account_type: AccountType, debit: Decimal, credit: Decimal) -> Decimal:
    return debit - credit if account_type in DEBIT_NORMAL else credit - debit


def get_account_balances(
    db: Session,
    user_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[AccountBalance]:
    """Debit / credit totals per account group, including groups without entries."""
    debit = func.sum(case((LedgerEntry.entry_type == EntryType.DEBIT, LedgerEntry.amount), else_=0))
    credit = func.sum(case((LedgerEntry.entry_type == EntryType.CREDIT, LedgerEntry.amount), else_=0))

    query = db.query(LedgerEntry.account_id, debit.label("debit"), credit.label("credit")).filter(
        LedgerEntry.user_id == user_id
    )
    if start_date:
        query = query.filter(LedgerEntry.date >= start_date)
    if end_date:
        query = query.filter(LedgerEntry.date <= end_date)
    totals = {row.account_id: (money(row.debit), money(row.credit))
              for row in query.group_by(LedgerEntry.account_id).all()}

    balances = []
    groups = db.query(AccountGroup).filter(AccountGroup.user_id == user_id).order_by(AccountGroup.id).all()
    for group in groups:
        group_debit, group_credit = totals.get(group.id, (Decimal(0), Decimal(0)))
        balances.append(AccountBalance(
            account_id=group.id,
            account_name=group.name,
            account_type=group.type,
            debit=group_debit,
            credit=group_credit,
            balance=normal_balance(group.type, group_debit, group_credit),
        ))
    return balances


def _section(balances: List[AccountBalance], account_type: AccountType) -> BalanceSheetSection:
    accounts = [b for b in balances if b.account_type == account_type]
    return BalanceSheetSection(accounts=accounts, total=sum((a.balance for a in accounts), Decimal(0)))


def get_balance_sheet(db: Session, as_of_date: date, user_id: int) -> BalanceSheet:
    balances = get_account_balances(db, user_id, end_date=as_of_date)

    assets = _section(balances, AccountType.ASSET)
    liabilities = _section(balances, AccountType.LIABILITY)
    equity = _section(balances, AccountType.EQUITY)
    retained_earnings = _section(balances, AccountType.REVENUE).total - _section(balances, AccountType.EXPENSE).total

    total_liabilities_and_equity = liabilities.total + equity.total + retained_earnings
    return BalanceSheet(
        as_of_date=as_of_date,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        retained_earnings=retained_earnings,
        total_assets=assets.total,
        total_liabilities_and_equity=total_liabilities_and_equity,
        balanced=assets.total == total_liabilities_and_equity,
    )


def get_profit_and_loss(db: Session, start_date: date, end_date: date, user_id: int) -> ProfitAndLoss:
    # Sales Returns is a revenue group with a debit balance, so it nets revenue down
    balances = get_account_balances(db, user_id, start_date=start_date, end_date=end_date)
    revenue = _section(balances, AccountType.REVENUE)
    expenses = _section(balances, AccountType.EXPENSE)
    return ProfitAndLoss(
        start_date=start_date,
        end_date=end_date,
        revenue=revenue,
        expenses=expenses,
        net_income=revenue.total - expenses.total,
    )
