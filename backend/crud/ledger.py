"""
Double-entry posting.

Each live document owns exactly two ledger rows (one debit, one credit) for its
amount. Posting is idempotent: the document's previous rows are always removed
first, so callers simply re-post after every change.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from crud import account_groups as crud_account_groups
from crud.exceptions import BusinessRuleError
from models.account_groups import AccountGroup
from models.ledger_entries import LedgerEntry, EntryType
from models.transactions import TransactionType

logger = logging.getLogger("ledger")

# reference type -> (debit group, credit group, description prefix)
POSTING_RULES = {
    TransactionType.SALES_INVOICE: ("Accounts Receivable", "Sales Revenue", "Sales invoice"),
    TransactionType.PURCHASE_INVOICE: ("Inventory", "Accounts Payable", "Purchase invoice"),
    TransactionType.SALES_RETURN: ("Sales Returns", "Accounts Receivable", "Sales return"),
    TransactionType.PURCHASE_RETURN: ("Accounts Payable", "Purchase Returns", "Purchase return"),
    TransactionType.PAYMENT_IN: ("Bank/Cash", "Accounts Receivable", "Payment received"),
    TransactionType.PAYMENT_OUT: ("Accounts Payable", "Bank/Cash", "Payment made"),
    TransactionType.INCOME: ("Bank/Cash", "Income", "Income"),
    TransactionType.EXPENSE: ("Expenses", "Bank/Cash", "Expense"),
}


def _group_id(db: Session, name: str, user_id: int) -> int:
    group = crud_account_groups.get_account_group_by_name(db, name, user_id)
    if group is None:
        # Users created before the defaults existed get them on first posting
        crud_account_groups.create_default_account_groups(db, user_id, commit=False)
        group = crud_account_groups.get_account_group_by_name(db, name, user_id)
    if group is None:
        raise BusinessRuleError(f"Account group '{name}' is missing.")
    return group.id


def remove_document(db: Session, user_id: int, reference_type: TransactionType, reference_id: int) -> int:
    removed = db.query(LedgerEntry).filter(
        LedgerEntry.user_id == user_id,
        LedgerEntry.reference_type == reference_type.value,
        LedgerEntry.reference_id == reference_id
    ).delete(synchronize_session=False)
    if removed:
        logger.debug(f"Removed {removed} ledger entries for {reference_type.value} #{reference_id}")
    return removed


def post_document(
    db: Session,
    user_id: int,
    reference_type: TransactionType,
    reference_id: int,
    entry_date: date,
    amount: Decimal,
    label: str,
    actor: Optional[str] = None,
) -> List[LedgerEntry]:
    """Replace the ledger rows of one document with a balanced debit/credit pair."""
    if reference_type not in POSTING_RULES:
        raise BusinessRuleError(f"{reference_type.value} documents are not posted to the ledger.")

    remove_document(db, user_id, reference_type, reference_id)
    if not amount or Decimal(amount) <= 0:
        return []

    debit_name, credit_name, prefix = POSTING_RULES[reference_type]
    description = f"{prefix}: {label}"
    entries = [
        LedgerEntry(
            user_id=user_id,
            date=entry_date,
            reference_type=reference_type.value,
            reference_id=reference_id,
            account_id=_group_id(db, debit_name, user_id),
            entry_type=EntryType.DEBIT,
            amount=amount,
            description=description,
            created_by=actor,
        ),
        LedgerEntry(
            user_id=user_id,
            date=entry_date,
            reference_type=reference_type.value,
            reference_id=reference_id,
            account_id=_group_id(db, credit_name, user_id),
            entry_type=EntryType.CREDIT,
            amount=amount,
            description=description,
            created_by=actor,
        ),
    ]
    db.add_all(entries)
    db.flush()
    logger.debug(f"Posted {reference_type.value} #{reference_id}: Dr {debit_name} / Cr {credit_name} {amount}")
    return entries


def get_ledger_entries_by_reference(db: Session, user_id: int, reference_type: TransactionType, reference_id: int) -> List[LedgerEntry]:
    return db.query(LedgerEntry).filter(
        LedgerEntry.user_id == user_id,
        LedgerEntry.reference_type == reference_type.value,
        LedgerEntry.reference_id == reference_id
    ).order_by(LedgerEntry.id).all()


def get_ledger_entries_by_account(
    db: Session,
    user_id: int,
    account_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """Entries joined with their account group, oldest first. ``account_id`` 0 or None means every account."""
    query = db.query(LedgerEntry, AccountGroup).join(
        AccountGroup, LedgerEntry.account_id == AccountGroup.id
    ).filter(LedgerEntry.user_id == user_id)

    if account_id:
        query = query.filter(LedgerEntry.account_id == account_id)
    if start_date:
        query = query.filter(LedgerEntry.date >= start_date)
    if end_date:
        query = query.filter(LedgerEntry.date <= end_date)

    return query.order_by(LedgerEntry.date, LedgerEntry.id).all()
