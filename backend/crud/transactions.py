import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud.documents import money
from models.transactions import Transaction, TransactionType
from utils.listing import apply_search, apply_date_range

logger = logging.getLogger("transactions")

# Outflows are stored negative so the feed sums to net cash effect
OUTFLOW_TYPES = {
    TransactionType.PURCHASE_INVOICE,
    TransactionType.PURCHASE_ORDER,
    TransactionType.PAYMENT_OUT,
    TransactionType.EXPENSE,
    TransactionType.SALES_RETURN,
}


def signed_amount(transaction_type: TransactionType, amount) -> Decimal:
    amount = abs(Decimal(amount or 0))
    return -amount if transaction_type in OUTFLOW_TYPES else amount


def _enum_value(value):
    return value.value if hasattr(value, 'value') else value


def record_transaction(
    db: Session,
    user_id: int,
    transaction_type: TransactionType,
    reference_id: int,
    amount,
    entry_date: date,
    description: str,
    status=None,
    payment_method=None,
    reference_number: Optional[str] = None,
    actor: Optional[str] = None,
) -> Transaction:
    """Create or refresh the feed row of one document."""
    db_transaction = db.query(Transaction).filter(
        Transaction.user_id == user_id,
        Transaction.transaction_type == transaction_type,
        Transaction.reference_id == reference_id
    ).first()
    if db_transaction is None:
        db_transaction = Transaction(
            user_id=user_id,
            transaction_type=transaction_type,
            reference_id=reference_id,
            created_by=actor,
        )
        db.add(db_transaction)
    else:
        db_transaction.updated_by = actor

    db_transaction.amount = signed_amount(transaction_type, amount)
    db_transaction.date = entry_date
    db_transaction.description = description
    db_transaction.status = _enum_value(status)
    db_transaction.payment_method = _enum_value(payment_method)
    db_transaction.reference_number = reference_number
    db.flush()
    return db_transaction


def remove_transaction(db: Session, user_id: int, transaction_type: TransactionType, reference_id: int) -> int:
    return db.query(Transaction).filter(
        Transaction.user_id == user_id,
        Transaction.transaction_type == transaction_type,
        Transaction.reference_id == reference_id
    ).delete(synchronize_session=False)


def get_transactions(
    db: Session,
    user_id: int,
    transaction_type: Optional[TransactionType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(Transaction).filter(Transaction.user_id == user_id)
    if transaction_type:
        query = query.filter(Transaction.transaction_type == transaction_type)
    query = apply_date_range(query, Transaction.date, start_date, end_date)
    query = apply_search(query, search, Transaction.description, Transaction.reference_number)
    return query.order_by(Transaction.date.desc(), Transaction.id.desc()).offset(skip).limit(limit).all()


def get_transactions_by_reference(db: Session, user_id: int, transaction_type: TransactionType, reference_id: int):
    return db.query(Transaction).filter(
        Transaction.user_id == user_id,
        Transaction.transaction_type == transaction_type,
        Transaction.reference_id == reference_id
    ).all()


def get_transaction_summary_by_type(
    db: Session,
    user_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    query = db.query(
        Transaction.transaction_type,
        func.sum(Transaction.amount).label("total"),
        func.count(Transaction.id).label("count")
    ).filter(Transaction.user_id == user_id)
    query = apply_date_range(query, Transaction.date, start_date, end_date)
    rows = query.group_by(Transaction.transaction_type).all()
    return [
        {"transaction_type": row.transaction_type, "total": money(row.total), "count": row.count}
        for row in rows
    ]
