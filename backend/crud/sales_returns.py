import logging
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from crud import ledger, transactions
from crud.audit_log import create_audit_log
from crud.balances import refresh_customer_balance, LIVE_RETURN_STATUSES
from crud.documents import (
    apply_document_totals, build_line_items, compute_totals, ensure_unique_number,
    get_active_counterparty, get_deleted, money, next_document_number, restore, soft_delete,
)
from crud.exceptions import BusinessRuleError
from crud.products import adjust_stock
from models.customers import Customer
from models.sales_invoices import SalesInvoice
from models.sales_returns import SalesReturn, SalesReturnItem, ReturnStatus
from models.transactions import TransactionType
from schemas.audit_log import AuditLogCreate
from schemas.sales_returns import SalesReturnCreate, SalesReturnUpdate
from utils import sqlalchemy_to_dict
from utils.listing import apply_search, apply_sort, apply_date_range

logger = logging.getLogger("sales_returns")

NUMBER_PREFIX = "SR"
# Returned goods come back into stock
STOCK_DIRECTION = 1


def _is_live(sales_return: SalesReturn) -> bool:
    """Only approved or completed returns affect the books and stock."""
    return sales_return.status in LIVE_RETURN_STATUSES


def get_sales_return(db: Session, return_id: int, user_id: int) -> Optional[SalesReturn]:
    return db.query(SalesReturn).options(
        selectinload(SalesReturn.items),
        selectinload(SalesReturn.customer)
    ).filter(SalesReturn.id == return_id, SalesReturn.user_id == user_id).first()


def get_sales_returns(
    db: Session,
    user_id: int,
    status: Optional[ReturnStatus] = None,
    customer_id: Optional[int] = None,
    original_invoice_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = "newest",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(SalesReturn).outerjoin(
        Customer, SalesReturn.customer_id == Customer.id
    ).filter(SalesReturn.user_id == user_id)

    if status:
        query = query.filter(SalesReturn.status == status)
    if customer_id:
        query = query.filter(SalesReturn.customer_id == customer_id)
    if original_invoice_id:
        query = query.filter(SalesReturn.original_invoice_id == original_invoice_id)
    query = apply_date_range(query, SalesReturn.return_date, start_date, end_date)
    query = apply_search(query, search, SalesReturn.return_number, SalesReturn.original_invoice_number, Customer.name)
    query = apply_sort(query, sort, SalesReturn.return_date, SalesReturn.total, SalesReturn.id)

    return query.options(
        selectinload(SalesReturn.items),
        selectinload(SalesReturn.customer)
    ).offset(skip).limit(limit).all()


def _link_original_invoice(db: Session, sales_return: SalesReturn, invoice_id: Optional[int], user_id: int):
    if invoice_id is None:
        sales_return.original_invoice_id = None
        return
    invoice = db.query(SalesInvoice).filter(SalesInvoice.id == invoice_id, SalesInvoice.user_id == user_id).first()
    if not invoice:
        raise BusinessRuleError(f"Sales invoice with ID {invoice_id} not found.")
    if invoice.customer_id != sales_return.customer_id:
        raise BusinessRuleError("The original invoice belongs to a different customer.")
    sales_return.original_invoice_id = invoice.id
    sales_return.original_invoice_number = invoice.invoice_number


def _check_returnable(db: Session, sales_return: SalesReturn):
    """Live returns against one invoice cannot add up to more than the invoice total."""
    if not _is_live(sales_return) or sales_return.original_invoice_id is None:
        return
    invoice = db.query(SalesInvoice).filter(SalesInvoice.id == sales_return.original_invoice_id).first()
    if invoice is None:
        return
    query = db.query(func.sum(SalesReturn.total)).filter(
        SalesReturn.original_invoice_id == invoice.id,
        SalesReturn.deleted_at.is_(None),
        SalesReturn.status.in_(LIVE_RETURN_STATUSES)
    )
    if sales_return.id is not None:
        query = query.filter(SalesReturn.id != sales_return.id)
    already_returned = money(query.scalar())
    if already_returned + sales_return.total > invoice.total:
        raise BusinessRuleError(
            f"Returns against invoice {invoice.invoice_number} would exceed its total of {invoice.total}."
        )


def _sync(db: Session, sales_return: SalesReturn, actor: str):
    db.flush()
    if _is_live(sales_return):
        ledger.post_document(
            db, sales_return.user_id, TransactionType.SALES_RETURN, sales_return.id,
            sales_return.return_date, sales_return.total, sales_return.return_number, actor
        )
    else:
        ledger.remove_document(db, sales_return.user_id, TransactionType.SALES_RETURN, sales_return.id)
    transactions.record_transaction(
        db, sales_return.user_id, TransactionType.SALES_RETURN, sales_return.id,
        sales_return.total, sales_return.return_date,
        f"Sales return {sales_return.return_number} - {sales_return.customer_name}",
        status=sales_return.status,
        reference_number=sales_return.original_invoice_number,
        actor=actor,
    )
    refresh_customer_balance(db, sales_return.customer_id)


def _audit(db: Session, return_id: int, actor: str, action: str, old_values, new_values):
    create_audit_log(db, AuditLogCreate(
        table_name='sales_returns',
        record_id=return_id,
        changed_by=actor,
        action=action,
        old_values=old_values or {},
        new_values=new_values or {}
    ))


def create_sales_return(db: Session, sales_return: SalesReturnCreate, user_id: int, actor: str) -> SalesReturn:
    get_active_counterparty(db, Customer, sales_return.customer_id, user_id, "Customer")

    if sales_return.return_number:
        ensure_unique_number(db, SalesReturn, SalesReturn.return_number, sales_return.return_number, user_id)
        number = sales_return.return_number
    else:
        number = next_document_number(db, SalesReturn, SalesReturn.return_number, user_id, NUMBER_PREFIX)

    db_return = SalesReturn(
        user_id=user_id,
        return_number=number,
        return_date=sales_return.return_date,
        customer_id=sales_return.customer_id,
        original_invoice_number=sales_return.original_invoice_number,
        status=sales_return.status,
        notes=sales_return.notes,
        created_by=actor,
    )
    _link_original_invoice(db, db_return, sales_return.original_invoice_id, user_id)
    apply_document_totals(
        db, db_return,
        build_line_items(db, SalesReturnItem, sales_return.items, user_id, extra_fields=("reason",)),
        user_id, sales_return.tax
    )
    _check_returnable(db, db_return)
    db.add(db_return)
    db.flush()

    if _is_live(db_return):
        adjust_stock(db, db_return.items, STOCK_DIRECTION, user_id)
    _sync(db, db_return, actor)
    _audit(db, db_return.id, actor, 'CREATE', {}, sqlalchemy_to_dict(db_return))
    db.commit()

    logger.info(f"Sales return {db_return.return_number} (ID: {db_return.id}) created for customer {db_return.customer_id} by {actor}, total {db_return.total}")
    return get_sales_return(db, db_return.id, user_id)


def update_sales_return(db: Session, return_id: int, return_update: SalesReturnUpdate, user_id: int, actor: str) -> Optional[SalesReturn]:
    db_return = get_sales_return(db, return_id, user_id)
    if not db_return:
        return None

    old_values = sqlalchemy_to_dict(db_return)
    old_customer_id = db_return.customer_id
    data = return_update.model_dump(exclude_unset=True)

    if 'customer_id' in data and data['customer_id'] != old_customer_id:
        get_active_counterparty(db, Customer, data['customer_id'], user_id, "Customer")
    if 'return_number' in data:
        if not data['return_number']:
            raise BusinessRuleError("return_number cannot be empty.")
        ensure_unique_number(db, SalesReturn, SalesReturn.return_number, data['return_number'], user_id, exclude_id=return_id)

    if _is_live(db_return):
        adjust_stock(db, db_return.items, -STOCK_DIRECTION, user_id)

    items = data.pop('items', None)
    tax_given = 'tax' in data
    tax = data.pop('tax', None)
    invoice_given = 'original_invoice_id' in data
    invoice_id = data.pop('original_invoice_id', None)
    if data.get('status') is None:
        data.pop('status', None)

    for key, value in data.items():
        setattr(db_return, key, value)
    if db_return.customer_id != old_customer_id:
        db.expire(db_return, ['customer'])

    if invoice_given:
        _link_original_invoice(db, db_return, invoice_id, user_id)
    elif 'customer_id' in data and db_return.original_invoice_id is not None:
        _link_original_invoice(db, db_return, db_return.original_invoice_id, user_id)

    if items is not None:
        apply_document_totals(
            db, db_return,
            build_line_items(db, SalesReturnItem, return_update.items, user_id, extra_fields=("reason",)),
            user_id, tax if tax_given else None
        )
    elif tax_given:
        db_return.tax, db_return.total = compute_totals(db, user_id, db_return.subtotal, tax)
    _check_returnable(db, db_return)

    db_return.updated_by = actor
    db.flush()
    if _is_live(db_return):
        adjust_stock(db, db_return.items, STOCK_DIRECTION, user_id)
    _sync(db, db_return, actor)
    if old_customer_id != db_return.customer_id:
        refresh_customer_balance(db, old_customer_id)

    _audit(db, return_id, actor, 'UPDATE', old_values, sqlalchemy_to_dict(db_return))
    db.commit()
    logger.info(f"Sales return (ID: {return_id}) updated by {actor}")
    return get_sales_return(db, return_id, user_id)


def delete_sales_return(db: Session, return_id: int, user_id: int, actor: str) -> Optional[SalesReturn]:
    db_return = get_sales_return(db, return_id, user_id)
    if not db_return:
        return None

    old_values = sqlalchemy_to_dict(db_return)
    if _is_live(db_return):
        adjust_stock(db, db_return.items, -STOCK_DIRECTION, user_id)
    soft_delete(db_return, actor)
    ledger.remove_document(db, user_id, TransactionType.SALES_RETURN, return_id)
    transactions.remove_transaction(db, user_id, TransactionType.SALES_RETURN, return_id)
    db.flush()
    refresh_customer_balance(db, db_return.customer_id)

    _audit(db, return_id, actor, 'DELETE', old_values, sqlalchemy_to_dict(db_return))
    db.commit()
    logger.info(f"Sales return (ID: {return_id}) deleted by {actor}")
    return db_return


def restore_sales_return(db: Session, return_id: int, user_id: int, actor: str) -> Optional[SalesReturn]:
    db_return = get_deleted(db, SalesReturn, return_id, user_id)
    if not db_return:
        return None

    restore(db_return, actor)
    db.flush()
    _check_returnable(db, db_return)
    if _is_live(db_return):
        adjust_stock(db, db_return.items, STOCK_DIRECTION, user_id)
    _sync(db, db_return, actor)
    _audit(db, return_id, actor, 'RESTORE', {}, sqlalchemy_to_dict(db_return))
    db.commit()
    logger.info(f"Sales return (ID: {return_id}) restored by {actor}")
    return get_sales_return(db, return_id, user_id)
