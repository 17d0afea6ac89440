import logging
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from crud import ledger, transactions
from crud.audit_log import create_audit_log
from crud.balances import refresh_vendor_balance, LIVE_RETURN_STATUSES
from crud.documents import (
    apply_document_totals, build_line_items, compute_totals, ensure_unique_number,
    get_active_counterparty, get_deleted, money, next_document_number, restore, soft_delete,
)
from crud.exceptions import BusinessRuleError
from crud.products import adjust_stock
from models.vendors import Vendor
from models.purchase_invoices import PurchaseInvoice
from models.purchase_returns import PurchaseReturn, PurchaseReturnItem
from models.sales_returns import ReturnStatus
from models.transactions import TransactionType
from schemas.audit_log import AuditLogCreate
from schemas.purchase_returns import PurchaseReturnCreate, PurchaseReturnUpdate
from utils import sqlalchemy_to_dict
from utils.listing import apply_search, apply_sort, apply_date_range

logger = logging.getLogger("purchase_returns")

NUMBER_PREFIX = "PR"
# Goods sent back to the vendor leave stock
STOCK_DIRECTION = -1


def _is_live(purchase_return: PurchaseReturn) -> bool:
    """Only approved or completed returns affect the books and stock."""
    return purchase_return.status in LIVE_RETURN_STATUSES


def get_purchase_return(db: Session, return_id: int, user_id: int) -> Optional[PurchaseReturn]:
    return db.query(PurchaseReturn).options(
        selectinload(PurchaseReturn.items),
        selectinload(PurchaseReturn.vendor)
    ).filter(PurchaseReturn.id == return_id, PurchaseReturn.user_id == user_id).first()


def get_purchase_returns(
    db: Session,
    user_id: int,
    status: Optional[ReturnStatus] = None,
    vendor_id: Optional[int] = None,
    original_invoice_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = "newest",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(PurchaseReturn).outerjoin(
        Vendor, PurchaseReturn.vendor_id == Vendor.id
    ).filter(PurchaseReturn.user_id == user_id)

    if status:
        query = query.filter(PurchaseReturn.status == status)
    if vendor_id:
        query = query.filter(PurchaseReturn.vendor_id == vendor_id)
    if original_invoice_id:
        query = query.filter(PurchaseReturn.original_invoice_id == original_invoice_id)
    query = apply_date_range(query, PurchaseReturn.return_date, start_date, end_date)
    query = apply_search(query, search, PurchaseReturn.return_number, PurchaseReturn.original_invoice_number, Vendor.name)
    query = apply_sort(query, sort, PurchaseReturn.return_date, PurchaseReturn.total, PurchaseReturn.id)

    return query.options(
        selectinload(PurchaseReturn.items),
        selectinload(PurchaseReturn.vendor)
    ).offset(skip).limit(limit).all()


def _link_original_invoice(db: Session, purchase_return: PurchaseReturn, invoice_id: Optional[int], user_id: int):
    if invoice_id is None:
        purchase_return.original_invoice_id = None
        return
    invoice = db.query(PurchaseInvoice).filter(PurchaseInvoice.id == invoice_id, PurchaseInvoice.user_id == user_id).first()
    if not invoice:
        raise BusinessRuleError(f"Purchase invoice with ID {invoice_id} not found.")
    if invoice.vendor_id != purchase_return.vendor_id:
        raise BusinessRuleError("The original invoice belongs to a different vendor.")
    purchase_return.original_invoice_id = invoice.id
    purchase_return.original_invoice_number = invoice.invoice_number


def _check_returnable(db: Session, purchase_return: PurchaseReturn):
    """Live returns against one invoice cannot add up to more than the invoice total."""
    if not _is_live(purchase_return) or purchase_return.original_invoice_id is None:
        return
    invoice = db.query(PurchaseInvoice).filter(PurchaseInvoice.id == purchase_return.original_invoice_id).first()
    if invoice is None:
        return
    query = db.query(func.sum(PurchaseReturn.total)).filter(
        PurchaseReturn.original_invoice_id == invoice.id,
        PurchaseReturn.deleted_at.is_(None),
        PurchaseReturn.status.in_(LIVE_RETURN_STATUSES)
    )
    if purchase_return.id is not None:
        query = query.filter(PurchaseReturn.id != purchase_return.id)
    already_returned = money(query.scalar())
    if already_returned + purchase_return.total > invoice.total:
        raise BusinessRuleError(
            f"Returns against invoice {invoice.invoice_number} would exceed its total of {invoice.total}."
        )


def _sync(db: Session, purchase_return: PurchaseReturn, actor: str):
    db.flush()
    if _is_live(purchase_return):
        ledger.post_document(
            db, purchase_return.user_id, TransactionType.PURCHASE_RETURN, purchase_return.id,
            purchase_return.return_date, purchase_return.total, purchase_return.return_number, actor
        )
    else:
        ledger.remove_document(db, purchase_return.user_id, TransactionType.PURCHASE_RETURN, purchase_return.id)
    transactions.record_transaction(
        db, purchase_return.user_id, TransactionType.PURCHASE_RETURN, purchase_return.id,
        purchase_return.total, purchase_return.return_date,
        f"Purchase return {purchase_return.return_number} - {purchase_return.vendor_name}",
        status=purchase_return.status,
        reference_number=purchase_return.original_invoice_number,
        actor=actor,
    )
    refresh_vendor_balance(db, purchase_return.vendor_id)


def _audit(db: Session, return_id: int, actor: str, action: str, old_values, new_values):
    create_audit_log(db, AuditLogCreate(
        table_name='purchase_returns',
        record_id=return_id,
        changed_by=actor,
        action=action,
        old_values=old_values or {},
        new_values=new_values or {}
    ))


def create_purchase_return(db: Session, purchase_return: PurchaseReturnCreate, user_id: int, actor: str) -> PurchaseReturn:
    get_active_counterparty(db, Vendor, purchase_return.vendor_id, user_id, "Vendor")

    if purchase_return.return_number:
        ensure_unique_number(db, PurchaseReturn, PurchaseReturn.return_number, purchase_return.return_number, user_id)
        number = purchase_return.return_number
    else:
        number = next_document_number(db, PurchaseReturn, PurchaseReturn.return_number, user_id, NUMBER_PREFIX)

    db_return = PurchaseReturn(
        user_id=user_id,
        return_number=number,
        return_date=purchase_return.return_date,
        vendor_id=purchase_return.vendor_id,
        original_invoice_number=purchase_return.original_invoice_number,
        status=purchase_return.status,
        notes=purchase_return.notes,
        created_by=actor,
    )
    _link_original_invoice(db, db_return, purchase_return.original_invoice_id, user_id)
    apply_document_totals(
        db, db_return,
        build_line_items(db, PurchaseReturnItem, purchase_return.items, user_id, extra_fields=("reason",)),
        user_id, purchase_return.tax
    )
    _check_returnable(db, db_return)
    db.add(db_return)
    db.flush()

    if _is_live(db_return):
        adjust_stock(db, db_return.items, STOCK_DIRECTION, user_id)
    _sync(db, db_return, actor)
    _audit(db, db_return.id, actor, 'CREATE', {}, sqlalchemy_to_dict(db_return))
    db.commit()

    logger.info(f"Purchase return {db_return.return_number} (ID: {db_return.id}) created for vendor {db_return.vendor_id} by {actor}, total {db_return.total}")
    return get_purchase_return(db, db_return.id, user_id)


def update_purchase_return(db: Session, return_id: int, return_update: PurchaseReturnUpdate, user_id: int, actor: str) -> Optional[PurchaseReturn]:
    db_return = get_purchase_return(db, return_id, user_id)
    if not db_return:
        return None

    old_values = sqlalchemy_to_dict(db_return)
    old_vendor_id = db_return.vendor_id
    data = return_update.model_dump(exclude_unset=True)

    if 'vendor_id' in data and data['vendor_id'] != old_vendor_id:
        get_active_counterparty(db, Vendor, data['vendor_id'], user_id, "Vendor")
    if 'return_number' in data:
        if not data['return_number']:
            raise BusinessRuleError("return_number cannot be empty.")
        ensure_unique_number(db, PurchaseReturn, PurchaseReturn.return_number, data['return_number'], user_id, exclude_id=return_id)

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
    if db_return.vendor_id != old_vendor_id:
        db.expire(db_return, ['vendor'])

    if invoice_given:
        _link_original_invoice(db, db_return, invoice_id, user_id)
    elif 'vendor_id' in data and db_return.original_invoice_id is not None:
        _link_original_invoice(db, db_return, db_return.original_invoice_id, user_id)

    if items is not None:
        apply_document_totals(
            db, db_return,
            build_line_items(db, PurchaseReturnItem, return_update.items, user_id, extra_fields=("reason",)),
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
    if old_vendor_id != db_return.vendor_id:
        refresh_vendor_balance(db, old_vendor_id)

    _audit(db, return_id, actor, 'UPDATE', old_values, sqlalchemy_to_dict(db_return))
    db.commit()
    logger.info(f"Purchase return (ID: {return_id}) updated by {actor}")
    return get_purchase_return(db, return_id, user_id)


def delete_purchase_return(db: Session, return_id: int, user_id: int, actor: str) -> Optional[PurchaseReturn]:
    db_return = get_purchase_return(db, return_id, user_id)
    if not db_return:
        return None

    old_values = sqlalchemy_to_dict(db_return)
    if _is_live(db_return):
        adjust_stock(db, db_return.items, -STOCK_DIRECTION, user_id)
    soft_delete(db_return, actor)
    ledger.remove_document(db, user_id, TransactionType.PURCHASE_RETURN, return_id)
    transactions.remove_transaction(db, user_id, TransactionType.PURCHASE_RETURN, return_id)
    db.flush()
    refresh_vendor_balance(db, db_return.vendor_id)

    _audit(db, return_id, actor, 'DELETE', old_values, sqlalchemy_to_dict(db_return))
    db.commit()
    logger.info(f"Purchase return (ID: {return_id}) deleted by {actor}")
    return db_return


def restore_purchase_return(db: Session, return_id: int, user_id: int, actor: str) -> Optional[PurchaseReturn]:
    db_return = get_deleted(db, PurchaseReturn, return_id, user_id)
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
    logger.info(f"Purchase return (ID: {return_id}) restored by {actor}")
    return get_purchase_return(db, return_id, user_id)
