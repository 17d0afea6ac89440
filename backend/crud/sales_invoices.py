import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from crud import ledger, transactions
from crud.audit_log import create_audit_log
from crud.balances import refresh_sales_invoice, refresh_customer_balance, get_total_paid_for_sales_invoice
from crud.documents import (
    apply_document_totals, build_line_items, compute_totals, ensure_unique_number,
    get_active_counterparty, get_deleted, next_document_number, restore, soft_delete,
)
from crud.exceptions import BusinessRuleError, ConflictError
from crud.products import adjust_stock
from models.audit_mixin import business_today
from models.customers import Customer
from models.sales_invoices import SalesInvoice, InvoiceStatus
from models.sales_invoice_items import SalesInvoiceItem
from models.transactions import TransactionType
from schemas.audit_log import AuditLogCreate
from schemas.sales_invoices import SalesInvoiceCreate, SalesInvoiceUpdate
from utils import sqlalchemy_to_dict
from utils.listing import apply_search, apply_sort, apply_date_range

logger = logging.getLogger("sales_invoices")

NUMBER_PREFIX = "SI"
# Selling goods takes them out of stock
STOCK_DIRECTION = -1


def _is_live(invoice: SalesInvoice) -> bool:
    return invoice.status != InvoiceStatus.CANCELLED


def get_sales_invoice(db: Session, invoice_id: int, user_id: int) -> Optional[SalesInvoice]:
    return db.query(SalesInvoice).options(
        selectinload(SalesInvoice.items),
        selectinload(SalesInvoice.customer)
    ).filter(SalesInvoice.id == invoice_id, SalesInvoice.user_id == user_id).first()


def get_sales_invoices(
    db: Session,
    user_id: int,
    status: Optional[InvoiceStatus] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = "newest",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(SalesInvoice).outerjoin(
        Customer, SalesInvoice.customer_id == Customer.id
    ).filter(SalesInvoice.user_id == user_id)

    if status:
        query = query.filter(SalesInvoice.status == status)
    if customer_id:
        query = query.filter(SalesInvoice.customer_id == customer_id)
    query = apply_date_range(query, SalesInvoice.invoice_date, start_date, end_date)
    query = apply_search(query, search, SalesInvoice.invoice_number, Customer.name)
    query = apply_sort(query, sort, SalesInvoice.invoice_date, SalesInvoice.total, SalesInvoice.id)

    return query.options(
        selectinload(SalesInvoice.items),
        selectinload(SalesInvoice.customer)
    ).offset(skip).limit(limit).all()


def _sync(db: Session, invoice: SalesInvoice, actor: str):
    """Bring payment status, ledger, feed and customer balance in line with the invoice."""
    db.flush()
    refresh_sales_invoice(db, invoice)
    if _is_live(invoice):
        ledger.post_document(
            db, invoice.user_id, TransactionType.SALES_INVOICE, invoice.id,
            invoice.invoice_date, invoice.total, invoice.invoice_number, actor
        )
    else:
        ledger.remove_document(db, invoice.user_id, TransactionType.SALES_INVOICE, invoice.id)
    transactions.record_transaction(
        db, invoice.user_id, TransactionType.SALES_INVOICE, invoice.id,
        invoice.total, invoice.invoice_date,
        f"Sales invoice {invoice.invoice_number} - {invoice.customer_name}",
        status=invoice.status,
        reference_number=invoice.invoice_number,
        actor=actor,
    )
    refresh_customer_balance(db, invoice.customer_id)


def _audit(db: Session, invoice_id: int, actor: str, action: str, old_values, new_values):
    create_audit_log(db, AuditLogCreate(
        table_name='sales_invoices',
        record_id=invoice_id,
        changed_by=actor,
        action=action,
        old_values=old_values or {},
        new_values=new_values or {}
    ))


def create_sales_invoice(db: Session, invoice: SalesInvoiceCreate, user_id: int, actor: str) -> SalesInvoice:
    get_active_counterparty(db, Customer, invoice.customer_id, user_id, "Customer")

    if invoice.invoice_number:
        ensure_unique_number(db, SalesInvoice, SalesInvoice.invoice_number, invoice.invoice_number, user_id)
        number = invoice.invoice_number
    else:
        number = next_document_number(db, SalesInvoice, SalesInvoice.invoice_number, user_id, NUMBER_PREFIX)

    db_invoice = SalesInvoice(
        user_id=user_id,
        invoice_number=number,
        invoice_date=invoice.invoice_date,
        due_date=invoice.due_date,
        customer_id=invoice.customer_id,
        status=InvoiceStatus.CANCELLED if invoice.status == InvoiceStatus.CANCELLED else InvoiceStatus.UNPAID,
        amount_paid=0,
        notes=invoice.notes,
        created_by=actor,
    )
    apply_document_totals(
        db, db_invoice, build_line_items(db, SalesInvoiceItem, invoice.items, user_id), user_id, invoice.tax
    )
    db.add(db_invoice)
    db.flush()  # Flush to get db_invoice.id before posting

    if _is_live(db_invoice):
        adjust_stock(db, db_invoice.items, STOCK_DIRECTION, user_id)
    _sync(db, db_invoice, actor)
    _audit(db, db_invoice.id, actor, 'CREATE', {}, sqlalchemy_to_dict(db_invoice))
    db.commit()

    logger.info(f"Sales invoice {db_invoice.invoice_number} (ID: {db_invoice.id}) created for customer {db_invoice.customer_id} by {actor}, total {db_invoice.total}")
    return get_sales_invoice(db, db_invoice.id, user_id)


def update_sales_invoice(db: Session, invoice_id: int, invoice_update: SalesInvoiceUpdate, user_id: int, actor: str) -> Optional[SalesInvoice]:
    """Partial update. A supplied item list replaces every existing item."""
    db_invoice = get_sales_invoice(db, invoice_id, user_id)
    if not db_invoice:
        return None

    old_values = sqlalchemy_to_dict(db_invoice)
    old_customer_id = db_invoice.customer_id
    paid = get_total_paid_for_sales_invoice(db, invoice_id)
    data = invoice_update.model_dump(exclude_unset=True)

    if 'customer_id' in data and data['customer_id'] != old_customer_id:
        if paid > 0:
            raise BusinessRuleError("Cannot change the customer of an invoice that has payments.")
        get_active_counterparty(db, Customer, data['customer_id'], user_id, "Customer")
    if 'invoice_number' in data:
        if not data['invoice_number']:
            raise BusinessRuleError("invoice_number cannot be empty.")
        ensure_unique_number(db, SalesInvoice, SalesInvoice.invoice_number, data['invoice_number'], user_id, exclude_id=invoice_id)

    # Undo the stock effect of the current items; re-applied below for the new state
    if _is_live(db_invoice):
        adjust_stock(db, db_invoice.items, -STOCK_DIRECTION, user_id)

    status_given = 'status' in data
    new_status = data.pop('status', None)
    items = data.pop('items', None)
    tax_given = 'tax' in data
    tax = data.pop('tax', None)

    for key, value in data.items():
        setattr(db_invoice, key, value)
    if db_invoice.customer_id != old_customer_id:
        db.expire(db_invoice, ['customer'])

    if status_given and new_status is not None:
        if new_status == InvoiceStatus.CANCELLED:
            if paid > 0:
                raise BusinessRuleError("Cannot cancel an invoice that has payments. Cancel the payments first.")
            db_invoice.status = InvoiceStatus.CANCELLED
        else:
            # Anything but cancelled is derived from payments in _sync
            db_invoice.status = InvoiceStatus.UNPAID

    if items is not None:
        apply_document_totals(
            db, db_invoice, build_line_items(db, SalesInvoiceItem, invoice_update.items, user_id), user_id,
            tax if tax_given else None
        )
    elif tax_given:
        db_invoice.tax, db_invoice.total = compute_totals(db, user_id, db_invoice.subtotal, tax)

    if db_invoice.due_date and db_invoice.due_date < db_invoice.invoice_date:
        raise BusinessRuleError("due_date cannot be before invoice_date")
    if db_invoice.total < paid:
        raise BusinessRuleError(f"Invoice total {db_invoice.total} cannot be less than the amount already paid ({paid}).")

    db_invoice.updated_by = actor
    db.flush()
    if _is_live(db_invoice):
        adjust_stock(db, db_invoice.items, STOCK_DIRECTION, user_id)
    _sync(db, db_invoice, actor)
    if old_customer_id != db_invoice.customer_id:
        refresh_customer_balance(db, old_customer_id)

    _audit(db, invoice_id, actor, 'UPDATE', old_values, sqlalchemy_to_dict(db_invoice))
    db.commit()

    logger.info(f"Sales invoice (ID: {invoice_id}) updated by {actor}")
    return get_sales_invoice(db, invoice_id, user_id)


def delete_sales_invoice(db: Session, invoice_id: int, user_id: int, actor: str) -> Optional[SalesInvoice]:
    """Soft-delete the invoice and withdraw its postings. Restorable with restore_sales_invoice."""
    db_invoice = get_sales_invoice(db, invoice_id, user_id)
    if not db_invoice:
        return None
    if get_total_paid_for_sales_invoice(db, invoice_id) > 0:
        raise ConflictError("Invoice has payments allocated to it. Delete or cancel those payments first.")

    old_values = sqlalchemy_to_dict(db_invoice)
    if _is_live(db_invoice):
        adjust_stock(db, db_invoice.items, -STOCK_DIRECTION, user_id)
    soft_delete(db_invoice, actor)
    ledger.remove_document(db, user_id, TransactionType.SALES_INVOICE, invoice_id)
    transactions.remove_transaction(db, user_id, TransactionType.SALES_INVOICE, invoice_id)
    db.flush()
    refresh_customer_balance(db, db_invoice.customer_id)

    _audit(db, invoice_id, actor, 'DELETE', old_values, sqlalchemy_to_dict(db_invoice))
    db.commit()
    logger.info(f"Sales invoice (ID: {invoice_id}) deleted by {actor}")
    return db_invoice


def restore_sales_invoice(db: Session, invoice_id: int, user_id: int, actor: str) -> Optional[SalesInvoice]:
    db_invoice = get_deleted(db, SalesInvoice, invoice_id, user_id)
    if not db_invoice:
        return None

    restore(db_invoice, actor)
    db.flush()
    if _is_live(db_invoice):
        adjust_stock(db, db_invoice.items, STOCK_DIRECTION, user_id)
    _sync(db, db_invoice, actor)
    _audit(db, invoice_id, actor, 'RESTORE', {}, sqlalchemy_to_dict(db_invoice))
    db.commit()
    logger.info(f"Sales invoice (ID: {invoice_id}) restored by {actor}")
    return get_sales_invoice(db, invoice_id, user_id)


def mark_overdue_invoices(db: Session, today: Optional[date] = None) -> int:
    """Flip unpaid invoices past their due date to overdue, across all users."""
    today = today or business_today()
    overdue = db.query(SalesInvoice).filter(
        SalesInvoice.status == InvoiceStatus.UNPAID,
        SalesInvoice.due_date.isnot(None),
        SalesInvoice.due_date < today
    ).all()
    for invoice in overdue:
        invoice.status = InvoiceStatus.OVERDUE
        transactions.record_transaction(
            db, invoice.user_id, TransactionType.SALES_INVOICE, invoice.id,
            invoice.total, invoice.invoice_date,
            f"Sales invoice {invoice.invoice_number} - {invoice.customer_name}",
            status=invoice.status,
            reference_number=invoice.invoice_number,
            actor="scheduler",
        )
    return len(overdue)
