import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from crud import ledger, transactions
from crud.audit_log import create_audit_log
from crud.balances import refresh_sales_invoices, refresh_customer_balance, get_total_paid_for_sales_invoice
from crud.documents import (
    ensure_unique_number, get_active_counterparty, get_deleted, money, next_document_number, restore, soft_delete,
)
from crud.exceptions import BusinessRuleError
from models.customers import Customer
from models.payments_in import PaymentIn, PaymentInItem, PaymentStatus
from models.sales_invoices import SalesInvoice, InvoiceStatus
from models.transactions import TransactionType
from schemas.audit_log import AuditLogCreate
from schemas.payments_in import PaymentInCreate, PaymentInUpdate
from utils import sqlalchemy_to_dict
from utils.listing import apply_search, apply_sort, apply_date_range

logger = logging.getLogger("payments_in")

NUMBER_PREFIX = "PAY-IN"


def get_payment_in(db: Session, payment_id: int, user_id: int) -> Optional[PaymentIn]:
    return db.query(PaymentIn).options(
        selectinload(PaymentIn.items).selectinload(PaymentInItem.invoice),
        selectinload(PaymentIn.customer)
    ).filter(PaymentIn.id == payment_id, PaymentIn.user_id == user_id).first()


def get_payments_in(
    db: Session,
    user_id: int,
    status: Optional[PaymentStatus] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = "newest",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(PaymentIn).outerjoin(
        Customer, PaymentIn.customer_id == Customer.id
    ).filter(PaymentIn.user_id == user_id)

    if status:
        query = query.filter(PaymentIn.status == status)
    if customer_id:
        query = query.filter(PaymentIn.customer_id == customer_id)
    query = apply_date_range(query, PaymentIn.payment_date, start_date, end_date)
    query = apply_search(query, search, PaymentIn.payment_number, PaymentIn.reference_number, Customer.name)
    query = apply_sort(query, sort, PaymentIn.payment_date, PaymentIn.amount, PaymentIn.id)

    return query.options(
        selectinload(PaymentIn.items).selectinload(PaymentInItem.invoice),
        selectinload(PaymentIn.customer)
    ).offset(skip).limit(limit).all()


def get_payments_for_invoice(db: Session, invoice_id: int, user_id: int):
    """Every live payment with an allocation to the given sales invoice."""
    return db.query(PaymentIn).join(
        PaymentInItem, PaymentInItem.payment_id == PaymentIn.id
    ).filter(
        PaymentInItem.invoice_id == invoice_id,
        PaymentIn.user_id == user_id
    ).options(selectinload(PaymentIn.items)).order_by(PaymentIn.payment_date, PaymentIn.id).distinct().all()


def get_total_paid_for_invoice(db: Session, invoice_id: int, user_id: int) -> Optional[Decimal]:
    invoice = db.query(SalesInvoice.id).filter(
        SalesInvoice.id == invoice_id, SalesInvoice.user_id == user_id, SalesInvoice.deleted_at.is_(None)
    ).first()
    if invoice is None:
        return None
    return get_total_paid_for_sales_invoice(db, invoice_id)


def _paid_by_others(db: Session, invoice_id: int, payment_id: Optional[int]) -> Decimal:
    query = db.query(func.sum(PaymentInItem.amount)).join(
        PaymentIn, PaymentInItem.payment_id == PaymentIn.id
    ).filter(
        PaymentInItem.invoice_id == invoice_id,
        PaymentIn.deleted_at.is_(None),
        PaymentIn.status != PaymentStatus.CANCELLED
    )
    if payment_id is not None:
        query = query.filter(PaymentIn.id != payment_id)
    return money(query.scalar())


def _build_allocations(db: Session, items_data, customer_id: int, user_id: int, payment_id: Optional[int], check_remaining: bool):
    """
    Validate invoice allocations and return ``(rows, total)``.

    Each invoice must belong to the user and the payment's customer and must not be
    cancelled. Unless the payment is cancelled, allocations cannot exceed what is
    still due on the invoice, ignoring this payment's own earlier allocations.
    """
    rows = []
    per_invoice = defaultdict(Decimal)
    invoices = {}
    for item in items_data:
        invoice = invoices.get(item.invoice_id)
        if invoice is None:
            invoice = db.query(SalesInvoice).filter(
                SalesInvoice.id == item.invoice_id,
                SalesInvoice.user_id == user_id
            ).first()
            if not invoice:
                raise BusinessRuleError(f"Sales invoice with ID {item.invoice_id} not found.")
            if invoice.status == InvoiceStatus.CANCELLED:
                raise BusinessRuleError(f"Invoice {invoice.invoice_number} is cancelled and cannot take payments.")
            if invoice.customer_id != customer_id:
                raise BusinessRuleError(f"Invoice {invoice.invoice_number} belongs to a different customer.")
            invoices[invoice.id] = invoice

        amount = money(item.amount)
        per_invoice[invoice.id] += amount
        rows.append(PaymentInItem(invoice_id=invoice.id, amount=amount, notes=item.notes))

    if check_remaining:
        for invoice_id, allocated in per_invoice.items():
            invoice = invoices[invoice_id]
            remaining = Decimal(invoice.total) - _paid_by_others(db, invoice_id, payment_id)
            if allocated > remaining:
                raise BusinessRuleError(
                    f"Payment of {allocated} exceeds the {remaining} still due on invoice {invoice.invoice_number}."
                )
    return rows, money(sum(per_invoice.values(), Decimal(0)))


def _resolve_amount(allocated_total: Decimal, has_items: bool, amount) -> Decimal:
    """With allocations the header amount is their sum; without, it is required."""
    if has_items:
        if amount is not None and money(amount) != allocated_total:
            raise BusinessRuleError(
                f"Payment amount {money(amount)} does not match the sum of its invoice allocations ({allocated_total})."
            )
        return allocated_total
    if amount is None or Decimal(amount) <= 0:
        raise BusinessRuleError("Payment amount must be greater than zero.")
    return money(amount)


def _sync(db: Session, payment: PaymentIn, invoice_ids, actor: str):
    db.flush()
    refresh_sales_invoices(db, invoice_ids)
    if payment.status != PaymentStatus.CANCELLED:
        ledger.post_document(
            db, payment.user_id, TransactionType.PAYMENT_IN, payment.id,
            payment.payment_date, payment.amount, payment.payment_number, actor
        )
    else:
        ledger.remove_document(db, payment.user_id, TransactionType.PAYMENT_IN, payment.id)
    transactions.record_transaction(
        db, payment.user_id, TransactionType.PAYMENT_IN, payment.id,
        payment.amount, payment.payment_date,
        f"Payment {payment.payment_number} from {payment.customer_name}",
        status=payment.status,
        payment_method=payment.payment_method,
        reference_number=payment.reference_number,
        actor=actor,
    )
    refresh_customer_balance(db, payment.customer_id)


def _audit(db: Session, payment_id: int, actor: str, action: str, old_values, new_values):
    create_audit_log(db, AuditLogCreate(
        table_name='payments_in',
        record_id=payment_id,
        changed_by=actor,
        action=action,
        old_values=old_values or {},
        new_values=new_values or {}
    ))


def create_payment_in(db: Session, payment: PaymentInCreate, user_id: int, actor: str) -> PaymentIn:
    get_active_counterparty(db, Customer, payment.customer_id, user_id, "Customer")

    if payment.payment_number:
        ensure_unique_number(db, PaymentIn, PaymentIn.payment_number, payment.payment_number, user_id)
        number = payment.payment_number
    else:
        number = next_document_number(db, PaymentIn, PaymentIn.payment_number, user_id, NUMBER_PREFIX)

    rows, allocated = _build_allocations(
        db, payment.items, payment.customer_id, user_id, None,
        check_remaining=payment.status != PaymentStatus.CANCELLED
    )
    db_payment = PaymentIn(
        user_id=user_id,
        payment_number=number,
        customer_id=payment.customer_id,
        payment_date=payment.payment_date,
        payment_method=payment.payment_method,
        reference_number=payment.reference_number,
        status=payment.status,
        amount=_resolve_amount(allocated, bool(rows), payment.amount),
        notes=payment.notes,
        created_by=actor,
        items=rows,
    )
    db.add(db_payment)
    db.flush()

    _sync(db, db_payment, [row.invoice_id for row in rows], actor)
    _audit(db, db_payment.id, actor, 'CREATE', {}, sqlalchemy_to_dict(db_payment))
    db.commit()

    logger.info(f"Payment {db_payment.payment_number} (ID: {db_payment.id}) of {db_payment.amount} received from customer {db_payment.customer_id} by {actor}")
    return get_payment_in(db, db_payment.id, user_id)


def update_payment_in(db: Session, payment_id: int, payment_update: PaymentInUpdate, user_id: int, actor: str) -> Optional[PaymentIn]:
    """Partial update. A supplied item list replaces every existing allocation."""
    db_payment = get_payment_in(db, payment_id, user_id)
    if not db_payment:
        return None

    old_values = sqlalchemy_to_dict(db_payment)
    old_customer_id = db_payment.customer_id
    old_invoice_ids = [item.invoice_id for item in db_payment.items]
    data = payment_update.model_dump(exclude_unset=True)

    if 'customer_id' in data and data['customer_id'] != old_customer_id:
        get_active_counterparty(db, Customer, data['customer_id'], user_id, "Customer")
    if 'payment_number' in data:
        if not data['payment_number']:
            raise BusinessRuleError("payment_number cannot be empty.")
        ensure_unique_number(db, PaymentIn, PaymentIn.payment_number, data['payment_number'], user_id, exclude_id=payment_id)

    items = payment_update.items if 'items' in data and data['items'] is not None else list(db_payment.items)
    data.pop('items', None)
    amount = data.pop('amount', None)
    for key in ('status', 'payment_method'):
        if data.get(key) is None:
            data.pop(key, None)

    customer_id = data.get('customer_id', old_customer_id)
    status = data.get('status', db_payment.status)
    rows, allocated = _build_allocations(
        db, items, customer_id, user_id, payment_id,
        check_remaining=status != PaymentStatus.CANCELLED
    )
    if amount is None and not rows:
        amount = db_payment.amount
    new_amount = _resolve_amount(allocated, bool(rows), amount)

    for key, value in data.items():
        setattr(db_payment, key, value)
    if db_payment.customer_id != old_customer_id:
        db.expire(db_payment, ['customer'])
    db_payment.items = rows
    db_payment.amount = new_amount
    db_payment.updated_by = actor
    db.flush()

    _sync(db, db_payment, old_invoice_ids + [row.invoice_id for row in rows], actor)
    if old_customer_id != db_payment.customer_id:
        refresh_customer_balance(db, old_customer_id)

    _audit(db, payment_id, actor, 'UPDATE', old_values, sqlalchemy_to_dict(db_payment))
    db.commit()
    logger.info(f"Payment in (ID: {payment_id}) updated by {actor}")
    return get_payment_in(db, payment_id, user_id)


def delete_payment_in(db: Session, payment_id: int, user_id: int, actor: str) -> Optional[PaymentIn]:
    """Soft-delete the payment; the invoices it paid go back to owing the money."""
    db_payment = get_payment_in(db, payment_id, user_id)
    if not db_payment:
        return None

    old_values = sqlalchemy_to_dict(db_payment)
    soft_delete(db_payment, actor)
    ledger.remove_document(db, user_id, TransactionType.PAYMENT_IN, payment_id)
    transactions.remove_transaction(db, user_id, TransactionType.PAYMENT_IN, payment_id)
    db.flush()
    refresh_sales_invoices(db, [item.invoice_id for item in db_payment.items])
    refresh_customer_balance(db, db_payment.customer_id)

    _audit(db, payment_id, actor, 'DELETE', old_values, sqlalchemy_to_dict(db_payment))
    db.commit()
    logger.info(f"Payment in (ID: {payment_id}) deleted by {actor}")
    return db_payment


def restore_payment_in(db: Session, payment_id: int, user_id: int, actor: str) -> Optional[PaymentIn]:
    db_payment = get_deleted(db, PaymentIn, payment_id, user_id)
    if not db_payment:
        return None

    # The allocated invoices may have been deleted, cancelled or paid by others meanwhile
    _build_allocations(
        db, db_payment.items, db_payment.customer_id, user_id, payment_id,
        check_remaining=db_payment.status != PaymentStatus.CANCELLED
    )
    restore(db_payment, actor)
    _sync(db, db_payment, [item.invoice_id for item in db_payment.items], actor)
    _audit(db, payment_id, actor, 'RESTORE', {}, sqlalchemy_to_dict(db_payment))
    db.commit()
    logger.info(f"Payment in (ID: {payment_id}) restored by {actor}")
    return get_payment_in(db, payment_id, user_id)
