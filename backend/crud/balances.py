"""
Derived balances: invoice amount_paid / status and counterparty running balances.

These are recomputed from the source rows (never incremented) so that any
sequence of create / update / delete / restore converges to the same numbers.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud.documents import money
from models.audit_mixin import business_today
from models.customers import Customer
from models.vendors import Vendor
from models.sales_invoices import SalesInvoice, InvoiceStatus
from models.purchase_invoices import PurchaseInvoice
from models.payments_in import PaymentIn, PaymentInItem, PaymentStatus
from models.payments_out import PaymentOut, PaymentOutItem
from models.sales_returns import SalesReturn, ReturnStatus
from models.purchase_returns import PurchaseReturn

logger = logging.getLogger("balances")

LIVE_RETURN_STATUSES = (ReturnStatus.APPROVED, ReturnStatus.COMPLETED)


def _sum(query) -> Decimal:
    return money(query.scalar())


def get_total_paid_for_sales_invoice(db: Session, invoice_id: int) -> Decimal:
    return _sum(db.query(func.sum(PaymentInItem.amount)).join(
        PaymentIn, PaymentInItem.payment_id == PaymentIn.id
    ).filter(
        PaymentInItem.invoice_id == invoice_id,
        PaymentIn.deleted_at.is_(None),
        PaymentIn.status != PaymentStatus.CANCELLED
    ))


def get_total_paid_for_purchase_invoice(db: Session, invoice_id: int) -> Decimal:
    return _sum(db.query(func.sum(PaymentOutItem.amount)).join(
        PaymentOut, PaymentOutItem.payment_id == PaymentOut.id
    ).filter(
        PaymentOutItem.invoice_id == invoice_id,
        PaymentOut.deleted_at.is_(None),
        PaymentOut.status != PaymentStatus.CANCELLED
    ))


def derive_invoice_status(invoice, today: Optional[date] = None) -> InvoiceStatus:
    """Status implied by payments and due date. Cancelled is sticky."""
    if invoice.status == InvoiceStatus.CANCELLED:
        return InvoiceStatus.CANCELLED
    today = today or business_today()
    paid = Decimal(invoice.amount_paid or 0)
    total = Decimal(invoice.total or 0)
    if total > 0 and paid >= total:
        return InvoiceStatus.PAID
    if paid > 0:
        return InvoiceStatus.PARTIALLY_PAID
    if invoice.due_date and invoice.due_date < today:
        return InvoiceStatus.OVERDUE
    return InvoiceStatus.UNPAID


def refresh_sales_invoice(db: Session, invoice: SalesInvoice):
    invoice.amount_paid = get_total_paid_for_sales_invoice(db, invoice.id)
    invoice.status = derive_invoice_status(invoice)


def refresh_purchase_invoice(db: Session, invoice: PurchaseInvoice):
    invoice.amount_paid = get_total_paid_for_purchase_invoice(db, invoice.id)
    invoice.status = derive_invoice_status(invoice)


def refresh_sales_invoices(db: Session, invoice_ids: Iterable[int]):
    for invoice_id in set(invoice_ids):
        invoice = db.query(SalesInvoice).filter(SalesInvoice.id == invoice_id).first()
        if invoice:
            refresh_sales_invoice(db, invoice)
    db.flush()


def refresh_purchase_invoices(db: Session, invoice_ids: Iterable[int]):
    for invoice_id in set(invoice_ids):
        invoice = db.query(PurchaseInvoice).filter(PurchaseInvoice.id == invoice_id).first()
        if invoice:
            refresh_purchase_invoice(db, invoice)
    db.flush()


def refresh_customer_balance(db: Session, customer_id: int):
    """outstanding = invoiced - received - returned; total_purchases = invoiced."""
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        return None
    db.flush()

    invoiced = _sum(db.query(func.sum(SalesInvoice.total)).filter(
        SalesInvoice.customer_id == customer_id,
        SalesInvoice.deleted_at.is_(None),
        SalesInvoice.status != InvoiceStatus.CANCELLED
    ))
    received = _sum(db.query(func.sum(PaymentIn.amount)).filter(
        PaymentIn.customer_id == customer_id,
        PaymentIn.deleted_at.is_(None),
        PaymentIn.status != PaymentStatus.CANCELLED
    ))
    returned = _sum(db.query(func.sum(SalesReturn.total)).filter(
        SalesReturn.customer_id == customer_id,
        SalesReturn.deleted_at.is_(None),
        SalesReturn.status.in_(LIVE_RETURN_STATUSES)
    ))

    customer.total_purchases = invoiced
    customer.outstanding_balance = invoiced - received - returned
    logger.debug(f"Customer {customer_id} balance refreshed: outstanding {customer.outstanding_balance}")
    return customer


def refresh_vendor_balance(db: Session, vendor_id: int):
    """outstanding = billed - paid - returned; also tracks the latest bill date."""
    vendor = db.query(Vendor).filter(Vendor.id == vendor_id).first()
    if not vendor:
        return None
    db.flush()

    billed = _sum(db.query(func.sum(PurchaseInvoice.total)).filter(
        PurchaseInvoice.vendor_id == vendor_id,
        PurchaseInvoice.deleted_at.is_(None),
        PurchaseInvoice.status != InvoiceStatus.CANCELLED
    ))
    paid = _sum(db.query(func.sum(PaymentOut.amount)).filter(
        PaymentOut.vendor_id == vendor_id,
        PaymentOut.deleted_at.is_(None),
        PaymentOut.status != PaymentStatus.CANCELLED
    ))
    returned = _sum(db.query(func.sum(PurchaseReturn.total)).filter(
        PurchaseReturn.vendor_id == vendor_id,
        PurchaseReturn.deleted_at.is_(None),
        PurchaseReturn.status.in_(LIVE_RETURN_STATUSES)
    ))
    last_purchase_date = db.query(func.max(PurchaseInvoice.invoice_date)).filter(
        PurchaseInvoice.vendor_id == vendor_id,
        PurchaseInvoice.deleted_at.is_(None),
        PurchaseInvoice.status != InvoiceStatus.CANCELLED
    ).scalar()

    vendor.total_purchases = billed
    vendor.outstanding_balance = billed - paid - returned
    vendor.last_purchase_date = last_purchase_date
    logger.debug(f"Vendor {vendor_id} balance refreshed: outstanding {vendor.outstanding_balance}")
    return vendor
