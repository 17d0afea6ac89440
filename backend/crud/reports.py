"""
Sales, purchase, income, expense, ledger and transaction reports.

Reports load the matching rows once and aggregate in Python so every grouping
uses exactly the same row set as the listing.
"""

import logging
from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from crud import transactions as crud_transactions
from crud.documents import money
from crud.financial_reports import normal_balance
from crud.ledger import get_ledger_entries_by_account
from crud.account_groups import get_account_group
from models.enums import RecordStatus
from models.expenses import Expense
from models.incomes import Income
from models.ledger_entries import EntryType
from models.products import Product
from models.purchase_invoices import PurchaseInvoice
from models.sales_invoices import SalesInvoice, InvoiceStatus
from schemas.ledger import LedgerReport, LedgerReportEntry
from schemas.reports import (
    CategoryTotal, CounterpartyTotal, DateTotal, DocumentReport, DocumentReportRow, DocumentReportSummary,
    PaymentMethodTotal, ProductTotal, RecordReport, RecordReportRow, RecordReportSummary, StatusTotal,
)
from schemas.transactions import TransactionReport
from utils.listing import apply_date_range

logger = logging.getLogger("reports")


def _average(total: Decimal, count: int) -> Decimal:
    return money(total / count) if count else Decimal("0.00")


def _document_report(documents, counterparty_id_attr: str, counterparty_name_attr: str, cost_prices, start_date, end_date) -> DocumentReport:
    rows = []
    by_counterparty = OrderedDict()
    by_product = OrderedDict()
    by_date = OrderedDict()
    by_status = OrderedDict()
    summary = {"total": Decimal(0), "subtotal": Decimal(0), "tax": Decimal(0), "amount_paid": Decimal(0), "balance_due": Decimal(0)}
    count = 0

    for doc in documents:
        counterparty_id = getattr(doc, counterparty_id_attr)
        counterparty_name = getattr(doc, counterparty_name_attr)
        rows.append(DocumentReportRow(
            id=doc.id,
            number=doc.invoice_number,
            date=doc.invoice_date,
            counterparty_id=counterparty_id,
            counterparty_name=counterparty_name,
            status=doc.status.value,
            subtotal=doc.subtotal,
            tax=doc.tax,
            total=doc.total,
            amount_paid=doc.amount_paid,
            balance_due=doc.balance_due,
        ))

        status_total = by_status.setdefault(doc.status.value, {"count": 0, "total": Decimal(0)})
        status_total["count"] += 1
        status_total["total"] += doc.total

        if doc.status == InvoiceStatus.CANCELLED:
            continue

        count += 1
        summary["total"] += doc.total
        summary["subtotal"] += doc.subtotal
        summary["tax"] += doc.tax
        summary["amount_paid"] += doc.amount_paid
        summary["balance_due"] += doc.balance_due

        party = by_counterparty.setdefault(counterparty_id, {"name": counterparty_name, "count": 0, "total": Decimal(0)})
        party["count"] += 1
        party["total"] += doc.total

        day = by_date.setdefault(doc.invoice_date, {"count": 0, "total": Decimal(0)})
        day["count"] += 1
        day["total"] += doc.total

        for item in doc.items:
            key = item.product_id if item.product_id is not None else f"text:{item.description}"
            product = by_product.setdefault(key, {
                "product_id": item.product_id,
                "description": item.description or "",
                "quantity": Decimal(0),
                "amount": Decimal(0),
                "cost_of_goods": Decimal(0),
            })
            product["quantity"] += Decimal(item.quantity)
            product["amount"] += item.line_total
            if item.product_id is not None:
                product["cost_of_goods"] += Decimal(item.quantity) * cost_prices.get(item.product_id, Decimal(0))

    return DocumentReport(
        start_date=start_date,
        end_date=end_date,
        rows=rows,
        summary=DocumentReportSummary(
            total=money(summary["total"]),
            subtotal=money(summary["subtotal"]),
            tax=money(summary["tax"]),
            amount_paid=money(summary["amount_paid"]),
            balance_due=money(summary["balance_due"]),
            count=count,
            average=_average(summary["total"], count),
        ),
        by_counterparty=sorted(
            [CounterpartyTotal(counterparty_id=k, counterparty_name=v["name"], count=v["count"], total=money(v["total"]))
             for k, v in by_counterparty.items()],
            key=lambda c: c.total, reverse=True
        ),
        by_product=sorted(
            [ProductTotal(
                product_id=v["product_id"], description=v["description"], quantity=v["quantity"],
                amount=money(v["amount"]), cost_of_goods=money(v["cost_of_goods"])
            ) for v in by_product.values()],
            key=lambda p: p.amount, reverse=True
        ),
        by_date=[DateTotal(date=k, count=v["count"], total=money(v["total"])) for k, v in sorted(by_date.items())],
        by_status=[StatusTotal(status=k, count=v["count"], total=money(v["total"])) for k, v in by_status.items()],
    )


def _cost_prices(db: Session, user_id: int):
    return {row.id: Decimal(row.cost_price or 0) for row in db.query(Product.id, Product.cost_price).filter(Product.user_id == user_id).all()}


def get_sales_report(db: Session, user_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None) -> DocumentReport:
    query = db.query(SalesInvoice).options(
        selectinload(SalesInvoice.items),
        selectinload(SalesInvoice.customer)
    ).filter(SalesInvoice.user_id == user_id)
    query = apply_date_range(query, SalesInvoice.invoice_date, start_date, end_date)
    invoices = query.order_by(SalesInvoice.invoice_date, SalesInvoice.id).all()
    logger.debug(f"Sales report for user {user_id}: {len(invoices)} invoices")
    return _document_report(invoices, "customer_id", "customer_name", _cost_prices(db, user_id), start_date, end_date)


def get_purchase_report(db: Session, user_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None) -> DocumentReport:
    query = db.query(PurchaseInvoice).options(
        selectinload(PurchaseInvoice.items),
        selectinload(PurchaseInvoice.vendor)
    ).filter(PurchaseInvoice.user_id == user_id)
    query = apply_date_range(query, PurchaseInvoice.invoice_date, start_date, end_date)
    invoices = query.order_by(PurchaseInvoice.invoice_date, PurchaseInvoice.id).all()
    logger.debug(f"Purchase report for user {user_id}: {len(invoices)} invoices")
    return _document_report(invoices, "vendor_id", "vendor_name", _cost_prices(db, user_id), start_date, end_date)


def _record_report(records, start_date, end_date) -> RecordReport:
    rows = []
    by_category = OrderedDict()
    by_method = OrderedDict()
    by_date = OrderedDict()
    amounts = []

    for record in records:
        rows.append(RecordReportRow(
            id=record.id,
            date=record.date,
            category_id=record.category_id,
            category_name=record.category_name,
            description=record.description,
            payment_method=record.payment_method.value,
            reference_number=record.reference_number,
            status=record.status.value,
            amount=record.amount,
        ))
        amounts.append(Decimal(record.amount))

        category = by_category.setdefault(record.category_id, {"name": record.category_name, "count": 0, "total": Decimal(0)})
        category["count"] += 1
        category["total"] += record.amount

        method = by_method.setdefault(record.payment_method.value, {"count": 0, "total": Decimal(0)})
        method["count"] += 1
        method["total"] += record.amount

        day = by_date.setdefault(record.date, {"count": 0, "total": Decimal(0)})
        day["count"] += 1
        day["total"] += record.amount

    total = sum(amounts, Decimal(0))
    return RecordReport(
        start_date=start_date,
        end_date=end_date,
        rows=rows,
        summary=RecordReportSummary(
            total=money(total),
            count=len(amounts),
            average=_average(total, len(amounts)),
            max=money(max(amounts)) if amounts else Decimal("0.00"),
            min=money(min(amounts)) if amounts else Decimal("0.00"),
        ),
        by_category=sorted(
            [CategoryTotal(
                category_id=k, category_name=v["name"], count=v["count"], total=money(v["total"]),
                percentage=money(v["total"] * 100 / total) if total else Decimal("0.00")
            ) for k, v in by_category.items()],
            key=lambda c: c.total, reverse=True
        ),
        by_payment_method=sorted(
            [PaymentMethodTotal(payment_method=k, count=v["count"], total=money(v["total"])) for k, v in by_method.items()],
            key=lambda m: m.total, reverse=True
        ),
        by_date=[DateTotal(date=k, count=v["count"], total=money(v["total"])) for k, v in sorted(by_date.items())],
    )


def get_income_report(db: Session, user_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None,
                      category_id: Optional[int] = None) -> RecordReport:
    query = db.query(Income).options(selectinload(Income.category)).filter(
        Income.user_id == user_id,
        Income.status != RecordStatus.CANCELLED
    )
    if category_id:
        query = query.filter(Income.category_id == category_id)
    query = apply_date_range(query, Income.date, start_date, end_date)
    return _record_report(query.order_by(Income.date, Income.id).all(), start_date, end_date)


def get_expense_report(db: Session, user_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None,
                       category_id: Optional[int] = None) -> RecordReport:
    query = db.query(Expense).options(selectinload(Expense.category)).filter(
        Expense.user_id == user_id,
        Expense.status != RecordStatus.CANCELLED
    )
    if category_id:
        query = query.filter(Expense.category_id == category_id)
    query = apply_date_range(query, Expense.date, start_date, end_date)
    return _record_report(query.order_by(Expense.date, Expense.id).all(), start_date, end_date)


def get_ledger_report(db: Session, user_id: int, account_id: Optional[int] = None,
                      start_date: Optional[date] = None, end_date: Optional[date] = None) -> Optional[LedgerReport]:
    """
    Ledger entries in date order with a running balance per account group.

    Balances follow each group's normal side (debit for assets and expenses,
    credit otherwise). Returns None when ``account_id`` names no group of the user.
    """
    account = None
    if account_id:
        account = get_account_group(db, account_id, user_id)
        if account is None:
            return None

    running = {}
    if start_date:
        for entry, group in get_ledger_entries_by_account(db, user_id, account_id, end_date=start_date - timedelta(days=1)):
            debit, credit = _split(entry)
            running[group.id] = running.get(group.id, Decimal(0)) + normal_balance(group.type, debit, credit)
    opening_balance = running.get(account.id, Decimal(0)) if account else Decimal(0)

    entries = []
    total_debit = Decimal(0)
    total_credit = Decimal(0)
    for entry, group in get_ledger_entries_by_account(db, user_id, account_id, start_date, end_date):
        debit, credit = _split(entry)
        total_debit += debit
        total_credit += credit
        running[group.id] = running.get(group.id, Decimal(0)) + normal_balance(group.type, debit, credit)
        entries.append(LedgerReportEntry(
            id=entry.id,
            date=entry.date,
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
            account_id=entry.account_id,
            entry_type=entry.entry_type,
            amount=entry.amount,
            description=entry.description,
            account_name=group.name,
            account_type=group.type,
            debit=debit,
            credit=credit,
            balance=money(running[group.id]),
        ))

    if account:
        closing_balance = running.get(account.id, Decimal(0))
    else:
        # Across all groups debits and credits cancel out
        closing_balance = total_debit - total_credit

    return LedgerReport(
        account_id=account.id if account else None,
        account_name=account.name if account else None,
        start_date=start_date,
        end_date=end_date,
        opening_balance=money(opening_balance),
        total_debit=money(total_debit),
        total_credit=money(total_credit),
        closing_balance=money(closing_balance),
        entries=entries,
    )


def _split(entry):
    amount = Decimal(entry.amount)
    if entry.entry_type == EntryType.DEBIT:
        return amount, Decimal(0)
    return Decimal(0), amount


def get_transaction_report(db: Session, user_id: int, start_date: Optional[date] = None, end_date: Optional[date] = None,
                           limit: int = 1000) -> TransactionReport:
    summary = crud_transactions.get_transaction_summary_by_type(db, user_id, start_date, end_date)
    rows = crud_transactions.get_transactions(db, user_id, start_date=start_date, end_date=end_date, limit=limit)
    return TransactionReport(
        start_date=start_date,
        end_date=end_date,
        net_total=money(sum((s["total"] for s in summary), Decimal(0))),
        summary=summary,
        transactions=rows,
    )
