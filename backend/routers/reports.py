from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date
import logging

from database import get_db
from crud import reports as crud_reports
from models.users import User
from schemas.ledger import LedgerReport
from schemas.reports import DocumentReport, RecordReport
from schemas.transactions import TransactionReport
from utils.auth_utils import get_current_user
from utils.excel_export import xlsx_response

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
)
logger = logging.getLogger("reports")


def _period(start_date: Optional[date], end_date: Optional[date]) -> str:
    if start_date and end_date:
        return f"{start_date}_to_{end_date}"
    if start_date:
        return f"from_{start_date}"
    if end_date:
        return f"to_{end_date}"
    return "all"


def _validate_range(start_date: Optional[date], end_date: Optional[date]):
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")


def _document_sheets(report: DocumentReport, counterparty_label: str):
    return {
        "Invoices": [row.model_dump() for row in report.rows],
        "Summary": [report.summary.model_dump()],
        f"By {counterparty_label}": [row.model_dump() for row in report.by_counterparty],
        "By Product": [row.model_dump() for row in report.by_product],
        "By Date": [row.model_dump() for row in report.by_date],
        "By Status": [row.model_dump() for row in report.by_status],
    }


def _record_sheets(report: RecordReport, rows_label: str):
    return {
        rows_label: [row.model_dump() for row in report.rows],
        "Summary": [report.summary.model_dump()],
        "By Category": [row.model_dump() for row in report.by_category],
        "By Payment Method": [row.model_dump() for row in report.by_payment_method],
        "By Date": [row.model_dump() for row in report.by_date],
    }


@router.get("/sales", response_model=DocumentReport)
def get_sales_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Sales invoices in the period, grouped by customer, product, date and status."""
    _validate_range(start_date, end_date)
    return crud_reports.get_sales_report(db, user.id, start_date, end_date)


@router.get("/sales/export")
def export_sales_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _validate_range(start_date, end_date)
    report = crud_reports.get_sales_report(db, user.id, start_date, end_date)
    logger.info(f"Exporting sales report for user {user.id} ({len(report.rows)} rows)")
    return xlsx_response(_document_sheets(report, "Customer"), f"sales_report_{_period(start_date, end_date)}.xlsx")


@router.get("/purchases", response_model=DocumentReport)
def get_purchase_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _validate_range(start_date, end_date)
    return crud_reports.get_purchase_report(db, user.id, start_date, end_date)


@router.get("/purchases/export")
def export_purchase_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _validate_range(start_date, end_date)
    report = crud_reports.get_purchase_report(db, user.id, start_date, end_date)
    logger.info(f"Exporting purchase report for user {user.id} ({len(report.rows)} rows)")
    return xlsx_response(_document_sheets(report, "Vendor"), f"purchase_report_{_period(start_date, end_date)}.xlsx")


@router.get("/income", response_model=RecordReport)
def get_income_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _validate_range(start_date, end_date)
    return crud_reports.get_income_report(db, user.id, start_date, end_date, category_id)


@router.get("/income/export")
def export_income_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _validate_range(start_date, end_date)
    report = crud_reports.get_income_report(db, user.id, start_date, end_date, category_id)
    return xlsx_response(_record_sheets(report, "Income"), f"income_report_{_period(start_date, end_date)}.xlsx")


@router.get("/expenses", response_model=RecordReport)
def get_expense_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _validate_range(start_date, end_date)
    return crud_reports.get_expense_report(db, user.id, start_date, end_date, category_id)


@router.get("/expenses/export")
def export_expense_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    category_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _validate_range(start_date, end_date)
    report = crud_reports.get_expense_report(db, user.id, start_date, end_date, category_id)
    return xlsx_response(_record_sheets(report, "Expenses"), f"expense_report_{_period(start_date, end_date)}.xlsx")


@router.get("/ledger", response_model=LedgerReport)
def get_ledger_report(
    account_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _validate_range(start_date, end_date)
    report = crud_reports.get_ledger_report(db, user.id, account_id, start_date, end_date)
    if report is None:
        raise HTTPException(status_code=404, detail="Account group not found")
    return report


@router.get("/ledger/export")
def export_ledger_report(
    account_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _validate_range(start_date, end_date)
    report = crud_reports.get_ledger_report(db, user.id, account_id, start_date, end_date)
    if report is None:
        raise HTTPException(status_code=404, detail="Account group not found")
    summary = report.model_dump(exclude={"entries"})
    return xlsx_response(
        {"Ledger": [entry.model_dump() for entry in report.entries], "Summary": [summary]},
        f"ledger_report_{_period(start_date, end_date)}.xlsx"
    )


@router.get("/transactions", response_model=TransactionReport)
def get_transaction_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _validate_range(start_date, end_date)
    return crud_reports.get_transaction_report(db, user.id, start_date, end_date)


@router.get("/transactions/export")
def export_transaction_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    _validate_range(start_date, end_date)
    report = crud_reports.get_transaction_report(db, user.id, start_date, end_date)
    return xlsx_response(
        {
            "Transactions": [row.model_dump() for row in report.transactions],
            "Summary": [row.model_dump() for row in report.summary],
        },
        f"transaction_report_{_period(start_date, end_date)}.xlsx"
    )
