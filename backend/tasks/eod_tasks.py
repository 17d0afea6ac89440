import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from database import SessionLocal
from models.audit_mixin import business_today
from crud import sales_invoices as crud_sales_invoices
from crud import purchase_invoices as crud_purchase_invoices

logger = logging.getLogger(__name__)


def run_eod_tasks(db: Optional[Session] = None, today: Optional[date] = None) -> dict:
    """
    End-of-day housekeeping.

    Unpaid sales and purchase invoices whose due date has passed are flagged as
    overdue. A session is opened when none is passed in.

    Args:
        db: Session to run in. The task owns (and closes) its own session otherwise.
        today: Reference date, defaults to today in APP_TIMEZONE.
    """
    owns_session = db is None
    db = db or SessionLocal()
    today = today or business_today()
    logger.info(f"Starting end-of-day tasks for {today}.")
    result = {"sales_invoices": 0, "purchase_invoices": 0}
    try:
        result["sales_invoices"] = crud_sales_invoices.mark_overdue_invoices(db, today)
        result["purchase_invoices"] = crud_purchase_invoices.mark_overdue_invoices(db, today)
        db.commit()
        logger.info(
            f"End-of-day tasks finished: {result['sales_invoices']} sales and "
            f"{result['purchase_invoices']} purchase invoices marked overdue."
        )
    except Exception as e:
        logger.error(f"Error during end-of-day tasks: {e}", exc_info=True)
        db.rollback()
    finally:
        if owns_session:
            db.close()
    return result
