from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from database import get_db
from crud import ledger as crud_ledger
from crud import reports as crud_reports
from models.transactions import TransactionType
from models.users import User
from schemas.ledger import LedgerEntry, LedgerReport
from utils.auth_utils import get_current_user

router = APIRouter(prefix="/ledger", tags=["Ledger"])

@router.get("/", response_model=LedgerReport)
def read_ledger(
    account_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Ledger entries with running balances, for one account group or all of them."""
    report = crud_reports.get_ledger_report(db, user.id, account_id, start_date, end_date)
    if report is None:
        raise HTTPException(status_code=404, detail="Account group not found")
    return report

@router.get("/reference/{reference_type}/{reference_id}", response_model=List[LedgerEntry])
def read_ledger_entries_by_reference(
    reference_type: TransactionType,
    reference_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return crud_ledger.get_ledger_entries_by_reference(db, user.id, reference_type, reference_id)
