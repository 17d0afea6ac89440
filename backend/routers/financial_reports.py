from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from database import get_db
from schemas.financial_reports import ProfitAndLoss, BalanceSheet
from crud import financial_reports as crud_financial_reports
from datetime import date
from typing import Optional
from models.audit_mixin import business_today
from models.users import User
from utils.auth_utils import get_current_user

router = APIRouter(
    prefix="/financial-reports",
    tags=["Financial Reports"],
)

@router.get("/profit-and-loss", response_model=ProfitAndLoss)
def get_profit_and_loss(
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    if start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    return crud_financial_reports.get_profit_and_loss(
        db=db,
        start_date=start_date,
        end_date=end_date,
        user_id=user.id
    )

@router.get("/balance-sheet", response_model=BalanceSheet)
def get_balance_sheet(
    as_of_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Balances of every account group up to and including ``as_of_date`` (today when omitted)."""
    return crud_financial_reports.get_balance_sheet(db=db, as_of_date=as_of_date or business_today(), user_id=user.id)
