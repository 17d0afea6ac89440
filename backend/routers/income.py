from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db
from crud import incomes as crud_incomes
from models.enums import RecordStatus
from models.users import User
from schemas.incomes import Income, IncomeCreate, IncomeUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/income", tags=["Income"])
logger = logging.getLogger("income")

@router.post("/", response_model=Income, status_code=status.HTTP_201_CREATED)
def create_income(
    income: IncomeCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Record income outside of sales invoices. Posted to the ledger unless cancelled."""
    return crud_incomes.create_income(db, income, user.id, get_user_identifier(user))

@router.get("/", response_model=List[Income])
def read_incomes(
    status: Optional[RecordStatus] = None,
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = "newest",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return crud_incomes.get_incomes(
        db, user.id, status=status, category_id=category_id, search=search, sort=sort,
        start_date=start_date, end_date=end_date, skip=skip, limit=limit
    )

@router.get("/{income_id}", response_model=Income)
def read_income(income_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_income = crud_incomes.get_income(db, income_id, user.id)
    if db_income is None:
        raise HTTPException(status_code=404, detail="Income not found")
    return db_income

@router.patch("/{income_id}", response_model=Income)
def update_income(
    income_id: int,
    income: IncomeUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    db_income = crud_incomes.update_income(db, income_id, income, user.id, get_user_identifier(user))
    if db_income is None:
        raise HTTPException(status_code=404, detail="Income not found")
    return db_income

@router.delete("/{income_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_income(income_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_income = crud_incomes.delete_income(db, income_id, user.id, get_user_identifier(user))
    if db_income is None:
        raise HTTPException(status_code=404, detail="Income not found")
    return None

@router.post("/{income_id}/restore", response_model=Income)
def restore_income(income_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_income = crud_incomes.restore_income(db, income_id, user.id, get_user_identifier(user))
    if db_income is None:
        raise HTTPException(status_code=404, detail="Deleted income not found")
    return db_income
