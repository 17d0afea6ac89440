from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db
from crud import expenses as crud_expenses
from models.enums import RecordStatus
from models.users import User
from schemas.expenses import Expense, ExpenseCreate, ExpenseUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/expenses", tags=["Expenses"])
logger = logging.getLogger("expenses")

@router.post("/", response_model=Expense, status_code=status.HTTP_201_CREATED)
def create_expense(
    expense: ExpenseCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Record a business expense. Posted to the ledger unless cancelled."""
    return crud_expenses.create_expense(db, expense, user.id, get_user_identifier(user))

@router.get("/", response_model=List[Expense])
def read_expenses(
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
    return crud_expenses.get_expenses(
        db, user.id, status=status, category_id=category_id, search=search, sort=sort,
        start_date=start_date, end_date=end_date, skip=skip, limit=limit
    )

@router.get("/{expense_id}", response_model=Expense)
def read_expense(expense_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_expense = crud_expenses.get_expense(db, expense_id, user.id)
    if db_expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return db_expense

@router.patch("/{expense_id}", response_model=Expense)
def update_expense(
    expense_id: int,
    expense: ExpenseUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    db_expense = crud_expenses.update_expense(db, expense_id, expense, user.id, get_user_identifier(user))
    if db_expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return db_expense

@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(expense_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_expense = crud_expenses.delete_expense(db, expense_id, user.id, get_user_identifier(user))
    if db_expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return None

@router.post("/{expense_id}/restore", response_model=Expense)
def restore_expense(expense_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_expense = crud_expenses.restore_expense(db, expense_id, user.id, get_user_identifier(user))
    if db_expense is None:
        raise HTTPException(status_code=404, detail="Deleted expense not found")
    return db_expense
