from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from crud import categories as crud_categories
from models.categories import ExpenseCategory
from models.users import User
from schemas.categories import Category, CategoryCreate, CategoryUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/expense-categories", tags=["Expense Categories"])
logger = logging.getLogger("expense_categories")

@router.post("/", response_model=Category, status_code=status.HTTP_201_CREATED)
def create_expense_category(category: CategoryCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return crud_categories.create_category(db, ExpenseCategory, category, user.id, get_user_identifier(user))

@router.get("/", response_model=List[Category])
def read_expense_categories(search: Optional[str] = None, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return crud_categories.get_categories(db, ExpenseCategory, user.id, search=search)

@router.get("/{category_id}", response_model=Category)
def read_expense_category(category_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_category = crud_categories.get_category(db, ExpenseCategory, category_id, user.id)
    if db_category is None:
        raise HTTPException(status_code=404, detail="Expense category not found")
    return db_category

@router.patch("/{category_id}", response_model=Category)
def update_expense_category(
    category_id: int,
    category: CategoryUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    db_category = crud_categories.update_category(db, ExpenseCategory, category_id, category, user.id, get_user_identifier(user))
    if db_category is None:
        raise HTTPException(status_code=404, detail="Expense category not found")
    return db_category

@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense_category(category_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Categories still referenced by expense records (deleted ones included) are rejected with 409."""
    db_category = crud_categories.delete_category(db, ExpenseCategory, category_id, user.id, get_user_identifier(user))
    if db_category is None:
        raise HTTPException(status_code=404, detail="Expense category not found")
    return None
