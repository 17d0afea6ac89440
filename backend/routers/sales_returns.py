from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db
from crud import sales_returns as crud_sales_returns
from models.sales_returns import ReturnStatus
from models.users import User
from schemas.sales_returns import SalesReturn, SalesReturnCreate, SalesReturnUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/sales-returns", tags=["Sales Returns"])
logger = logging.getLogger("sales_returns")

@router.post("/", response_model=SalesReturn, status_code=status.HTTP_201_CREATED)
def create_sales_return(
    sales_return: SalesReturnCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Record goods returned by a customer. Only approved or completed returns affect stock and the books."""
    return crud_sales_returns.create_sales_return(db, sales_return, user.id, get_user_identifier(user))

@router.get("/", response_model=List[SalesReturn])
def read_sales_returns(
    status: Optional[ReturnStatus] = None,
    customer_id: Optional[int] = None,
    original_invoice_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = "newest",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return crud_sales_returns.get_sales_returns(
        db, user.id, status=status, customer_id=customer_id, original_invoice_id=original_invoice_id,
        search=search, sort=sort,
        start_date=start_date, end_date=end_date, skip=skip, limit=limit
    )

@router.get("/{return_id}", response_model=SalesReturn)
def read_sales_return(return_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_return = crud_sales_returns.get_sales_return(db, return_id, user.id)
    if db_return is None:
        raise HTTPException(status_code=404, detail="Sales return not found")
    return db_return

@router.patch("/{return_id}", response_model=SalesReturn)
def update_sales_return(
    return_id: int,
    sales_return: SalesReturnUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Partially update a return. A supplied ``items`` list replaces the existing items."""
    db_return = crud_sales_returns.update_sales_return(db, return_id, sales_return, user.id, get_user_identifier(user))
    if db_return is None:
        raise HTTPException(status_code=404, detail="Sales return not found")
    return db_return

@router.delete("/{return_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sales_return(return_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_return = crud_sales_returns.delete_sales_return(db, return_id, user.id, get_user_identifier(user))
    if db_return is None:
        raise HTTPException(status_code=404, detail="Sales return not found")
    return None

@router.post("/{return_id}/restore", response_model=SalesReturn)
def restore_sales_return(return_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Undo a delete."""
    db_return = crud_sales_returns.restore_sales_return(db, return_id, user.id, get_user_identifier(user))
    if db_return is None:
        raise HTTPException(status_code=404, detail="Deleted sales return not found")
    return db_return
