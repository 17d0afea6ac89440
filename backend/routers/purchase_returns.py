from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db
from crud import purchase_returns as crud_purchase_returns
from models.purchase_returns import ReturnStatus
from models.users import User
from schemas.purchase_returns import PurchaseReturn, PurchaseReturnCreate, PurchaseReturnUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/purchase-returns", tags=["Purchase Returns"])
logger = logging.getLogger("purchase_returns")

@router.post("/", response_model=PurchaseReturn, status_code=status.HTTP_201_CREATED)
def create_purchase_return(
    purchase_return: PurchaseReturnCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Record goods sent back to a vendor. Only approved or completed returns affect stock and the books."""
    return crud_purchase_returns.create_purchase_return(db, purchase_return, user.id, get_user_identifier(user))

@router.get("/", response_model=List[PurchaseReturn])
def read_purchase_returns(
    status: Optional[ReturnStatus] = None,
    vendor_id: Optional[int] = None,
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
    return crud_purchase_returns.get_purchase_returns(
        db, user.id, status=status, vendor_id=vendor_id, original_invoice_id=original_invoice_id,
        search=search, sort=sort,
        start_date=start_date, end_date=end_date, skip=skip, limit=limit
    )

@router.get("/{return_id}", response_model=PurchaseReturn)
def read_purchase_return(return_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_return = crud_purchase_returns.get_purchase_return(db, return_id, user.id)
    if db_return is None:
        raise HTTPException(status_code=404, detail="Purchase return not found")
    return db_return

@router.patch("/{return_id}", response_model=PurchaseReturn)
def update_purchase_return(
    return_id: int,
    purchase_return: PurchaseReturnUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Partially update a return. A supplied ``items`` list replaces the existing items."""
    db_return = crud_purchase_returns.update_purchase_return(db, return_id, purchase_return, user.id, get_user_identifier(user))
    if db_return is None:
        raise HTTPException(status_code=404, detail="Purchase return not found")
    return db_return

@router.delete("/{return_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_return(return_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_return = crud_purchase_returns.delete_purchase_return(db, return_id, user.id, get_user_identifier(user))
    if db_return is None:
        raise HTTPException(status_code=404, detail="Purchase return not found")
    return None

@router.post("/{return_id}/restore", response_model=PurchaseReturn)
def restore_purchase_return(return_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Undo a delete."""
    db_return = crud_purchase_returns.restore_purchase_return(db, return_id, user.id, get_user_identifier(user))
    if db_return is None:
        raise HTTPException(status_code=404, detail="Deleted purchase return not found")
    return db_return
