from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db
from crud import purchase_orders as crud_purchase_orders
from models.purchase_orders import PurchaseOrderStatus
from models.users import User
from schemas.purchase_orders import PurchaseOrder, PurchaseOrderCreate, PurchaseOrderUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])
logger = logging.getLogger("purchase_orders")

@router.post("/", response_model=PurchaseOrder, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    order: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Create a purchase order. Orders are commitments only and never reach the ledger."""
    return crud_purchase_orders.create_purchase_order(db, order, user.id, get_user_identifier(user))

@router.get("/", response_model=List[PurchaseOrder])
def read_purchase_orders(
    status: Optional[PurchaseOrderStatus] = None,
    vendor_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = "newest",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return crud_purchase_orders.get_purchase_orders(
        db, user.id, status=status, vendor_id=vendor_id, search=search, sort=sort,
        start_date=start_date, end_date=end_date, skip=skip, limit=limit
    )

@router.get("/{order_id}", response_model=PurchaseOrder)
def read_purchase_order(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_order = crud_purchase_orders.get_purchase_order(db, order_id, user.id)
    if db_order is None:
        raise HTTPException(status_code=404, detail="Purchase order not found")
    return db_order

@router.patch("/{order_id}", response_model=PurchaseOrder)
def update_purchase_order(
    order_id: int,
    order: PurchaseOrderUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Partially update an order. A supplied ``items`` list replaces the existing items."""
    db_order = crud_purchase_orders.update_purchase_order(db, order_id, order, user.id, get_user_identifier(user))
    if db_order is None:
        raise HTTPException(status_code=404, detail="Purchase order not found")
    return db_order

@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_order(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_order = crud_purchase_orders.delete_purchase_order(db, order_id, user.id, get_user_identifier(user))
    if db_order is None:
        raise HTTPException(status_code=404, detail="Purchase order not found")
    return None

@router.post("/{order_id}/restore", response_model=PurchaseOrder)
def restore_purchase_order(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Undo a delete."""
    db_order = crud_purchase_orders.restore_purchase_order(db, order_id, user.id, get_user_identifier(user))
    if db_order is None:
        raise HTTPException(status_code=404, detail="Deleted purchase order not found")
    return db_order
