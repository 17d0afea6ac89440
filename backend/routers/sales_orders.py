from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db
from crud import sales_orders as crud_sales_orders
from models.sales_orders import SalesOrderStatus
from models.users import User
from schemas.sales_orders import SalesOrder, SalesOrderCreate, SalesOrderUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/sales-orders", tags=["Sales Orders"])
logger = logging.getLogger("sales_orders")

@router.post("/", response_model=SalesOrder, status_code=status.HTTP_201_CREATED)
def create_sales_order(
    order: SalesOrderCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Create a sales order. Orders are commitments only and never reach the ledger."""
    return crud_sales_orders.create_sales_order(db, order, user.id, get_user_identifier(user))

@router.get("/", response_model=List[SalesOrder])
def read_sales_orders(
    status: Optional[SalesOrderStatus] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = "newest",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return crud_sales_orders.get_sales_orders(
        db, user.id, status=status, customer_id=customer_id, search=search, sort=sort,
        start_date=start_date, end_date=end_date, skip=skip, limit=limit
    )

@router.get("/{order_id}", response_model=SalesOrder)
def read_sales_order(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_order = crud_sales_orders.get_sales_order(db, order_id, user.id)
    if db_order is None:
        raise HTTPException(status_code=404, detail="Sales order not found")
    return db_order

@router.patch("/{order_id}", response_model=SalesOrder)
def update_sales_order(
    order_id: int,
    order: SalesOrderUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Partially update an order. A supplied ``items`` list replaces the existing items."""
    db_order = crud_sales_orders.update_sales_order(db, order_id, order, user.id, get_user_identifier(user))
    if db_order is None:
        raise HTTPException(status_code=404, detail="Sales order not found")
    return db_order

@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sales_order(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_order = crud_sales_orders.delete_sales_order(db, order_id, user.id, get_user_identifier(user))
    if db_order is None:
        raise HTTPException(status_code=404, detail="Sales order not found")
    return None

@router.post("/{order_id}/restore", response_model=SalesOrder)
def restore_sales_order(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Undo a delete."""
    db_order = crud_sales_orders.restore_sales_order(db, order_id, user.id, get_user_identifier(user))
    if db_order is None:
        raise HTTPException(status_code=404, detail="Deleted sales order not found")
    return db_order
