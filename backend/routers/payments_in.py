from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db
from crud import payments_in as crud_payments_in
from models.payments_in import PaymentStatus
from models.users import User
from schemas.payments_in import PaymentIn, PaymentInCreate, PaymentInUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/payments-in", tags=["Payments In"])
logger = logging.getLogger("payments_in")

@router.post("/", response_model=PaymentIn, status_code=status.HTTP_201_CREATED)
def create_payment_in(
    payment: PaymentInCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Record money received. With items, the amount is the sum of the invoice allocations."""
    return crud_payments_in.create_payment_in(db, payment, user.id, get_user_identifier(user))

@router.get("/", response_model=List[PaymentIn])
def read_payments_in(
    status: Optional[PaymentStatus] = None,
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
    return crud_payments_in.get_payments_in(
        db, user.id, status=status, customer_id=customer_id, search=search, sort=sort,
        start_date=start_date, end_date=end_date, skip=skip, limit=limit
    )

@router.get("/{payment_id}", response_model=PaymentIn)
def read_payment_in(payment_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_payment = crud_payments_in.get_payment_in(db, payment_id, user.id)
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return db_payment

@router.patch("/{payment_id}", response_model=PaymentIn)
def update_payment_in(
    payment_id: int,
    payment: PaymentInUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Partially update a payment. A supplied ``items`` list replaces the existing allocations."""
    db_payment = crud_payments_in.update_payment_in(db, payment_id, payment, user.id, get_user_identifier(user))
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return db_payment

@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment_in(payment_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_payment = crud_payments_in.delete_payment_in(db, payment_id, user.id, get_user_identifier(user))
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return None

@router.post("/{payment_id}/restore", response_model=PaymentIn)
def restore_payment_in(payment_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Undo a delete."""
    db_payment = crud_payments_in.restore_payment_in(db, payment_id, user.id, get_user_identifier(user))
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Deleted payment not found")
    return db_payment

@router.get("/invoices/{invoice_id}/total-paid")
def read_total_paid_for_invoice(invoice_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Sum of live payments allocated to one sales invoice."""
    total_paid = crud_payments_in.get_total_paid_for_invoice(db, invoice_id, user.id)
    if total_paid is None:
        raise HTTPException(status_code=404, detail="Sales invoice not found")
    return {"invoice_id": invoice_id, "total_paid": total_paid}
