from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db
from crud import payments_out as crud_payments_out
from models.payments_in import PaymentStatus
from models.users import User
from schemas.payments_out import PaymentOut, PaymentOutCreate, PaymentOutUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/payments-out", tags=["Payments Out"])
logger = logging.getLogger("payments_out")

@router.post("/", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment_out(
    payment: PaymentOutCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Record money paid out. With items, the amount is the sum of the invoice allocations."""
    return crud_payments_out.create_payment_out(db, payment, user.id, get_user_identifier(user))

@router.get("/", response_model=List[PaymentOut])
def read_payments_out(
    status: Optional[PaymentStatus] = None,
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
    return crud_payments_out.get_payments_out(
        db, user.id, status=status, vendor_id=vendor_id, search=search, sort=sort,
        start_date=start_date, end_date=end_date, skip=skip, limit=limit
    )

@router.get("/{payment_id}", response_model=PaymentOut)
def read_payment_out(payment_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_payment = crud_payments_out.get_payment_out(db, payment_id, user.id)
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return db_payment

@router.patch("/{payment_id}", response_model=PaymentOut)
def update_payment_out(
    payment_id: int,
    payment: PaymentOutUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Partially update a payment. A supplied ``items`` list replaces the existing allocations."""
    db_payment = crud_payments_out.update_payment_out(db, payment_id, payment, user.id, get_user_identifier(user))
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return db_payment

@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment_out(payment_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_payment = crud_payments_out.delete_payment_out(db, payment_id, user.id, get_user_identifier(user))
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return None

@router.post("/{payment_id}/restore", response_model=PaymentOut)
def restore_payment_out(payment_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Undo a delete."""
    db_payment = crud_payments_out.restore_payment_out(db, payment_id, user.id, get_user_identifier(user))
    if db_payment is None:
        raise HTTPException(status_code=404, detail="Deleted payment not found")
    return db_payment

@router.get("/invoices/{invoice_id}/total-paid")
def read_total_paid_for_invoice(invoice_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Sum of live payments allocated to one purchase invoice."""
    total_paid = crud_payments_out.get_total_paid_for_invoice(db, invoice_id, user.id)
    if total_paid is None:
        raise HTTPException(status_code=404, detail="Purchase invoice not found")
    return {"invoice_id": invoice_id, "total_paid": total_paid}
