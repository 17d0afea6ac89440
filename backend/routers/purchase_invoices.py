from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db
from crud import purchase_invoices as crud_purchase_invoices
from crud import payments_out as crud_payments_out
from models.sales_invoices import InvoiceStatus
from models.users import User
from schemas.payments_out import PaymentOut
from schemas.purchase_invoices import PurchaseInvoice, PurchaseInvoiceCreate, PurchaseInvoiceUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/purchase-invoices", tags=["Purchase Invoices"])
logger = logging.getLogger("purchase_invoices")

@router.post("/", response_model=PurchaseInvoice, status_code=status.HTTP_201_CREATED)
def create_purchase_invoice(
    invoice: PurchaseInvoiceCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Create a purchase invoice with its items. Totals and the invoice number are computed server side."""
    return crud_purchase_invoices.create_purchase_invoice(db, invoice, user.id, get_user_identifier(user))

@router.get("/", response_model=List[PurchaseInvoice])
def read_purchase_invoices(
    status: Optional[InvoiceStatus] = None,
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
    return crud_purchase_invoices.get_purchase_invoices(
        db, user.id, status=status, vendor_id=vendor_id, search=search, sort=sort,
        start_date=start_date, end_date=end_date, skip=skip, limit=limit
    )

@router.get("/{invoice_id}", response_model=PurchaseInvoice)
def read_purchase_invoice(invoice_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_invoice = crud_purchase_invoices.get_purchase_invoice(db, invoice_id, user.id)
    if db_invoice is None:
        raise HTTPException(status_code=404, detail="Purchase invoice not found")
    return db_invoice

@router.get("/{invoice_id}/payments", response_model=List[PaymentOut])
def read_purchase_invoice_payments(invoice_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Payments made against this invoice."""
    if crud_purchase_invoices.get_purchase_invoice(db, invoice_id, user.id) is None:
        raise HTTPException(status_code=404, detail="Purchase invoice not found")
    return crud_payments_out.get_payments_for_invoice(db, invoice_id, user.id)

@router.patch("/{invoice_id}", response_model=PurchaseInvoice)
def update_purchase_invoice(
    invoice_id: int,
    invoice: PurchaseInvoiceUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Partially update an invoice. A supplied ``items`` list replaces the existing items."""
    db_invoice = crud_purchase_invoices.update_purchase_invoice(db, invoice_id, invoice, user.id, get_user_identifier(user))
    if db_invoice is None:
        raise HTTPException(status_code=404, detail="Purchase invoice not found")
    return db_invoice

@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase_invoice(invoice_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_invoice = crud_purchase_invoices.delete_purchase_invoice(db, invoice_id, user.id, get_user_identifier(user))
    if db_invoice is None:
        raise HTTPException(status_code=404, detail="Purchase invoice not found")
    return None

@router.post("/{invoice_id}/restore", response_model=PurchaseInvoice)
def restore_purchase_invoice(invoice_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Undo a delete."""
    db_invoice = crud_purchase_invoices.restore_purchase_invoice(db, invoice_id, user.id, get_user_identifier(user))
    if db_invoice is None:
        raise HTTPException(status_code=404, detail="Deleted purchase invoice not found")
    return db_invoice
