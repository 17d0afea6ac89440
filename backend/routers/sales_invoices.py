from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db
from crud import sales_invoices as crud_sales_invoices
from crud import payments_in as crud_payments_in
from models.sales_invoices import InvoiceStatus
from models.users import User
from schemas.payments_in import PaymentIn
from schemas.sales_invoices import SalesInvoice, SalesInvoiceCreate, SalesInvoiceUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/sales-invoices", tags=["Sales Invoices"])
logger = logging.getLogger("sales_invoices")

@router.post("/", response_model=SalesInvoice, status_code=status.HTTP_201_CREATED)
def create_sales_invoice(
    invoice: SalesInvoiceCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Create a sales invoice with its items. Totals and the invoice number are computed server side."""
    return crud_sales_invoices.create_sales_invoice(db, invoice, user.id, get_user_identifier(user))

@router.get("/", response_model=List[SalesInvoice])
def read_sales_invoices(
    status: Optional[InvoiceStatus] = None,
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
    return crud_sales_invoices.get_sales_invoices(
        db, user.id, status=status, customer_id=customer_id, search=search, sort=sort,
        start_date=start_date, end_date=end_date, skip=skip, limit=limit
    )

@router.get("/{invoice_id}", response_model=SalesInvoice)
def read_sales_invoice(invoice_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_invoice = crud_sales_invoices.get_sales_invoice(db, invoice_id, user.id)
    if db_invoice is None:
        raise HTTPException(status_code=404, detail="Sales invoice not found")
    return db_invoice

@router.get("/{invoice_id}/payments", response_model=List[PaymentIn])
def read_sales_invoice_payments(invoice_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Payments received against this invoice."""
    if crud_sales_invoices.get_sales_invoice(db, invoice_id, user.id) is None:
        raise HTTPException(status_code=404, detail="Sales invoice not found")
    return crud_payments_in.get_payments_for_invoice(db, invoice_id, user.id)

@router.patch("/{invoice_id}", response_model=SalesInvoice)
def update_sales_invoice(
    invoice_id: int,
    invoice: SalesInvoiceUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Partially update an invoice. A supplied ``items`` list replaces the existing items."""
    db_invoice = crud_sales_invoices.update_sales_invoice(db, invoice_id, invoice, user.id, get_user_identifier(user))
    if db_invoice is None:
        raise HTTPException(status_code=404, detail="Sales invoice not found")
    return db_invoice

@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sales_invoice(invoice_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_invoice = crud_sales_invoices.delete_sales_invoice(db, invoice_id, user.id, get_user_identifier(user))
    if db_invoice is None:
        raise HTTPException(status_code=404, detail="Sales invoice not found")
    return None

@router.post("/{invoice_id}/restore", response_model=SalesInvoice)
def restore_sales_invoice(invoice_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Undo a delete."""
    db_invoice = crud_sales_invoices.restore_sales_invoice(db, invoice_id, user.id, get_user_identifier(user))
    if db_invoice is None:
        raise HTTPException(status_code=404, detail="Deleted sales invoice not found")
    return db_invoice
