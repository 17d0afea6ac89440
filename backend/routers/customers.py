from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from crud import customers as crud_customers
from crud.audit_log import get_record_history
from models.customers import PartyStatus
from models.users import User
from schemas.audit_log import AuditLogEntry
from schemas.customers import Customer, CustomerCreate, CustomerUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/customers", tags=["Customers"])
logger = logging.getLogger("customers")

@router.post("/", response_model=Customer, status_code=status.HTTP_201_CREATED)
def create_customer(
    customer: CustomerCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Create a new customer."""
    return crud_customers.create_customer(db, customer, user.id, get_user_identifier(user))

@router.get("/", response_model=List[Customer])
def read_customers(
    search: Optional[str] = None,
    status: Optional[PartyStatus] = None,
    category: Optional[str] = None,
    sort: str = "name",
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """List customers. ``sort`` is one of name, balance_desc, newest."""
    return crud_customers.get_customers(
        db, user.id, search=search, status=status, category=category, sort=sort, skip=skip, limit=limit
    )

@router.get("/{customer_id}", response_model=Customer)
def read_customer(customer_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_customer = crud_customers.get_customer(db, customer_id, user.id)
    if db_customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return db_customer

@router.patch("/{customer_id}", response_model=Customer)
def update_customer(
    customer_id: int,
    customer: CustomerUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    db_customer = crud_customers.update_customer(db, customer_id, customer, user.id, get_user_identifier(user))
    if db_customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return db_customer

@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_customer(customer_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Delete a customer. Customers with documents are marked inactive and a 409 is returned."""
    db_customer = crud_customers.delete_customer(db, customer_id, user.id, get_user_identifier(user))
    if db_customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return None

@router.get("/{customer_id}/history", response_model=List[AuditLogEntry])
def read_customer_history(
    customer_id: int,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Audit trail of a customer, newest change first."""
    if crud_customers.get_customer(db, customer_id, user.id) is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return get_record_history(db, "customers", customer_id, skip=skip, limit=limit)
