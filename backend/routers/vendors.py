from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from crud import vendors as crud_vendors
from crud.audit_log import get_record_history
from models.customers import PartyStatus
from models.users import User
from schemas.audit_log import AuditLogEntry
from schemas.vendors import Vendor, VendorCreate, VendorUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/vendors", tags=["Vendors"])
logger = logging.getLogger("vendors")

@router.post("/", response_model=Vendor, status_code=status.HTTP_201_CREATED)
def create_vendor(
    vendor: VendorCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Create a new vendor."""
    return crud_vendors.create_vendor(db, vendor, user.id, get_user_identifier(user))

@router.get("/", response_model=List[Vendor])
def read_vendors(
    search: Optional[str] = None,
    status: Optional[PartyStatus] = None,
    category: Optional[str] = None,
    sort: str = "name",
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """List vendors. ``sort`` is one of name, balance_desc, newest."""
    return crud_vendors.get_vendors(
        db, user.id, search=search, status=status, category=category, sort=sort, skip=skip, limit=limit
    )

@router.get("/{vendor_id}", response_model=Vendor)
def read_vendor(vendor_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_vendor = crud_vendors.get_vendor(db, vendor_id, user.id)
    if db_vendor is None:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return db_vendor

@router.patch("/{vendor_id}", response_model=Vendor)
def update_vendor(
    vendor_id: int,
    vendor: VendorUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    db_vendor = crud_vendors.update_vendor(db, vendor_id, vendor, user.id, get_user_identifier(user))
    if db_vendor is None:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return db_vendor

@router.delete("/{vendor_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vendor(vendor_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Delete a vendor. Vendors with documents are marked inactive and a 409 is returned."""
    db_vendor = crud_vendors.delete_vendor(db, vendor_id, user.id, get_user_identifier(user))
    if db_vendor is None:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return None

@router.get("/{vendor_id}/history", response_model=List[AuditLogEntry])
def read_vendor_history(
    vendor_id: int,
    skip: int = 0,
    limit: int = 50,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Audit trail of a vendor, newest change first."""
    if crud_vendors.get_vendor(db, vendor_id, user.id) is None:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return get_record_history(db, "vendors", vendor_id, skip=skip, limit=limit)
