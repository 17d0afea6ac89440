import logging
from typing import Optional

from sqlalchemy.orm import Session

from crud.exceptions import ConflictError
from crud.audit_log import create_audit_log
from schemas.audit_log import AuditLogCreate
from models.vendors import Vendor
from models.customers import PartyStatus
from models.purchase_invoices import PurchaseInvoice
from models.purchase_orders import PurchaseOrder
from models.payments_out import PaymentOut
from models.purchase_returns import PurchaseReturn
from schemas.vendors import VendorCreate, VendorUpdate
from utils import join_tags, sqlalchemy_to_dict
from utils.listing import apply_search

logger = logging.getLogger("vendors")


def get_vendor(db: Session, vendor_id: int, user_id: int) -> Optional[Vendor]:
    return db.query(Vendor).filter(Vendor.id == vendor_id, Vendor.user_id == user_id).first()


def get_vendors(
    db: Session,
    user_id: int,
    search: Optional[str] = None,
    status: Optional[PartyStatus] = None,
    category: Optional[str] = None,
    sort: str = "name",
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(Vendor).filter(Vendor.user_id == user_id)
    if status:
        query = query.filter(Vendor.status == status)
    if category:
        query = query.filter(Vendor.category == category)
    query = apply_search(query, search, Vendor.name, Vendor.company, Vendor.email, Vendor.phone)
    if sort == "balance_desc":
        query = query.order_by(Vendor.outstanding_balance.desc(), Vendor.id)
    elif sort == "newest":
        query = query.order_by(Vendor.id.desc())
    else:
        query = query.order_by(Vendor.name, Vendor.id)
    return query.offset(skip).limit(limit).all()


def create_vendor(db: Session, vendor: VendorCreate, user_id: int, actor: str) -> Vendor:
    data = vendor.model_dump()
    data['tags'] = join_tags(data.get('tags'))
    db_vendor = Vendor(**data, user_id=user_id, created_by=actor)
    db.add(db_vendor)
    db.commit()
    db.refresh(db_vendor)
    logger.info(f"Vendor '{db_vendor.name}' (ID: {db_vendor.id}) created by {actor}")
    return db_vendor


def update_vendor(db: Session, vendor_id: int, vendor: VendorUpdate, user_id: int, actor: str) -> Optional[Vendor]:
    db_vendor = get_vendor(db, vendor_id, user_id)
    if not db_vendor:
        return None
    old_values = sqlalchemy_to_dict(db_vendor)
    update_data = vendor.model_dump(exclude_unset=True)
    if 'tags' in update_data:
        update_data['tags'] = join_tags(update_data['tags'])
    for key, value in update_data.items():
        setattr(db_vendor, key, value)
    db_vendor.updated_by = actor
    db.flush()
    create_audit_log(db, AuditLogCreate(
        table_name='vendors',
        record_id=vendor_id,
        changed_by=actor,
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_vendor)
    ))
    db.commit()
    db.refresh(db_vendor)
    return db_vendor


def has_documents(db: Session, vendor_id: int) -> bool:
    for model in (PurchaseInvoice, PurchaseOrder, PaymentOut, PurchaseReturn):
        found = db.query(model.id).filter(model.vendor_id == vendor_id).execution_options(include_deleted=True).first()
        if found:
            return True
    return False


def delete_vendor(db: Session, vendor_id: int, user_id: int, actor: str) -> Optional[Vendor]:
    """Delete a vendor without documents; otherwise mark it inactive and refuse."""
    db_vendor = get_vendor(db, vendor_id, user_id)
    if not db_vendor:
        return None

    if has_documents(db, vendor_id):
        db_vendor.status = PartyStatus.INACTIVE
        db_vendor.updated_by = actor
        db.commit()
        logger.info(f"Vendor (ID: {vendor_id}) has documents, marked inactive by {actor}")
        raise ConflictError("Vendor has associated documents and cannot be deleted. It has been marked as inactive instead.")

    old_values = sqlalchemy_to_dict(db_vendor)
    db.delete(db_vendor)
    create_audit_log(db, AuditLogCreate(
        table_name='vendors',
        record_id=vendor_id,
        changed_by=actor,
        action='DELETE',
        old_values=old_values,
        new_values={}
    ))
    db.commit()
    logger.info(f"Vendor (ID: {vendor_id}) deleted by {actor}")
    return db_vendor
