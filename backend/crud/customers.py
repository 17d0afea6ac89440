import logging
from typing import Optional

from sqlalchemy.orm import Session

from crud.exceptions import ConflictError
from crud.audit_log import create_audit_log
from schemas.audit_log import AuditLogCreate
from models.customers import Customer, PartyStatus
from models.sales_invoices import SalesInvoice
from models.sales_orders import SalesOrder
from models.payments_in import PaymentIn
from models.sales_returns import SalesReturn
from schemas.customers import CustomerCreate, CustomerUpdate
from utils import join_tags, sqlalchemy_to_dict
from utils.listing import apply_search

logger = logging.getLogger("customers")


def get_customer(db: Session, customer_id: int, user_id: int) -> Optional[Customer]:
    return db.query(Customer).filter(Customer.id == customer_id, Customer.user_id == user_id).first()


def get_customers(
    db: Session,
    user_id: int,
    search: Optional[str] = None,
    status: Optional[PartyStatus] = None,
    category: Optional[str] = None,
    sort: str = "name",
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(Customer).filter(Customer.user_id == user_id)
    if status:
        query = query.filter(Customer.status == status)
    if category:
        query = query.filter(Customer.category == category)
    query = apply_search(query, search, Customer.name, Customer.company, Customer.email, Customer.phone)
    if sort == "balance_desc":
        query = query.order_by(Customer.outstanding_balance.desc(), Customer.id)
    elif sort == "newest":
        query = query.order_by(Customer.id.desc())
    else:
        query = query.order_by(Customer.name, Customer.id)
    return query.offset(skip).limit(limit).all()


def create_customer(db: Session, customer: CustomerCreate, user_id: int, actor: str) -> Customer:
    data = customer.model_dump()
    data['tags'] = join_tags(data.get('tags'))
    db_customer = Customer(**data, user_id=user_id, created_by=actor)
    db.add(db_customer)
    db.commit()
    db.refresh(db_customer)
    logger.info(f"Customer '{db_customer.name}' (ID: {db_customer.id}) created by {actor}")
    return db_customer


def update_customer(db: Session, customer_id: int, customer: CustomerUpdate, user_id: int, actor: str) -> Optional[Customer]:
    db_customer = get_customer(db, customer_id, user_id)
    if not db_customer:
        return None
    old_values = sqlalchemy_to_dict(db_customer)
    update_data = customer.model_dump(exclude_unset=True)
    if 'tags' in update_data:
        update_data['tags'] = join_tags(update_data['tags'])
    for key, value in update_data.items():
        setattr(db_customer, key, value)
    db_customer.updated_by = actor
    db.flush()
    create_audit_log(db, AuditLogCreate(
        table_name='customers',
        record_id=customer_id,
        changed_by=actor,
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_customer)
    ))
    db.commit()
    db.refresh(db_customer)
    return db_customer


def has_documents(db: Session, customer_id: int) -> bool:
    for model in (SalesInvoice, SalesOrder, PaymentIn, SalesReturn):
        found = db.query(model.id).filter(model.customer_id == customer_id).execution_options(include_deleted=True).first()
        if found:
            return True
    return False


def delete_customer(db: Session, customer_id: int, user_id: int, actor: str) -> Optional[Customer]:
    """Delete a customer without documents; otherwise mark it inactive and refuse."""
    db_customer = get_customer(db, customer_id, user_id)
    if not db_customer:
        return None

    if has_documents(db, customer_id):
        db_customer.status = PartyStatus.INACTIVE
        db_customer.updated_by = actor
        db.commit()
        logger.info(f"Customer (ID: {customer_id}) has documents, marked inactive by {actor}")
        raise ConflictError("Customer has associated documents and cannot be deleted. It has been marked as inactive instead.")

    old_values = sqlalchemy_to_dict(db_customer)
    db.delete(db_customer)
    create_audit_log(db, AuditLogCreate(
        table_name='customers',
        record_id=customer_id,
        changed_by=actor,
        action='DELETE',
        old_values=old_values,
        new_values={}
    ))
    db.commit()
    logger.info(f"Customer (ID: {customer_id}) deleted by {actor}")
    return db_customer
