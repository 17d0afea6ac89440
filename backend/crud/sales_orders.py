import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from crud import transactions
from crud.audit_log import create_audit_log
from crud.documents import (
    apply_document_totals, build_line_items, compute_totals, ensure_unique_number,
    get_active_counterparty, get_deleted, next_document_number, restore, soft_delete,
)
from crud.exceptions import BusinessRuleError
from models.customers import Customer
from models.sales_orders import SalesOrder, SalesOrderStatus
from models.sales_order_items import SalesOrderItem
from models.transactions import TransactionType
from schemas.audit_log import AuditLogCreate
from schemas.sales_orders import SalesOrderCreate, SalesOrderUpdate
from utils import sqlalchemy_to_dict
from utils.listing import apply_search, apply_sort, apply_date_range

logger = logging.getLogger("sales_orders")

NUMBER_PREFIX = "SO"


def get_sales_order(db: Session, order_id: int, user_id: int) -> Optional[SalesOrder]:
    return db.query(SalesOrder).options(
        selectinload(SalesOrder.items),
        selectinload(SalesOrder.customer)
    ).filter(SalesOrder.id == order_id, SalesOrder.user_id == user_id).first()


def get_sales_orders(
    db: Session,
    user_id: int,
    status: Optional[SalesOrderStatus] = None,
    customer_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = "newest",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(SalesOrder).outerjoin(
        Customer, SalesOrder.customer_id == Customer.id
    ).filter(SalesOrder.user_id == user_id)

    if status:
        query = query.filter(SalesOrder.status == status)
    if customer_id:
        query = query.filter(SalesOrder.customer_id == customer_id)
    query = apply_date_range(query, SalesOrder.order_date, start_date, end_date)
    query = apply_search(query, search, SalesOrder.order_number, Customer.name)
    query = apply_sort(query, sort, SalesOrder.order_date, SalesOrder.total, SalesOrder.id)

    return query.options(
        selectinload(SalesOrder.items),
        selectinload(SalesOrder.customer)
    ).offset(skip).limit(limit).all()


def _record(db: Session, order: SalesOrder, actor: str):
    # Orders are commitments only: they appear in the feed but never in the ledger
    db.flush()
    transactions.record_transaction(
        db, order.user_id, TransactionType.SALES_ORDER, order.id,
        order.total, order.order_date,
        f"Sales order {order.order_number} - {order.customer_name}",
        status=order.status,
        reference_number=order.order_number,
        actor=actor,
    )


def create_sales_order(db: Session, order: SalesOrderCreate, user_id: int, actor: str) -> SalesOrder:
    get_active_counterparty(db, Customer, order.customer_id, user_id, "Customer")

    if order.order_number:
        ensure_unique_number(db, SalesOrder, SalesOrder.order_number, order.order_number, user_id)
        number = order.order_number
    else:
        number = next_document_number(db, SalesOrder, SalesOrder.order_number, user_id, NUMBER_PREFIX)

    db_order = SalesOrder(
        user_id=user_id,
        order_number=number,
        order_date=order.order_date,
        customer_id=order.customer_id,
        status=order.status,
        notes=order.notes,
        created_by=actor,
    )
    apply_document_totals(db, db_order, build_line_items(db, SalesOrderItem, order.items, user_id), user_id, order.tax)
    db.add(db_order)
    db.flush()

    _record(db, db_order, actor)
    db.commit()
    logger.info(f"Sales order {db_order.order_number} (ID: {db_order.id}) created for customer {db_order.customer_id} by {actor}")
    return get_sales_order(db, db_order.id, user_id)


def update_sales_order(db: Session, order_id: int, order_update: SalesOrderUpdate, user_id: int, actor: str) -> Optional[SalesOrder]:
    db_order = get_sales_order(db, order_id, user_id)
    if not db_order:
        return None

    old_values = sqlalchemy_to_dict(db_order)
    data = order_update.model_dump(exclude_unset=True)

    if 'customer_id' in data and data['customer_id'] != db_order.customer_id:
        get_active_counterparty(db, Customer, data['customer_id'], user_id, "Customer")
        db.expire(db_order, ['customer'])
    if 'order_number' in data:
        if not data['order_number']:
            raise BusinessRuleError("order_number cannot be empty.")
        ensure_unique_number(db, SalesOrder, SalesOrder.order_number, data['order_number'], user_id, exclude_id=order_id)

    items = data.pop('items', None)
    tax_given = 'tax' in data
    tax = data.pop('tax', None)
    if data.get('status') is None:
        data.pop('status', None)

    for key, value in data.items():
        setattr(db_order, key, value)

    if items is not None:
        apply_document_totals(
            db, db_order, build_line_items(db, SalesOrderItem, order_update.items, user_id), user_id,
            tax if tax_given else None
        )
    elif tax_given:
        db_order.tax, db_order.total = compute_totals(db, user_id, db_order.subtotal, tax)

    db_order.updated_by = actor
    _record(db, db_order, actor)
    create_audit_log(db, AuditLogCreate(
        table_name='sales_orders',
        record_id=order_id,
        changed_by=actor,
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_order)
    ))
    db.commit()
    logger.info(f"Sales order (ID: {order_id}) updated by {actor}")
    return get_sales_order(db, order_id, user_id)


def delete_sales_order(db: Session, order_id: int, user_id: int, actor: str) -> Optional[SalesOrder]:
    db_order = get_sales_order(db, order_id, user_id)
    if not db_order:
        return None
    soft_delete(db_order, actor)
    transactions.remove_transaction(db, user_id, TransactionType.SALES_ORDER, order_id)
    create_audit_log(db, AuditLogCreate(
        table_name='sales_orders',
        record_id=order_id,
        changed_by=actor,
        action='DELETE',
        old_values={},
        new_values=sqlalchemy_to_dict(db_order)
    ))
    db.commit()
    logger.info(f"Sales order (ID: {order_id}) deleted by {actor}")
    return db_order


def restore_sales_order(db: Session, order_id: int, user_id: int, actor: str) -> Optional[SalesOrder]:
    db_order = get_deleted(db, SalesOrder, order_id, user_id)
    if not db_order:
        return None
    restore(db_order, actor)
    _record(db, db_order, actor)
    db.commit()
    logger.info(f"Sales order (ID: {order_id}) restored by {actor}")
    return get_sales_order(db, order_id, user_id)
