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
from models.vendors import Vendor
from models.purchase_orders import PurchaseOrder, PurchaseOrderStatus
from models.purchase_order_items import PurchaseOrderItem
from models.transactions import TransactionType
from schemas.audit_log import AuditLogCreate
from schemas.purchase_orders import PurchaseOrderCreate, PurchaseOrderUpdate
from utils import sqlalchemy_to_dict
from utils.listing import apply_search, apply_sort, apply_date_range

logger = logging.getLogger("purchase_orders")

NUMBER_PREFIX = "PO"


def get_purchase_order(db: Session, order_id: int, user_id: int) -> Optional[PurchaseOrder]:
    return db.query(PurchaseOrder).options(
        selectinload(PurchaseOrder.items),
        selectinload(PurchaseOrder.vendor)
    ).filter(PurchaseOrder.id == order_id, PurchaseOrder.user_id == user_id).first()


def get_purchase_orders(
    db: Session,
    user_id: int,
    status: Optional[PurchaseOrderStatus] = None,
    vendor_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = "newest",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(PurchaseOrder).outerjoin(
        Vendor, PurchaseOrder.vendor_id == Vendor.id
    ).filter(PurchaseOrder.user_id == user_id)

    if status:
        query = query.filter(PurchaseOrder.status == status)
    if vendor_id:
        query = query.filter(PurchaseOrder.vendor_id == vendor_id)
    query = apply_date_range(query, PurchaseOrder.order_date, start_date, end_date)
    query = apply_search(query, search, PurchaseOrder.order_number, Vendor.name)
    query = apply_sort(query, sort, PurchaseOrder.order_date, PurchaseOrder.total, PurchaseOrder.id)

    return query.options(
        selectinload(PurchaseOrder.items),
        selectinload(PurchaseOrder.vendor)
    ).offset(skip).limit(limit).all()


def _record(db: Session, order: PurchaseOrder, actor: str):
    # Orders are commitments only: they appear in the feed but never in the ledger
    db.flush()
    transactions.record_transaction(
        db, order.user_id, TransactionType.PURCHASE_ORDER, order.id,
        order.total, order.order_date,
        f"Purchase order {order.order_number} - {order.vendor_name}",
        status=order.status,
        reference_number=order.order_number,
        actor=actor,
    )


def create_purchase_order(db: Session, order: PurchaseOrderCreate, user_id: int, actor: str) -> PurchaseOrder:
    get_active_counterparty(db, Vendor, order.vendor_id, user_id, "Vendor")

    if order.order_number:
        ensure_unique_number(db, PurchaseOrder, PurchaseOrder.order_number, order.order_number, user_id)
        number = order.order_number
    else:
        number = next_document_number(db, PurchaseOrder, PurchaseOrder.order_number, user_id, NUMBER_PREFIX)

    db_order = PurchaseOrder(
        user_id=user_id,
        order_number=number,
        order_date=order.order_date,
        vendor_id=order.vendor_id,
        status=order.status,
        notes=order.notes,
        created_by=actor,
    )
    apply_document_totals(db, db_order, build_line_items(db, PurchaseOrderItem, order.items, user_id), user_id, order.tax)
    db.add(db_order)
    db.flush()

    _record(db, db_order, actor)
    db.commit()
    logger.info(f"Purchase order {db_order.order_number} (ID: {db_order.id}) created for vendor {db_order.vendor_id} by {actor}")
    return get_purchase_order(db, db_order.id, user_id)


def update_purchase_order(db: Session, order_id: int, order_update: PurchaseOrderUpdate, user_id: int, actor: str) -> Optional[PurchaseOrder]:
    db_order = get_purchase_order(db, order_id, user_id)
    if not db_order:
        return None

    old_values = sqlalchemy_to_dict(db_order)
    data = order_update.model_dump(exclude_unset=True)

    if 'vendor_id' in data and data['vendor_id'] != db_order.vendor_id:
        get_active_counterparty(db, Vendor, data['vendor_id'], user_id, "Vendor")
        db.expire(db_order, ['vendor'])
    if 'order_number' in data:
        if not data['order_number']:
            raise BusinessRuleError("order_number cannot be empty.")
        ensure_unique_number(db, PurchaseOrder, PurchaseOrder.order_number, data['order_number'], user_id, exclude_id=order_id)

    items = data.pop('items', None)
    tax_given = 'tax' in data
    tax = data.pop('tax', None)
    if data.get('status') is None:
        data.pop('status', None)

    for key, value in data.items():
        setattr(db_order, key, value)

    if items is not None:
        apply_document_totals(
            db, db_order, build_line_items(db, PurchaseOrderItem, order_update.items, user_id), user_id,
            tax if tax_given else None
        )
    elif tax_given:
        db_order.tax, db_order.total = compute_totals(db, user_id, db_order.subtotal, tax)

    db_order.updated_by = actor
    _record(db, db_order, actor)
    create_audit_log(db, AuditLogCreate(
        table_name='purchase_orders',
        record_id=order_id,
        changed_by=actor,
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_order)
    ))
    db.commit()
    logger.info(f"Purchase order (ID: {order_id}) updated by {actor}")
    return get_purchase_order(db, order_id, user_id)


def delete_purchase_order(db: Session, order_id: int, user_id: int, actor: str) -> Optional[PurchaseOrder]:
    db_order = get_purchase_order(db, order_id, user_id)
    if not db_order:
        return None
    soft_delete(db_order, actor)
    transactions.remove_transaction(db, user_id, TransactionType.PURCHASE_ORDER, order_id)
    create_audit_log(db, AuditLogCreate(
        table_name='purchase_orders',
        record_id=order_id,
        changed_by=actor,
        action='DELETE',
        old_values={},
        new_values=sqlalchemy_to_dict(db_order)
    ))
    db.commit()
    logger.info(f"Purchase order (ID: {order_id}) deleted by {actor}")
    return db_order


def restore_purchase_order(db: Session, order_id: int, user_id: int, actor: str) -> Optional[PurchaseOrder]:
    db_order = get_deleted(db, PurchaseOrder, order_id, user_id)
    if not db_order:
        return None
    restore(db_order, actor)
    _record(db, db_order, actor)
    db.commit()
    logger.info(f"Purchase order (ID: {order_id}) restored by {actor}")
    return get_purchase_order(db, order_id, user_id)
