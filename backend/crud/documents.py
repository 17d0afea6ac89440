"""
Helpers shared by every header/line-item document (orders, invoices, returns,
payments): numbering, line totals, tax, counterparty checks and the
soft-delete / restore lifecycle.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud import app_config as crud_app_config
from crud.exceptions import BusinessRuleError, ConflictError
from models.audit_mixin import now_local
from models.customers import PartyStatus
from models.products import Product

CENT = Decimal("0.01")


def money(value) -> Decimal:
    """Round to cents, half up."""
    return Decimal(value or 0).quantize(CENT, rounding=ROUND_HALF_UP)


def next_document_number(db: Session, model, number_column, user_id: int, prefix: str) -> str:
    """Next free ``PREFIX-0001`` style number for the user, counting soft-deleted rows too."""
    count = db.query(func.count(model.id)).filter(model.user_id == user_id).scalar() or 0
    candidate = count + 1
    while True:
        number = f"{prefix}-{candidate:04d}"
        if not _number_taken(db, model, number_column, number, user_id):
            return number
        candidate += 1


def _number_taken(db: Session, model, number_column, number: str, user_id: int, exclude_id: Optional[int] = None) -> bool:
    query = db.query(model.id).filter(number_column == number, model.user_id == user_id)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    return query.execution_options(include_deleted=True).first() is not None


def ensure_unique_number(db: Session, model, number_column, number: str, user_id: int, exclude_id: Optional[int] = None):
    if _number_taken(db, model, number_column, number, user_id, exclude_id):
        raise ConflictError(f"Number {number} is already in use")


def get_active_counterparty(db: Session, model, counterparty_id: int, user_id: int, label: str):
    """Load a customer/vendor that can take new documents."""
    party = db.query(model).filter(model.id == counterparty_id, model.user_id == user_id).first()
    if not party:
        raise BusinessRuleError(f"{label} with ID {counterparty_id} not found.")
    if party.status != PartyStatus.ACTIVE:
        raise BusinessRuleError(f"{label} '{party.name}' is {party.status.value} and cannot take new documents.")
    return party


def build_line_items(db: Session, item_model, items_data, user_id: int, extra_fields=("notes",)) -> Tuple[List, Decimal]:
    """
    Turn request items into ORM item rows and compute the subtotal.

    ``line_total = quantity * unit_price`` is always recomputed here.
    ``extra_fields`` names optional per-item fields copied from the request (reason, notes).
    """
    if not items_data:
        raise BusinessRuleError("Document must contain at least one item.")

    rows = []
    subtotal = Decimal(0)
    for item_data in items_data:
        if item_data.product_id is not None:
            product = db.query(Product).filter(Product.id == item_data.product_id, Product.user_id == user_id).first()
            if not product:
                raise BusinessRuleError(f"Product with ID {item_data.product_id} not found.")
            description = item_data.description or product.product_name
        else:
            if not item_data.description:
                raise BusinessRuleError("Items without a product need a description.")
            description = item_data.description

        line_total = money(Decimal(item_data.quantity) * Decimal(item_data.unit_price))
        subtotal += line_total

        values = {name: getattr(item_data, name, None) for name in extra_fields}
        rows.append(item_model(
            product_id=item_data.product_id,
            description=description,
            quantity=item_data.quantity,
            unit_price=item_data.unit_price,
            line_total=line_total,
            **values
        ))
    return rows, money(subtotal)


def compute_totals(db: Session, user_id: int, subtotal: Decimal, tax: Optional[Decimal] = None) -> Tuple[Decimal, Decimal]:
    """Return ``(tax, total)``. Tax falls back to the user's default tax rate."""
    if tax is None:
        tax = subtotal * crud_app_config.get_default_tax_rate(db, user_id)
    tax = money(tax)
    return tax, money(subtotal + tax)


def apply_document_totals(db: Session, document, items, user_id: int, tax: Optional[Decimal] = None):
    """Replace the document's items and refresh subtotal / tax / total."""
    rows, subtotal = items
    document.items = rows
    document.subtotal = subtotal
    document.tax, document.total = compute_totals(db, user_id, subtotal, tax)


def soft_delete(document, actor: str):
    document.deleted_at = now_local()
    document.deleted_by = actor


def get_deleted(db: Session, model, document_id: int, user_id: int):
    """Fetch a tombstoned row for restore."""
    return db.query(model).filter(
        model.id == document_id,
        model.user_id == user_id,
        model.deleted_at.isnot(None)
    ).execution_options(include_deleted=True).first()


def restore(document, actor: str):
    document.deleted_at = None
    document.deleted_by = None
    document.updated_by = actor
