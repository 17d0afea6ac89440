import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from crud.exceptions import ConflictError
from models.products import Product
from models.sales_invoice_items import SalesInvoiceItem
from models.purchase_invoice_items import PurchaseInvoiceItem
from models.sales_order_items import SalesOrderItem
from models.purchase_order_items import PurchaseOrderItem
from models.sales_returns import SalesReturnItem
from models.purchase_returns import PurchaseReturnItem
from schemas.products import ProductCreate, ProductUpdate
from utils import join_tags
from utils.listing import apply_search

logger = logging.getLogger("products")

ITEM_MODELS = (SalesInvoiceItem, PurchaseInvoiceItem, SalesOrderItem, PurchaseOrderItem, SalesReturnItem, PurchaseReturnItem)


def get_product(db: Session, product_id: int, user_id: int) -> Optional[Product]:
    return db.query(Product).filter(Product.id == product_id, Product.user_id == user_id).first()


def get_products(
    db: Session,
    user_id: int,
    search: Optional[str] = None,
    category: Optional[str] = None,
    is_active: Optional[bool] = None,
    low_stock: bool = False,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(Product).filter(Product.user_id == user_id)
    if category:
        query = query.filter(Product.category == category)
    if is_active is not None:
        query = query.filter(Product.is_active == is_active)
    if low_stock:
        query = query.filter(Product.reorder_level.isnot(None), Product.stock_quantity <= Product.reorder_level)
    query = apply_search(query, search, Product.product_name, Product.sku, Product.barcode, Product.category)
    return query.order_by(Product.product_name, Product.id).offset(skip).limit(limit).all()


def _ensure_unique_sku(db: Session, sku: Optional[str], user_id: int, exclude_id: Optional[int] = None):
    if not sku:
        return
    query = db.query(Product.id).filter(Product.sku == sku, Product.user_id == user_id)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError(f"A product with SKU '{sku}' already exists")


def create_product(db: Session, product: ProductCreate, user_id: int, actor: str) -> Product:
    _ensure_unique_sku(db, product.sku, user_id)
    data = product.model_dump()
    data['tags'] = join_tags(data.get('tags'))
    db_product = Product(**data, user_id=user_id, created_by=actor)
    db.add(db_product)
    db.commit()
    db.refresh(db_product)
    logger.info(f"Product '{db_product.product_name}' (ID: {db_product.id}) created by {actor}")
    return db_product


def update_product(db: Session, product_id: int, product: ProductUpdate, user_id: int, actor: str) -> Optional[Product]:
    db_product = get_product(db, product_id, user_id)
    if not db_product:
        return None
    update_data = product.model_dump(exclude_unset=True)
    if 'sku' in update_data:
        _ensure_unique_sku(db, update_data['sku'], user_id, exclude_id=product_id)
    if 'tags' in update_data:
        update_data['tags'] = join_tags(update_data['tags'])
    for key, value in update_data.items():
        setattr(db_product, key, value)
    db_product.updated_by = actor
    db.commit()
    db.refresh(db_product)
    return db_product


def delete_product(db: Session, product_id: int, user_id: int, actor: str) -> Optional[Product]:
    """Remove a product, or deactivate it when documents still reference it."""
    db_product = get_product(db, product_id, user_id)
    if not db_product:
        return None

    referenced = any(
        db.query(item_model.id).filter(item_model.product_id == product_id).first()
        for item_model in ITEM_MODELS
    )
    if referenced:
        db_product.is_active = False
        db_product.updated_by = actor
        db.commit()
        raise ConflictError("Product is used by existing documents. It has been marked inactive instead.")

    db.delete(db_product)
    db.commit()
    logger.info(f"Product (ID: {product_id}) deleted by {actor}")
    return db_product


def adjust_stock(db: Session, items, direction: int, user_id: int):
    """Add (direction=1) or remove (direction=-1) item quantities from product stock."""
    for item in items:
        if item.product_id is None:
            continue
        product = get_product(db, item.product_id, user_id)
        if product is None:
            continue
        product.stock_quantity = Decimal(product.stock_quantity or 0) + direction * Decimal(item.quantity)
        if product.stock_quantity < 0:
            logger.warning(f"Stock for product '{product.product_name}' (ID: {product.id}) is now negative: {product.stock_quantity}")
