from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from crud import products as crud_products
from models.users import User
from schemas.products import Product, ProductCreate, ProductUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/products", tags=["Products"])
logger = logging.getLogger("products")

@router.post("/", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(
    product: ProductCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return crud_products.create_product(db, product, user.id, get_user_identifier(user))

@router.get("/", response_model=List[Product])
def read_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    is_active: Optional[bool] = None,
    low_stock: bool = False,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """List products. ``low_stock`` keeps only products at or below their reorder level."""
    return crud_products.get_products(
        db, user.id, search=search, category=category, is_active=is_active, low_stock=low_stock, skip=skip, limit=limit
    )

@router.get("/{product_id}", response_model=Product)
def read_product(product_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_product = crud_products.get_product(db, product_id, user.id)
    if db_product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return db_product

@router.patch("/{product_id}", response_model=Product)
def update_product(
    product_id: int,
    product: ProductUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    db_product = crud_products.update_product(db, product_id, product, user.id, get_user_identifier(user))
    if db_product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return db_product

@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Delete a product. Products used on documents are deactivated and a 409 is returned."""
    db_product = crud_products.delete_product(db, product_id, user.id, get_user_identifier(user))
    if db_product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return None
