"""
Income and expense categories.

Both category tables share one shape, so every accessor takes the category model
(``IncomeCategory`` or ``ExpenseCategory``) as its second argument.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from crud.audit_log import create_audit_log
from crud.exceptions import ConflictError
from models.categories import IncomeCategory, ExpenseCategory
from models.expenses import Expense
from models.incomes import Income
from schemas.audit_log import AuditLogCreate
from schemas.categories import CategoryCreate, CategoryUpdate
from utils import sqlalchemy_to_dict
from utils.listing import apply_search

logger = logging.getLogger("categories")

DEFAULT_INCOME_CATEGORIES = [
    {"name": "Sales Revenue", "description": "Income from product sales", "color": "#4caf50"},
    {"name": "Service Income", "description": "Income from services rendered", "color": "#2196f3"},
    {"name": "Interest Income", "description": "Interest earned on deposits", "color": "#9c27b0"},
    {"name": "Other Income", "description": "Miscellaneous income", "color": "#ff9800"},
]

DEFAULT_EXPENSE_CATEGORIES = [
    {"name": "Cost of Goods Sold", "description": "Direct cost of goods sold", "color": "#e74c3c"},
    {"name": "Operating Expenses", "description": "Day-to-day running costs", "color": "#3498db"},
    {"name": "Payroll", "description": "Salaries and wages", "color": "#9b59b6"},
    {"name": "Rent & Utilities", "description": "Rent, electricity, water and internet", "color": "#f39c12"},
    {"name": "Marketing", "description": "Advertising and promotion", "color": "#1abc9c"},
    {"name": "Other Expenses", "description": "Miscellaneous expenses", "color": "#e67e22"},
]

# category model -> record model that references it
RECORD_MODELS = {
    IncomeCategory: Income,
    ExpenseCategory: Expense,
}


def get_category(db: Session, model, category_id: int, user_id: int):
    return db.query(model).filter(model.id == category_id, model.user_id == user_id).first()


def get_category_by_name(db: Session, model, name: str, user_id: int):
    return db.query(model).filter(model.name == name, model.user_id == user_id).first()


def get_categories(db: Session, model, user_id: int, search: Optional[str] = None):
    query = db.query(model).filter(model.user_id == user_id)
    query = apply_search(query, search, model.name)
    return query.order_by(model.name).all()


def create_category(db: Session, model, category: CategoryCreate, user_id: int, actor: str):
    if get_category_by_name(db, model, category.name, user_id):
        raise ConflictError(f"Category '{category.name}' already exists")
    db_category = model(**category.model_dump(), user_id=user_id, created_by=actor)
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    logger.info(f"{model.__tablename__} '{db_category.name}' (ID: {db_category.id}) created by {actor}")
    return db_category


def update_category(db: Session, model, category_id: int, category: CategoryUpdate, user_id: int, actor: str):
    db_category = get_category(db, model, category_id, user_id)
    if not db_category:
        return None

    update_data = category.model_dump(exclude_unset=True)
    if update_data.get('name') and update_data['name'] != db_category.name:
        if get_category_by_name(db, model, update_data['name'], user_id):
            raise ConflictError(f"Category '{update_data['name']}' already exists")

    old_values = sqlalchemy_to_dict(db_category)
    for key, value in update_data.items():
        setattr(db_category, key, value)
    db_category.updated_by = actor
    db.flush()
    create_audit_log(db, AuditLogCreate(
        table_name=model.__tablename__,
        record_id=category_id,
        changed_by=actor,
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_category)
    ))
    db.commit()
    db.refresh(db_category)
    logger.info(f"{model.__tablename__} (ID: {category_id}) updated by {actor}")
    return db_category


def delete_category(db: Session, model, category_id: int, user_id: int, actor: str):
    db_category = get_category(db, model, category_id, user_id)
    if not db_category:
        return None

    record_model = RECORD_MODELS[model]
    in_use = db.query(record_model.id).filter(
        record_model.category_id == category_id
    ).execution_options(include_deleted=True).first()
    if in_use:
        raise ConflictError(f"Category '{db_category.name}' is used by existing records and cannot be deleted")

    create_audit_log(db, AuditLogCreate(
        table_name=model.__tablename__,
        record_id=category_id,
        changed_by=actor,
        action='DELETE',
        old_values=sqlalchemy_to_dict(db_category),
        new_values={}
    ))
    db.delete(db_category)
    db.commit()
    logger.info(f"{model.__tablename__} '{db_category.name}' (ID: {category_id}) deleted by {actor}")
    return db_category


def _create_defaults(db: Session, model, defaults, user_id: int, actor: str, commit: bool):
    created = []
    for entry in defaults:
        if get_category_by_name(db, model, entry["name"], user_id):
            continue
        db_category = model(**entry, user_id=user_id, is_default=True, created_by=actor)
        db.add(db_category)
        created.append(db_category)
    if commit:
        db.commit()
    else:
        db.flush()
    return created


def create_default_income_categories(db: Session, user_id: int, actor: str = "system", commit: bool = True):
    return _create_defaults(db, IncomeCategory, DEFAULT_INCOME_CATEGORIES, user_id, actor, commit)


def create_default_expense_categories(db: Session, user_id: int, actor: str = "system", commit: bool = True):
    return _create_defaults(db, ExpenseCategory, DEFAULT_EXPENSE_CATEGORIES, user_id, actor, commit)
