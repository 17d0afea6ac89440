import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from crud import ledger, transactions
from crud.audit_log import create_audit_log
from crud.categories import get_category
from crud.documents import get_deleted, money, restore, soft_delete
from crud.exceptions import BusinessRuleError
from models.categories import IncomeCategory
from models.enums import RecordStatus
from models.incomes import Income
from models.transactions import TransactionType
from schemas.audit_log import AuditLogCreate
from schemas.incomes import IncomeCreate, IncomeUpdate
from utils import sqlalchemy_to_dict
from utils.listing import apply_search, apply_sort, apply_date_range

logger = logging.getLogger("incomes")


def get_income(db: Session, income_id: int, user_id: int) -> Optional[Income]:
    return db.query(Income).options(selectinload(Income.category)).filter(
        Income.id == income_id, Income.user_id == user_id
    ).first()


def get_incomes(
    db: Session,
    user_id: int,
    status: Optional[RecordStatus] = None,
    category_id: Optional[int] = None,
    search: Optional[str] = None,
    sort: Optional[str] = "newest",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100,
):
    query = db.query(Income).outerjoin(
        IncomeCategory, Income.category_id == IncomeCategory.id
    ).filter(Income.user_id == user_id)

    if status:
        query = query.filter(Income.status == status)
    if category_id:
        query = query.filter(Income.category_id == category_id)
    query = apply_date_range(query, Income.date, start_date, end_date)
    query = apply_search(query, search, Income.description, Income.reference_number, IncomeCategory.name)
    query = apply_sort(query, sort, Income.date, Income.amount, Income.id)

    return query.options(selectinload(Income.category)).offset(skip).limit(limit).all()


def _check_category(db: Session, category_id: int, user_id: int):
    if not get_category(db, IncomeCategory, category_id, user_id):
        raise BusinessRuleError(f"Income category with ID {category_id} not found.")


def _sync(db: Session, income: Income, actor: str):
    db.flush()
    if income.status != RecordStatus.CANCELLED:
        ledger.post_document(
            db, income.user_id, TransactionType.INCOME, income.id,
            income.date, income.amount, income.description or f"#{income.id}", actor
        )
    else:
        ledger.remove_document(db, income.user_id, TransactionType.INCOME, income.id)
    category_name = income.category.name if income.category else "Income"
    transactions.record_transaction(
        db, income.user_id, TransactionType.INCOME, income.id,
        income.amount, income.date,
        f"{category_name}: {income.description}" if income.description else category_name,
        status=income.status,
        payment_method=income.payment_method,
        reference_number=income.reference_number,
        actor=actor,
    )


def create_income(db: Session, income: IncomeCreate, user_id: int, actor: str) -> Income:
    _check_category(db, income.category_id, user_id)
    data = income.model_dump()
    data['amount'] = money(data['amount'])
    db_income = Income(**data, user_id=user_id, created_by=actor)
    db.add(db_income)
    db.flush()

    _sync(db, db_income, actor)
    create_audit_log(db, AuditLogCreate(
        table_name='incomes',
        record_id=db_income.id,
        changed_by=actor,
        action='CREATE',
        old_values={},
        new_values=sqlalchemy_to_dict(db_income)
    ))
    db.commit()
    logger.info(f"Income (ID: {db_income.id}) of {db_income.amount} created by {actor}")
    return get_income(db, db_income.id, user_id)


def update_income(db: Session, income_id: int, income: IncomeUpdate, user_id: int, actor: str) -> Optional[Income]:
    db_income = get_income(db, income_id, user_id)
    if not db_income:
        return None

    old_values = sqlalchemy_to_dict(db_income)
    update_data = income.model_dump(exclude_unset=True)
    for key in ('category_id', 'amount', 'date', 'status', 'payment_method'):
        if key in update_data and update_data[key] is None:
            update_data.pop(key)
    if 'category_id' in update_data and update_data['category_id'] != db_income.category_id:
        _check_category(db, update_data['category_id'], user_id)
        db.expire(db_income, ['category'])
    if 'amount' in update_data:
        update_data['amount'] = money(update_data['amount'])

    for key, value in update_data.items():
        setattr(db_income, key, value)
    db_income.updated_by = actor

    _sync(db, db_income, actor)
    create_audit_log(db, AuditLogCreate(
        table_name='incomes',
        record_id=income_id,
        changed_by=actor,
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_income)
    ))
    db.commit()
    logger.info(f"Income (ID: {income_id}) updated by {actor}")
    return get_income(db, income_id, user_id)


def delete_income(db: Session, income_id: int, user_id: int, actor: str) -> Optional[Income]:
    db_income = get_income(db, income_id, user_id)
    if not db_income:
        return None

    old_values = sqlalchemy_to_dict(db_income)
    soft_delete(db_income, actor)
    ledger.remove_document(db, user_id, TransactionType.INCOME, income_id)
    transactions.remove_transaction(db, user_id, TransactionType.INCOME, income_id)
    create_audit_log(db, AuditLogCreate(
        table_name='incomes',
        record_id=income_id,
        changed_by=actor,
        action='DELETE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_income)
    ))
    db.commit()
    logger.info(f"Income (ID: {income_id}) deleted by {actor}")
    return db_income


def restore_income(db: Session, income_id: int, user_id: int, actor: str) -> Optional[Income]:
    db_income = get_deleted(db, Income, income_id, user_id)
    if not db_income:
        return None
    _check_category(db, db_income.category_id, user_id)
    restore(db_income, actor)
    _sync(db, db_income, actor)
    db.commit()
    logger.info(f"Income (ID: {income_id}) restored by {actor}")
    return get_income(db, income_id, user_id)
