import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from crud import ledger, transactions
from crud.audit_log import create_audit_log
from crud.categories import get_category
from crud.documents import get_deleted, money, restore, soft_delete
from crud.exceptions import BusinessRuleError
from models.categories import ExpenseCategory
from models.enums import RecordStatus
from models.expenses import Expense
from models.transactions import TransactionType
from schemas.audit_log import AuditLogCreate
from schemas.expenses import ExpenseCreate, ExpenseUpdate
from utils import sqlalchemy_to_dict
from utils.listing import apply_search, apply_sort, apply_date_range

logger = logging.getLogger("expenses")


def get_expense(db: Session, expense_id: int, user_id: int) -> Optional[Expense]:
    return db.query(Expense).options(selectinload(Expense.category)).filter(
        Expense.id == expense_id, Expense.user_id == user_id
    ).first()


def get_expenses(
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
    query = db.query(Expense).outerjoin(
        ExpenseCategory, Expense.category_id == ExpenseCategory.id
    ).filter(Expense.user_id == user_id)

    if status:
        query = query.filter(Expense.status == status)
    if category_id:
        query = query.filter(Expense.category_id == category_id)
    query = apply_date_range(query, Expense.date, start_date, end_date)
    query = apply_search(query, search, Expense.description, Expense.reference_number, Expense.vendor_name, ExpenseCategory.name)
    query = apply_sort(query, sort, Expense.date, Expense.amount, Expense.id)

    return query.options(selectinload(Expense.category)).offset(skip).limit(limit).all()


def _check_category(db: Session, category_id: int, user_id: int):
    if not get_category(db, ExpenseCategory, category_id, user_id):
        raise BusinessRuleError(f"Expense category with ID {category_id} not found.")


def _sync(db: Session, expense: Expense, actor: str):
    db.flush()
    if expense.status != RecordStatus.CANCELLED:
        ledger.post_document(
            db, expense.user_id, TransactionType.EXPENSE, expense.id,
            expense.date, expense.amount, expense.description or f"#{expense.id}", actor
        )
    else:
        ledger.remove_document(db, expense.user_id, TransactionType.EXPENSE, expense.id)
    category_name = expense.category.name if expense.category else "Expense"
    transactions.record_transaction(
        db, expense.user_id, TransactionType.EXPENSE, expense.id,
        expense.amount, expense.date,
        f"{category_name}: {expense.description}" if expense.description else category_name,
        status=expense.status,
        payment_method=expense.payment_method,
        reference_number=expense.reference_number,
        actor=actor,
    )


def create_expense(db: Session, expense: ExpenseCreate, user_id: int, actor: str) -> Expense:
    _check_category(db, expense.category_id, user_id)
    data = expense.model_dump()
    data['amount'] = money(data['amount'])
    db_expense = Expense(**data, user_id=user_id, created_by=actor)
    db.add(db_expense)
    db.flush()

    _sync(db, db_expense, actor)
    create_audit_log(db, AuditLogCreate(
        table_name='expenses',
        record_id=db_expense.id,
        changed_by=actor,
        action='CREATE',
        old_values={},
        new_values=sqlalchemy_to_dict(db_expense)
    ))
    db.commit()
    logger.info(f"Expense (ID: {db_expense.id}) of {db_expense.amount} created by {actor}")
    return get_expense(db, db_expense.id, user_id)


def update_expense(db: Session, expense_id: int, expense: ExpenseUpdate, user_id: int, actor: str) -> Optional[Expense]:
    db_expense = get_expense(db, expense_id, user_id)
    if not db_expense:
        return None

    old_values = sqlalchemy_to_dict(db_expense)
    update_data = expense.model_dump(exclude_unset=True)
    for key in ('category_id', 'amount', 'date', 'status', 'payment_method', 'tax_deductible', 'reimbursable'):
        if key in update_data and update_data[key] is None:
            update_data.pop(key)
    if 'category_id' in update_data and update_data['category_id'] != db_expense.category_id:
        _check_category(db, update_data['category_id'], user_id)
        db.expire(db_expense, ['category'])
    if 'amount' in update_data:
        update_data['amount'] = money(update_data['amount'])

    for key, value in update_data.items():
        setattr(db_expense, key, value)
    db_expense.updated_by = actor

    _sync(db, db_expense, actor)
    create_audit_log(db, AuditLogCreate(
        table_name='expenses',
        record_id=expense_id,
        changed_by=actor,
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_expense)
    ))
    db.commit()
    logger.info(f"Expense (ID: {expense_id}) updated by {actor}")
    return get_expense(db, expense_id, user_id)


def delete_expense(db: Session, expense_id: int, user_id: int, actor: str) -> Optional[Expense]:
    db_expense = get_expense(db, expense_id, user_id)
    if not db_expense:
        return None

    old_values = sqlalchemy_to_dict(db_expense)
    soft_delete(db_expense, actor)
    ledger.remove_document(db, user_id, TransactionType.EXPENSE, expense_id)
    transactions.remove_transaction(db, user_id, TransactionType.EXPENSE, expense_id)
    create_audit_log(db, AuditLogCreate(
        table_name='expenses',
        record_id=expense_id,
        changed_by=actor,
        action='DELETE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_expense)
    ))
    db.commit()
    logger.info(f"Expense (ID: {expense_id}) deleted by {actor}")
    return db_expense


def restore_expense(db: Session, expense_id: int, user_id: int, actor: str) -> Optional[Expense]:
    db_expense = get_deleted(db, Expense, expense_id, user_id)
    if not db_expense:
        return None
    _check_category(db, db_expense.category_id, user_id)
    restore(db_expense, actor)
    _sync(db, db_expense, actor)
    db.commit()
    logger.info(f"Expense (ID: {expense_id}) restored by {actor}")
    return get_expense(db, expense_id, user_id)
