import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from crud.exceptions import BusinessRuleError, ConflictError
from models.account_groups import AccountGroup, AccountType
from models.ledger_entries import LedgerEntry
from schemas.account_groups import AccountGroupCreate, AccountGroupUpdate

logger = logging.getLogger("account_groups")

# Names here are looked up by crud.ledger when posting documents
DEFAULT_ACCOUNT_GROUPS = [
    {"name": "Bank/Cash", "type": AccountType.ASSET, "description": "Cash in hand and bank balances"},
    {"name": "Accounts Receivable", "type": AccountType.ASSET, "description": "Money owed by customers"},
    {"name": "Inventory", "type": AccountType.ASSET, "description": "Goods purchased for resale"},
    {"name": "Purchase Returns", "type": AccountType.ASSET, "description": "Goods returned to vendors"},
    {"name": "Accounts Payable", "type": AccountType.LIABILITY, "description": "Money owed to vendors"},
    {"name": "Owner's Equity", "type": AccountType.EQUITY, "description": "Capital invested by the owner"},
    {"name": "Sales Revenue", "type": AccountType.REVENUE, "description": "Revenue from sales invoices"},
    {"name": "Sales Returns", "type": AccountType.REVENUE, "description": "Contra revenue for goods returned by customers"},
    {"name": "Income", "type": AccountType.REVENUE, "description": "Other income"},
    {"name": "Expenses", "type": AccountType.EXPENSE, "description": "Business expenses"},
]


def get_account_group(db: Session, group_id: int, user_id: int) -> Optional[AccountGroup]:
    return db.query(AccountGroup).filter(AccountGroup.id == group_id, AccountGroup.user_id == user_id).first()


def get_account_group_by_name(db: Session, name: str, user_id: int) -> Optional[AccountGroup]:
    return db.query(AccountGroup).filter(AccountGroup.name == name, AccountGroup.user_id == user_id).first()


def get_account_groups(db: Session, user_id: int, account_type: Optional[AccountType] = None) -> List[AccountGroup]:
    query = db.query(AccountGroup).filter(AccountGroup.user_id == user_id)
    if account_type:
        query = query.filter(AccountGroup.type == account_type)
    return query.order_by(AccountGroup.id).all()


def get_account_groups_by_type(db: Session, account_type: AccountType, user_id: int) -> List[AccountGroup]:
    return get_account_groups(db, user_id, account_type=account_type)


def create_account_group(db: Session, group: AccountGroupCreate, user_id: int, actor: str) -> AccountGroup:
    if get_account_group_by_name(db, group.name, user_id):
        raise ConflictError(f"Account group '{group.name}' already exists")
    db_group = AccountGroup(**group.model_dump(), user_id=user_id, is_default=False, created_by=actor)
    db.add(db_group)
    db.commit()
    db.refresh(db_group)
    logger.info(f"Account group '{db_group.name}' (ID: {db_group.id}) created by {actor}")
    return db_group


def _in_use(db: Session, group_id: int) -> bool:
    return db.query(LedgerEntry.id).filter(LedgerEntry.account_id == group_id).first() is not None


def update_account_group(db: Session, group_id: int, group_update: AccountGroupUpdate, user_id: int, actor: str) -> Optional[AccountGroup]:
    db_group = get_account_group(db, group_id, user_id)
    if not db_group:
        return None

    update_data = group_update.model_dump(exclude_unset=True)
    if db_group.is_default and 'name' in update_data and update_data['name'] != db_group.name:
        raise BusinessRuleError("Default account groups cannot be renamed.")
    if 'name' in update_data and update_data['name'] != db_group.name:
        if get_account_group_by_name(db, update_data['name'], user_id):
            raise ConflictError(f"Account group '{update_data['name']}' already exists")
    # Prevent changing account type for a group that already has postings
    if 'type' in update_data and update_data['type'] != db_group.type and _in_use(db, group_id):
        raise BusinessRuleError("Cannot change the type of an account group that has ledger entries.")

    for key, value in update_data.items():
        setattr(db_group, key, value)
    db_group.updated_by = actor
    db.commit()
    db.refresh(db_group)
    return db_group


def delete_account_group(db: Session, group_id: int, user_id: int) -> Optional[AccountGroup]:
    db_group = get_account_group(db, group_id, user_id)
    if not db_group:
        return None
    if db_group.is_default:
        raise BusinessRuleError("Default account groups cannot be deleted.")
    if _in_use(db, group_id):
        raise ConflictError("Cannot delete account group because it is referenced by ledger entries.")
    db.delete(db_group)
    db.commit()
    logger.info(f"Account group (ID: {group_id}) deleted for user {user_id}")
    return db_group


def create_default_account_groups(db: Session, user_id: int, actor: str = "system", commit: bool = True):
    """Seed the default groups; existing names are left alone."""
    created = []
    for group_data in DEFAULT_ACCOUNT_GROUPS:
        if get_account_group_by_name(db, group_data["name"], user_id):
            continue
        db_group = AccountGroup(**group_data, user_id=user_id, is_default=True, created_by=actor)
        db.add(db_group)
        created.append(db_group)
    if commit:
        db.commit()
    else:
        db.flush()
    return created
