import logging
from typing import Optional

from sqlalchemy.orm import Session

import config as settings
from crud import app_config as crud_app_config
from crud.account_groups import create_default_account_groups
from crud.categories import create_default_income_categories, create_default_expense_categories
from crud.exceptions import BusinessRuleError, ConflictError
from models.users import User
from schemas.users import UserCreate, UserUpdate, PasswordChange
from utils.auth_utils import hash_password, verify_password

logger = logging.getLogger("users")


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email.lower()).first()


def register_user(db: Session, user: UserCreate) -> User:
    """Create the user and seed their books: account groups, categories and settings."""
    if get_user_by_email(db, user.email):
        raise ConflictError("A user with this email already exists")

    email = user.email.lower()
    db_user = User(
        email=email,
        hashed_password=hash_password(user.password),
        name=user.name,
        phone=user.phone,
        created_by=email,
    )
    db.add(db_user)
    db.flush()

    create_default_account_groups(db, db_user.id, actor=email, commit=False)
    create_default_income_categories(db, db_user.id, actor=email, commit=False)
    create_default_expense_categories(db, db_user.id, actor=email, commit=False)
    crud_app_config.set_config(db, crud_app_config.CURRENCY, settings.DEFAULT_CURRENCY, db_user.id, email, commit=False)
    crud_app_config.set_config(db, crud_app_config.DEFAULT_TAX_RATE, settings.DEFAULT_TAX_RATE, db_user.id, email, commit=False)
    db.commit()
    db.refresh(db_user)
    logger.info(f"User {db_user.email} (ID: {db_user.id}) registered")
    return db_user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    db_user = get_user_by_email(db, email)
    if not db_user or not verify_password(password, db_user.hashed_password):
        logger.warning(f"Failed login attempt for {email}")
        return None
    if not db_user.is_active:
        logger.warning(f"Login attempt for inactive user {email}")
        return None
    return db_user


def update_user(db: Session, db_user: User, user_update: UserUpdate) -> User:
    update_data = user_update.model_dump(exclude_unset=True)
    if 'email' in update_data and update_data['email']:
        email = update_data['email'].lower()
        existing = get_user_by_email(db, email)
        if existing and existing.id != db_user.id:
            raise ConflictError("A user with this email already exists")
        update_data['email'] = email
    for key, value in update_data.items():
        if value is None and key in ('email', 'name', 'notifications_enabled', 'email_notifications',
                                     'push_notifications', 'language', 'theme'):
            continue
        setattr(db_user, key, value)
    db_user.updated_by = db_user.email
    db.commit()
    db.refresh(db_user)
    logger.info(f"User {db_user.email} (ID: {db_user.id}) updated their profile")
    return db_user


def change_password(db: Session, db_user: User, password_change: PasswordChange) -> User:
    if not verify_password(password_change.current_password, db_user.hashed_password):
        raise BusinessRuleError("Current password is incorrect")
    db_user.hashed_password = hash_password(password_change.new_password)
    db_user.updated_by = db_user.email
    db.commit()
    logger.info(f"User {db_user.email} (ID: {db_user.id}) changed their password")
    return db_user
