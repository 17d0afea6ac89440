from decimal import Decimal, InvalidOperation
import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session
from models.app_config import AppConfig
from schemas.app_config import AppSettings, AppSettingsUpdate

# Audit imports
from crud.audit_log import create_audit_log
from crud.exceptions import BusinessRuleError
from schemas.audit_log import AuditLogCreate
from utils import sqlalchemy_to_dict
import config as settings

logger = logging.getLogger("app_config")

CURRENCY = "currency"
DEFAULT_TAX_RATE = "default_tax_rate"


# Get config by name (or all configs)
def get_config(db: Session, user_id: int, name: str = None):
    if name:
        return db.query(AppConfig).filter(AppConfig.name == name, AppConfig.user_id == user_id).first()
    return db.query(AppConfig).filter(AppConfig.user_id == user_id).order_by(AppConfig.name).all()


def _checked_value(name: str, value) -> str:
    """Typed settings keep the constraints of AppSettingsUpdate; other names are free text."""
    if name not in AppSettingsUpdate.model_fields:
        return str(value)
    try:
        typed = AppSettingsUpdate.model_validate({name: value})
    except ValidationError as e:
        raise BusinessRuleError(f"Invalid value for {name}: {e.errors()[0]['msg']}")
    return str(getattr(typed, name))


def set_config(db: Session, name: str, value, user_id: int, actor: str, commit: bool = True):
    """Create or overwrite a config row by name."""
    value = _checked_value(name, value)
    db_config = get_config(db, user_id, name=name)
    if db_config:
        old_values = sqlalchemy_to_dict(db_config)
        db_config.value = value
        db_config.updated_by = actor
        action = 'UPDATE'
    else:
        db_config = AppConfig(name=name, value=value, user_id=user_id, created_by=actor)
        db.add(db_config)
        old_values = {}
        action = 'CREATE'
    db.flush()

    create_audit_log(db, AuditLogCreate(
        table_name='app_config',
        record_id=db_config.id,
        changed_by=actor,
        action=action,
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_config)
    ))
    if commit:
        db.commit()
        db.refresh(db_config)
    return db_config


def delete_config(db: Session, name: str, user_id: int):
    db_config = get_config(db, user_id, name=name)
    if not db_config:
        return None
    db.delete(db_config)
    db.commit()
    return db_config


def get_default_tax_rate(db: Session, user_id: int) -> Decimal:
    db_config = get_config(db, user_id, name=DEFAULT_TAX_RATE)
    if not db_config:
        return settings.DEFAULT_TAX_RATE
    try:
        rate = Decimal(db_config.value)
    except InvalidOperation:
        rate = None
    if rate is None or not rate.is_finite() or not Decimal(0) <= rate <= Decimal(1):
        logger.warning(f"Ignoring invalid default_tax_rate '{db_config.value}' for user {user_id}")
        return settings.DEFAULT_TAX_RATE
    return rate


def get_app_settings(db: Session, user_id: int) -> AppSettings:
    currency = get_config(db, user_id, name=CURRENCY)
    return AppSettings(
        currency=currency.value if currency else settings.DEFAULT_CURRENCY,
        default_tax_rate=get_default_tax_rate(db, user_id),
    )


def update_app_settings(db: Session, updates: dict, user_id: int, actor: str) -> AppSettings:
    for name, value in updates.items():
        if value is None:
            continue
        set_config(db, name, value, user_id, actor, commit=False)
    db.commit()
    return get_app_settings(db, user_id)
