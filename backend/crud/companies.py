import logging
from typing import Optional

from sqlalchemy.orm import Session

from crud.audit_log import create_audit_log
from models.companies import Company
from schemas.audit_log import AuditLogCreate
from schemas.companies import CompanyUpsert
from utils import sqlalchemy_to_dict

logger = logging.getLogger("companies")


def get_company_by_user(db: Session, user_id: int) -> Optional[Company]:
    return db.query(Company).filter(Company.user_id == user_id).first()


def upsert_company(db: Session, company: CompanyUpsert, user_id: int, actor: str) -> Company:
    """Each user has at most one company profile; create it on first save."""
    db_company = get_company_by_user(db, user_id)
    if db_company is None:
        db_company = Company(**company.model_dump(), user_id=user_id, created_by=actor)
        db.add(db_company)
        db.commit()
        db.refresh(db_company)
        logger.info(f"Company '{db_company.name}' (ID: {db_company.id}) created by {actor}")
        return db_company

    old_values = sqlalchemy_to_dict(db_company)
    for key, value in company.model_dump(exclude_unset=True).items():
        setattr(db_company, key, value)
    db_company.updated_by = actor
    db.flush()
    create_audit_log(db, AuditLogCreate(
        table_name='companies',
        record_id=db_company.id,
        changed_by=actor,
        action='UPDATE',
        old_values=old_values,
        new_values=sqlalchemy_to_dict(db_company)
    ))
    db.commit()
    db.refresh(db_company)
    logger.info(f"Company (ID: {db_company.id}) updated by {actor}")
    return db_company
