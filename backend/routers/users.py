from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from database import get_db
from crud import users as crud_users
from crud import companies as crud_companies
from models.users import User as UserModel
from schemas.users import User, UserUpdate, PasswordChange
from schemas.companies import Company, CompanyUpsert
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(tags=["Users"])
logger = logging.getLogger("users")

@router.get("/users/me", response_model=User)
def read_current_user(user: UserModel = Depends(get_current_user)):
    return user

@router.patch("/users/me", response_model=User)
def update_current_user(user_update: UserUpdate, db: Session = Depends(get_db), user: UserModel = Depends(get_current_user)):
    return crud_users.update_user(db, user, user_update)

@router.post("/users/me/password")
def change_password(password_change: PasswordChange, db: Session = Depends(get_db), user: UserModel = Depends(get_current_user)):
    crud_users.change_password(db, user, password_change)
    return {"message": "Password updated successfully"}

@router.get("/company", response_model=Company)
def read_company(db: Session = Depends(get_db), user: UserModel = Depends(get_current_user)):
    db_company = crud_companies.get_company_by_user(db, user.id)
    if db_company is None:
        raise HTTPException(status_code=404, detail="Company profile not set up")
    return db_company

@router.put("/company", response_model=Company)
def upsert_company(company: CompanyUpsert, db: Session = Depends(get_db), user: UserModel = Depends(get_current_user)):
    """Create the company profile on first call, overwrite it afterwards."""
    return crud_companies.upsert_company(db, company, user.id, get_user_identifier(user))
