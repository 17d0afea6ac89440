from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from starlette import status
import logging

from database import get_db
from crud import users as crud_users
from schemas.users import UserCreate, UserLogin, Token
from utils.auth_utils import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("auth")


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    """Create an account with its default account groups, categories and settings."""
    new_user = crud_users.register_user(db, user)
    access_token = create_access_token(data={"sub": str(new_user.id)})
    return Token(access_token=access_token, token_type="bearer")


@router.post("/login", response_model=Token)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    db_user = crud_users.authenticate_user(db, credentials.email, credentials.password)
    if db_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(data={"sub": str(db_user.id)})
    logger.info(f"User {db_user.id} logged in")
    return Token(access_token=access_token, token_type="bearer")
