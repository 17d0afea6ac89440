from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from crud import account_groups as crud_account_groups
from models.account_groups import AccountType
from models.users import User
from schemas.account_groups import AccountGroup, AccountGroupCreate, AccountGroupUpdate
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/account-groups", tags=["Account Groups"])
logger = logging.getLogger("account_groups")

@router.get("/", response_model=List[AccountGroup])
def read_account_groups(
    type: Optional[AccountType] = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return crud_account_groups.get_account_groups(db, user.id, account_type=type)

@router.get("/by-type/{account_type}", response_model=List[AccountGroup])
def read_account_groups_by_type(account_type: AccountType, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return crud_account_groups.get_account_groups_by_type(db, account_type, user.id)

@router.get("/{group_id}", response_model=AccountGroup)
def read_account_group(group_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    db_group = crud_account_groups.get_account_group(db, group_id, user.id)
    if db_group is None:
        raise HTTPException(status_code=404, detail="Account group not found")
    return db_group

@router.post("/", response_model=AccountGroup, status_code=status.HTTP_201_CREATED)
def create_account_group(group: AccountGroupCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return crud_account_groups.create_account_group(db, group, user.id, get_user_identifier(user))

@router.patch("/{group_id}", response_model=AccountGroup)
def update_account_group(
    group_id: int,
    group: AccountGroupUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    db_group = crud_account_groups.update_account_group(db, group_id, group, user.id, get_user_identifier(user))
    if db_group is None:
        raise HTTPException(status_code=404, detail="Account group not found")
    return db_group

@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account_group(group_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Default groups and groups with ledger entries cannot be deleted."""
    db_group = crud_account_groups.delete_account_group(db, group_id, user.id)
    if db_group is None:
        raise HTTPException(status_code=404, detail="Account group not found")
    logger.info(f"Account group {group_id} deleted by {get_user_identifier(user)}")
    return None
