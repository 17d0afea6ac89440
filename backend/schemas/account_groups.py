from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from models.account_groups import AccountType

class AccountGroupBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    type: AccountType

class AccountGroupCreate(AccountGroupBase):
    pass

class AccountGroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    type: Optional[AccountType] = None

class AccountGroup(AccountGroupBase):
    id: int
    is_default: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
