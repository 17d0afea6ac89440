from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    phone: Optional[str] = None

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    notifications_enabled: Optional[bool] = None
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    language: Optional[str] = Field(default=None, max_length=10)
    theme: Optional[str] = Field(default=None, max_length=10)

class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)

class User(BaseModel):
    id: int
    email: str
    name: str
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool
    notifications_enabled: bool
    email_notifications: bool
    push_notifications: bool
    language: str
    theme: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
