from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

class CompanyUpsert(BaseModel):
    name: str = Field(min_length=1)
    logo: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    tax_id: Optional[str] = None
    industry: Optional[str] = None

class Company(CompanyUpsert):
    id: int
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
