from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal
from models.customers import PartyStatus
from utils import split_tags

class VendorBase(BaseModel):
    name: str = Field(min_length=1)
    company: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    contact_person: Optional[str] = None
    website: Optional[str] = None
    category: Optional[str] = None
    status: PartyStatus = PartyStatus.ACTIVE
    notes: Optional[str] = None
    credit_limit: Optional[Decimal] = Field(default=None, ge=0)
    payment_terms: Optional[str] = None
    tax_id: Optional[str] = None
    bank_details: Optional[str] = None
    tags: List[str] = []

class VendorCreate(VendorBase):
    pass

class VendorUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    company: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    contact_person: Optional[str] = None
    website: Optional[str] = None
    category: Optional[str] = None
    status: Optional[PartyStatus] = None
    notes: Optional[str] = None
    credit_limit: Optional[Decimal] = Field(default=None, ge=0)
    payment_terms: Optional[str] = None
    tax_id: Optional[str] = None
    bank_details: Optional[str] = None
    tags: Optional[List[str]] = None

class Vendor(VendorBase):
    id: int
    email: Optional[str] = None
    outstanding_balance: Decimal
    total_purchases: Decimal
    last_purchase_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('tags', mode='before')
    @classmethod
    def parse_tags(cls, v):
        return split_tags(v) if isinstance(v, str) or v is None else v

    class Config:
        from_attributes = True
