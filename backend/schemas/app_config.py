from pydantic import BaseModel, Field
from typing import Optional
from decimal import Decimal

class AppConfigBase(BaseModel):
    name: str
    value: str

class AppConfigCreate(AppConfigBase):
    pass

class AppConfigUpdate(BaseModel):
    value: Optional[str] = None

class AppConfigOut(AppConfigBase):
    id: int

    class Config:
        from_attributes = True

class AppSettings(BaseModel):
    """Typed view over the per-user configuration rows."""
    currency: str
    default_tax_rate: Decimal = Field(ge=0, le=1)

class AppSettingsUpdate(BaseModel):
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)
    default_tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=1)
