"""Bicycle domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...security_utils import strip_html

CURRENT_YEAR_MARGIN = 1


class BicycleCreate(BaseModel):
    """Registration fields, collected from the multipart form"""

    serialNumber: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    bikeType: Optional[str] = None
    characteristics: Optional[str] = None
    year: Optional[int] = None
    wheelSize: Optional[str] = None
    groupset: Optional[str] = None

    @field_validator(
        "serialNumber", "brand", "model", "color", "bikeType", "characteristics", "wheelSize", "groupset"
    )
    @classmethod
    def clean_text(cls, v: Optional[str]) -> Optional[str]:
        v = strip_html(v)
        return v or None

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: Optional[int]) -> Optional[int]:
        if v is None:
            return v
        if v < 1900 or v > datetime.utcnow().year + CURRENT_YEAR_MARGIN:
            raise ValueError("Invalid bicycle year")
        return v

    def missing_required(self) -> list[str]:
        required = ("serialNumber", "brand", "model", "color", "bikeType")
        return [name for name in required if not getattr(self, name)]


class BicycleUpdate(BaseModel):
    brand: Optional[str] = None
    model: Optional[str] = None
    color: Optional[str] = None
    characteristics: Optional[str] = None

    @field_validator("brand", "model", "color", "characteristics")
    @classmethod
    def clean_text(cls, v: Optional[str]) -> Optional[str]:
        v = strip_html(v)
        return v or None


class BicycleImageResponse(BaseModel):
    id: int
    image_url: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class BicycleInvoiceResponse(BaseModel):
    id: int
    bicycle_id: int
    file_name: str
    file_url: str
    file_size: int
    mime_type: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class BicycleResponse(BaseModel):
    id: int
    public_id: str
    serial_number: str
    brand: str
    model: str
    color: str
    characteristics: Optional[str]
    bike_type: str
    year: Optional[int]
    wheel_size: Optional[str]
    groupset: Optional[str]
    registration_date: Optional[datetime]
    payment_status: bool
    theft_status: str
    images: list[BicycleImageResponse] = []
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True
