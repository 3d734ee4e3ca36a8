"""Public verification schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class PublicOwner(BaseModel):
    full_name: Optional[str]
    phone: Optional[str] = None


class PublicImage(BaseModel):
    id: int
    image_url: str

    class Config:
        from_attributes = True


class PublicBicycle(BaseModel):
    """Bicycle as shown on the public verification page"""

    id: int
    public_id: str
    serial_number: str
    brand: str
    model: str
    color: str
    bike_type: Optional[str]
    year: Optional[int]
    wheel_size: Optional[str]
    registration_date: Optional[datetime]
    theft_status: str
    is_stolen: bool

    class Config:
        from_attributes = True


class VerificationResponse(BaseModel):
    bicycle: PublicBicycle
    owner: PublicOwner
    images: list[PublicImage] = []


class SearchResponse(BaseModel):
    type: str
    query: str
    count: int
    results: list[VerificationResponse]


class RecentRegistration(BaseModel):
    id: int
    public_id: str
    serial_number: str
    brand: str
    model: str
    color: str
    registration_date: Optional[datetime]
    owner_name: Optional[str]
    image_url: Optional[str] = None
