"""Theft report schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...security_utils import strip_html


class TheftReportCreate(BaseModel):
    location: Optional[str] = None
    description: Optional[str] = None
    policeReportNumber: Optional[str] = None

    @field_validator("location", "description", "policeReportNumber")
    @classmethod
    def clean_text(cls, v: Optional[str]) -> Optional[str]:
        v = strip_html(v)
        return v or None


class TheftReportWithBicycle(TheftReportCreate):
    """Body of POST /theft-reports, which names the bicycle explicitly"""

    bicycleId: int


class TheftReportResponse(BaseModel):
    id: int
    bicycle_id: int
    report_date: Optional[datetime]
    location: str
    description: str
    police_report_number: Optional[str]
    status: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
