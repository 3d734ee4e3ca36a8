"""Theft reports router"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import TheftReportCreate, TheftReportResponse, TheftReportWithBicycle
from .service import TheftReportService

router = APIRouter(tags=["Theft Reports"])


def get_theft_report_service(db: Session = Depends(get_db)) -> TheftReportService:
    """Dependency injection for TheftReportService"""
    return TheftReportService(db)


def _created(report) -> dict:
    return {
        "success": True,
        "message": "Bicycle reported as stolen",
        "reportId": report.id,
    }


@router.post("/bicycles/{bicycle_id}/report-theft", status_code=201)
async def report_bicycle_theft(
    bicycle_id: int,
    body: TheftReportCreate,
    user: User = Depends(get_current_user),
    service: TheftReportService = Depends(get_theft_report_service),
):
    """Report an owned bicycle as stolen"""
    report = await service.report_theft(bicycle_id, body, user)
    return _created(report)


@router.post("/theft-reports", status_code=201)
async def create_theft_report(
    body: TheftReportWithBicycle,
    user: User = Depends(get_current_user),
    service: TheftReportService = Depends(get_theft_report_service),
):
    report = await service.report_theft(body.bicycleId, body, user)
    return _created(report)


@router.get("/theft-reports", response_model=list[TheftReportResponse])
async def list_theft_reports(
    user: User = Depends(get_current_user),
    service: TheftReportService = Depends(get_theft_report_service),
):
    """The current user's theft reports, newest first"""
    return service.list_reports(user)
