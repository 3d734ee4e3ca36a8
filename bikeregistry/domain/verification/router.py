"""Public verification router - No authentication required"""

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import RecentRegistration, SearchResponse, VerificationResponse
from .service import VerificationService

router = APIRouter(prefix="/verify", tags=["Verification"])

PUBLIC_CACHE_CONTROL = "public, max-age=60"


def get_verification_service(db: Session = Depends(get_db)) -> VerificationService:
    """Dependency injection for VerificationService"""
    return VerificationService(db)


# Static paths are declared before /{identifier}


@router.get("/recent", response_model=list[RecentRegistration])
async def recent_registrations(
    response: Response,
    service: VerificationService = Depends(get_verification_service),
):
    """Six most recent paid registrations"""
    response.headers["Cache-Control"] = PUBLIC_CACHE_CONTROL
    return service.recent()


@router.get("/search", response_model=SearchResponse)
async def search_bicycles(
    response: Response,
    type: str = Query("serial"),
    q: str = Query(""),
    service: VerificationService = Depends(get_verification_service),
):
    """Search registered bicycles by serial number, ID, color or model"""
    response.headers["Cache-Control"] = PUBLIC_CACHE_CONTROL
    return service.search(type, q)


@router.get("/{identifier}", response_model=VerificationResponse)
async def verify_bicycle(
    identifier: str,
    response: Response,
    service: VerificationService = Depends(get_verification_service),
):
    """Public verification page data for a bicycle"""
    response.headers["Cache-Control"] = PUBLIC_CACHE_CONTROL
    return service.verify(identifier)
