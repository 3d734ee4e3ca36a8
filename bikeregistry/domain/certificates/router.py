"""Certificates router - Registration certificate PDF and QR codes"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .service import CertificateService

router = APIRouter(prefix="/bicycles", tags=["Certificates"])


def get_certificate_service(db: Session = Depends(get_db)) -> CertificateService:
    """Dependency injection for CertificateService"""
    return CertificateService(db)


@router.get("/{bicycle_id}/certificate")
async def download_certificate(
    bicycle_id: int,
    user: User = Depends(get_current_user),
    service: CertificateService = Depends(get_certificate_service),
):
    """Download the registration certificate as PDF"""
    pdf_bytes, filename = service.generate_certificate(bicycle_id, user)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{bicycle_id}/qr")
async def get_qr_code(
    bicycle_id: int,
    user: User = Depends(get_current_user),
    service: CertificateService = Depends(get_certificate_service),
):
    """QR code (PNG) with the bicycle's registration data"""
    return Response(content=service.generate_qr(bicycle_id, user), media_type="image/png")


@router.get("/{bicycle_id}/qr-data")
async def get_qr_data(
    bicycle_id: int,
    user: User = Depends(get_current_user),
    service: CertificateService = Depends(get_certificate_service),
):
    return service.get_qr_data(bicycle_id, user)
