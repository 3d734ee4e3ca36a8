"""Bicycles router - FastAPI endpoints for bicycle operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from .schemas import BicycleCreate, BicycleInvoiceResponse, BicycleResponse, BicycleUpdate
from .service import BicycleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bicycles", tags=["Bicycles"])


def get_bicycle_service(db: Session = Depends(get_db)) -> BicycleService:
    """Dependency injection for BicycleService"""
    return BicycleService(db)


# ============================================================================
# REGISTRATION & CRUD
# ============================================================================


@router.post("/register", status_code=201)
async def register_bicycle(
    serialNumber: Optional[str] = Form(None),
    brand: Optional[str] = Form(None),
    model: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    bikeType: Optional[str] = Form(None),
    characteristics: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    wheelSize: Optional[str] = Form(None),
    groupset: Optional[str] = Form(None),
    images: Optional[list[UploadFile]] = File(None),
    user: User = Depends(get_current_user),
    service: BicycleService = Depends(get_bicycle_service),
):
    """Register a bicycle (multipart form with up to 4 images)"""
    try:
        data = BicycleCreate(
            serialNumber=serialNumber,
            brand=brand,
            model=model,
            color=color,
            bikeType=bikeType,
            characteristics=characteristics,
            year=int(year) if year and year.strip() else None,
            wheelSize=wheelSize,
            groupset=groupset,
        )
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail="Invalid bicycle data") from e

    bicycle = await service.register_bicycle(data, images, user)
    return {
        "success": True,
        "message": "Bicycle registered successfully",
        "bicycleId": bicycle.id,
        "publicId": bicycle.public_id,
        "images": len(bicycle.images),
    }


@router.get("", response_model=list[BicycleResponse])
async def list_bicycles(
    user: User = Depends(get_current_user),
    service: BicycleService = Depends(get_bicycle_service),
):
    """Get all bicycles for the current user"""
    return service.get_bicycles(user)


@router.get("/{bicycle_id}", response_model=BicycleResponse)
async def get_bicycle(
    bicycle_id: int,
    user: User = Depends(get_current_user),
    service: BicycleService = Depends(get_bicycle_service),
):
    """Get a specific bicycle"""
    return service.get_bicycle(bicycle_id, user)


@router.put("/{bicycle_id}")
async def update_bicycle(
    bicycle_id: int,
    body: BicycleUpdate,
    user: User = Depends(get_current_user),
    service: BicycleService = Depends(get_bicycle_service),
):
    """Update brand, model, color and characteristics"""
    bicycle = service.update_bicycle(bicycle_id, body, user)
    return {
        "success": True,
        "message": "Bicycle updated successfully",
        "bicycle": BicycleResponse.model_validate(bicycle),
    }


@router.delete("/{bicycle_id}")
async def delete_bicycle(
    bicycle_id: int,
    user: User = Depends(get_current_user),
    service: BicycleService = Depends(get_bicycle_service),
):
    """Delete a bicycle and everything attached to it"""
    service.delete_bicycle(bicycle_id, user)
    return {"success": True, "message": "Bicycle deleted successfully"}


# ============================================================================
# FILES
# ============================================================================


@router.post("/{bicycle_id}/images")
async def upload_bicycle_image(
    bicycle_id: int,
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    service: BicycleService = Depends(get_bicycle_service),
):
    """Add an image to a bicycle"""
    image = await service.upload_image(bicycle_id, file, user)
    return {"success": True, "id": image.id, "url": image.image_url}


@router.get("/{bicycle_id}/invoice", response_model=BicycleInvoiceResponse)
async def get_bicycle_invoice(
    bicycle_id: int,
    user: User = Depends(get_current_user),
    service: BicycleService = Depends(get_bicycle_service),
):
    return service.get_invoice(bicycle_id, user)


@router.post("/{bicycle_id}/invoice")
async def upload_bicycle_invoice(
    bicycle_id: int,
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    service: BicycleService = Depends(get_bicycle_service),
):
    """Upload (or replace) the purchase invoice"""
    invoice = await service.upload_invoice(bicycle_id, file, user)
    return {
        "success": True,
        "message": "Invoice uploaded successfully",
        "invoice": BicycleInvoiceResponse.model_validate(invoice),
    }


@router.delete("/{bicycle_id}/invoice")
async def delete_bicycle_invoice(
    bicycle_id: int,
    user: User = Depends(get_current_user),
    service: BicycleService = Depends(get_bicycle_service),
):
    service.delete_invoice(bicycle_id, user)
    return {"success": True, "message": "Invoice deleted successfully"}
