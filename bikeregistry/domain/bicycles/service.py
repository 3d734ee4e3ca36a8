"""Bicycle service - Business logic for bicycle registration and files"""

import logging
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Bicycle, BicycleImage, BicycleInvoice, User
from ...plan_limits import can_register_bicycle
from ...security_utils import sanitize_filename
from ...utils import storage
from .repository import BicycleRepository
from .schemas import BicycleCreate, BicycleUpdate

logger = logging.getLogger(__name__)


class BicycleService:
    """Service layer for bicycle business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BicycleRepository()

    def get_bicycles(self, user: User) -> list[Bicycle]:
        return self.repo.get_bicycles(self.db, user.id)

    def get_bicycle(self, bicycle_id: int, user: User) -> Bicycle:
        """Get a bicycle owned by the user"""
        bicycle = self.repo.get_bicycle_by_id(self.db, bicycle_id, user.id)
        if not bicycle:
            raise HTTPException(status_code=404, detail="Bicycle not found")
        return bicycle

    async def register_bicycle(
        self, data: BicycleCreate, images: Optional[list[UploadFile]], user: User
    ) -> Bicycle:
        """Register a bicycle against the user's plan limit and store up to 4 images"""
        logger.info(f"📥 Registering bicycle for user_id: {user.id}")

        missing = data.missing_required()
        if missing:
            raise HTTPException(
                status_code=400,
                detail=f"Missing required bicycle fields: {', '.join(missing)}",
            )

        can_register, error_message = can_register_bicycle(user, self.db)
        if not can_register:
            logger.warning(f"⚠️ User {user.id} cannot register bicycle: {error_message}")
            raise HTTPException(status_code=400, detail=error_message)

        if self.repo.get_by_serial_number(self.db, data.serialNumber):
            raise HTTPException(
                status_code=400, detail="A bicycle with this serial number is already registered"
            )

        try:
            bicycle = self.repo.create_bicycle(
                self.db,
                user.id,
                serial_number=data.serialNumber,
                brand=data.brand,
                model=data.model,
                color=data.color,
                bike_type=data.bikeType,
                characteristics=data.characteristics,
                year=data.year,
                wheel_size=data.wheelSize,
                groupset=data.groupset,
                payment_status=True,  # Covered by the subscription
                theft_status="active",
            )
        except IntegrityError as e:
            self.db.rollback()
            raise HTTPException(
                status_code=400, detail="A bicycle with this serial number is already registered"
            ) from e

        logger.info(f"✅ Bicycle registered: {bicycle.id} ({bicycle.serial_number})")

        uploads = [image for image in (images or []) if image and image.filename]
        if len(uploads) > storage.MAX_IMAGES_PER_BICYCLE:
            logger.warning(
                f"⚠️ {len(uploads)} images sent for bicycle {bicycle.id}; "
                f"keeping the first {storage.MAX_IMAGES_PER_BICYCLE}"
            )
        for image in uploads[: storage.MAX_IMAGES_PER_BICYCLE]:
            try:
                await self._store_image(bicycle, image, user)
            except HTTPException as e:
                logger.warning(f"⚠️ Skipped image {image.filename} for bicycle {bicycle.id}: {e.detail}")
            except Exception as e:
                logger.error(f"❌ Failed to store image {image.filename} for bicycle {bicycle.id}: {e}")

        self.db.refresh(bicycle)
        return bicycle

    def update_bicycle(self, bicycle_id: int, data: BicycleUpdate, user: User) -> Bicycle:
        bicycle = self.get_bicycle(bicycle_id, user)

        if not data.brand or not data.model or not data.color:
            raise HTTPException(status_code=400, detail="Brand, model and color are required")

        return self.repo.update_bicycle(
            self.db,
            bicycle,
            brand=data.brand,
            model=data.model,
            color=data.color,
            characteristics=data.characteristics,
        )

    def delete_bicycle(self, bicycle_id: int, user: User) -> None:
        """Delete a bicycle, its stored files and every dependent row"""
        bicycle = self.get_bicycle(bicycle_id, user)

        storage_keys = [image.storage_key for image in bicycle.images if image.storage_key]
        if bicycle.invoice and bicycle.invoice.storage_key:
            storage_keys.append(bicycle.invoice.storage_key)

        for key in storage_keys:
            storage.delete_file(key)

        try:
            self.repo.delete_bicycle(self.db, bicycle)
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"🗑️ Deleted bicycle {bicycle_id} for user {user.id}")

    # ========================================================================
    # IMAGES
    # ========================================================================

    async def _store_image(self, bicycle: Bicycle, file: UploadFile, user: User) -> BicycleImage:
        contents = await file.read()
        content_type = (file.content_type or "").lower()

        error = storage.validate_image_upload(content_type, len(contents))
        if error:
            raise HTTPException(status_code=400, detail=error)

        key = storage.build_image_key(user.id, bicycle.id, file.filename)
        try:
            storage.upload_file(key, contents, content_type)
        except Exception as e:
            logger.error(f"❌ Failed to upload image for bicycle {bicycle.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to upload image") from e

        return self.repo.add_image(self.db, bicycle.id, storage.public_url(key), key)

    async def upload_image(self, bicycle_id: int, file: UploadFile, user: User) -> BicycleImage:
        bicycle = self.get_bicycle(bicycle_id, user)

        if not file or not file.filename:
            raise HTTPException(status_code=400, detail="No file provided")

        if self.repo.count_images(self.db, bicycle.id) >= storage.MAX_IMAGES_PER_BICYCLE:
            raise HTTPException(
                status_code=400,
                detail=f"A bicycle can have at most {storage.MAX_IMAGES_PER_BICYCLE} images",
            )

        return await self._store_image(bicycle, file, user)

    # ========================================================================
    # INVOICE
    # ========================================================================

    def get_invoice(self, bicycle_id: int, user: User) -> BicycleInvoice:
        bicycle = self.get_bicycle(bicycle_id, user)
        invoice = self.repo.get_invoice(self.db, bicycle.id)
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return invoice

    async def upload_invoice(self, bicycle_id: int, file: UploadFile, user: User) -> BicycleInvoice:
        """Store a purchase invoice; replaces any previous one"""
        bicycle = self.get_bicycle(bicycle_id, user)

        if not file or not file.filename:
            raise HTTPException(status_code=400, detail="No file provided")

        contents = await file.read()
        content_type = (file.content_type or "").lower()
        error = storage.validate_invoice_upload(content_type, len(contents))
        if error:
            raise HTTPException(status_code=400, detail=error)

        previous = self.repo.get_invoice(self.db, bicycle.id)
        previous_key = previous.storage_key if previous else None

        key = storage.build_invoice_key(user.id, bicycle.id, file.filename)
        try:
            storage.upload_file(key, contents, content_type)
        except Exception as e:
            logger.error(f"❌ Failed to upload invoice for bicycle {bicycle.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to upload invoice") from e

        invoice = self.repo.save_invoice(
            self.db,
            bicycle.id,
            user.id,
            file_name=sanitize_filename(file.filename),
            file_url=storage.public_url(key),
            storage_key=key,
            file_size=len(contents),
            mime_type=content_type,
        )

        if previous_key and previous_key != key:
            storage.delete_file(previous_key)

        logger.info(f"✅ Invoice stored for bicycle {bicycle.id}: {key}")
        return invoice

    def delete_invoice(self, bicycle_id: int, user: User) -> None:
        invoice = self.get_invoice(bicycle_id, user)
        storage.delete_file(invoice.storage_key)
        self.repo.delete_invoice(self.db, invoice)
        logger.info(f"🗑️ Deleted invoice for bicycle {bicycle_id}")
