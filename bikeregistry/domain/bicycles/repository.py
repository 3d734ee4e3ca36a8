"""Bicycle repository - Database operations for bicycles, images and invoices"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ...models import Bicycle, BicycleImage, BicycleInvoice, Payment, TheftReport


class BicycleRepository:
    """Repository for bicycle database operations"""

    @staticmethod
    def get_bicycles(db: Session, user_id: int) -> list[Bicycle]:
        """Get all bicycles for a user with their images, newest first"""
        return (
            db.query(Bicycle)
            .options(selectinload(Bicycle.images))
            .filter(Bicycle.user_id == user_id)
            .order_by(Bicycle.created_at.desc(), Bicycle.id.desc())
            .all()
        )

    @staticmethod
    def get_bicycle_by_id(db: Session, bicycle_id: int, user_id: int) -> Optional[Bicycle]:
        """Get a bicycle owned by the user"""
        return (
            db.query(Bicycle)
            .filter(Bicycle.id == bicycle_id, Bicycle.user_id == user_id)
            .first()
        )

    @staticmethod
    def get_by_serial_number(db: Session, serial_number: str) -> Optional[Bicycle]:
        return (
            db.query(Bicycle)
            .filter(func.lower(Bicycle.serial_number) == serial_number.lower())
            .first()
        )

    @staticmethod
    def create_bicycle(db: Session, user_id: int, **kwargs) -> Bicycle:
        bicycle = Bicycle(user_id=user_id, **kwargs)
        db.add(bicycle)
        db.commit()
        db.refresh(bicycle)
        return bicycle

    @staticmethod
    def update_bicycle(db: Session, bicycle: Bicycle, **kwargs) -> Bicycle:
        for key, value in kwargs.items():
            setattr(bicycle, key, value)
        db.commit()
        db.refresh(bicycle)
        return bicycle

    @staticmethod
    def delete_bicycle(db: Session, bicycle: Bicycle) -> None:
        """Delete a bicycle together with its images, invoice, payments and theft reports"""
        db.query(BicycleImage).filter(BicycleImage.bicycle_id == bicycle.id).delete(
            synchronize_session=False
        )
        db.query(BicycleInvoice).filter(BicycleInvoice.bicycle_id == bicycle.id).delete(
            synchronize_session=False
        )
        db.query(Payment).filter(Payment.bicycle_id == bicycle.id).delete(
            synchronize_session=False
        )
        db.query(TheftReport).filter(TheftReport.bicycle_id == bicycle.id).delete(
            synchronize_session=False
        )
        db.expire(bicycle)
        db.delete(bicycle)
        db.commit()

    @staticmethod
    def count_images(db: Session, bicycle_id: int) -> int:
        return db.query(BicycleImage).filter(BicycleImage.bicycle_id == bicycle_id).count()

    @staticmethod
    def add_image(db: Session, bicycle_id: int, image_url: str, storage_key: str) -> BicycleImage:
        image = BicycleImage(bicycle_id=bicycle_id, image_url=image_url, storage_key=storage_key)
        db.add(image)
        db.commit()
        db.refresh(image)
        return image

    @staticmethod
    def get_invoice(db: Session, bicycle_id: int) -> Optional[BicycleInvoice]:
        return db.query(BicycleInvoice).filter(BicycleInvoice.bicycle_id == bicycle_id).first()

    @staticmethod
    def save_invoice(db: Session, bicycle_id: int, user_id: int, **kwargs) -> BicycleInvoice:
        """Create the invoice row, or replace the fields of the existing one"""
        invoice = BicycleRepository.get_invoice(db, bicycle_id)
        if not invoice:
            invoice = BicycleInvoice(bicycle_id=bicycle_id, user_id=user_id)
            db.add(invoice)
        for key, value in kwargs.items():
            setattr(invoice, key, value)
        db.commit()
        db.refresh(invoice)
        return invoice

    @staticmethod
    def delete_invoice(db: Session, invoice: BicycleInvoice) -> None:
        db.delete(invoice)
        db.commit()
