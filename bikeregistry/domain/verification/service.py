"""Verification service - Public lookup of registered bicycles"""

import logging
import re
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Bicycle
from ...shared.validators import validate_uuid
from .repository import VerificationRepository

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("serial", "id", "color", "model")

# ASCII digits only, always within a 32-bit integer primary key
NUMERIC_ID_PATTERN = re.compile(r"[0-9]{1,9}")


def to_public_view(bicycle: Bicycle) -> dict:
    """Registration data and owner contact shown publicly"""
    owner = bicycle.owner
    return {
        "bicycle": {
            "id": bicycle.id,
            "public_id": bicycle.public_id,
            "serial_number": bicycle.serial_number,
            "brand": bicycle.brand,
            "model": bicycle.model,
            "color": bicycle.color,
            "bike_type": bicycle.bike_type,
            "year": bicycle.year,
            "wheel_size": bicycle.wheel_size,
            "registration_date": bicycle.registration_date,
            "theft_status": bicycle.theft_status,
            "is_stolen": bicycle.theft_status == "reported_stolen",
        },
        "owner": {
            "full_name": owner.full_name if owner else None,
            "phone": owner.phone if owner else None,
        },
        "images": list(bicycle.images),
    }


class VerificationService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = VerificationRepository()

    def _find_by_identifier(self, identifier: str) -> Optional[Bicycle]:
        """Numeric registration ID or public UUID"""
        identifier = identifier.strip()
        if NUMERIC_ID_PATTERN.fullmatch(identifier):
            return self.repo.get_by_id(self.db, int(identifier))
        if validate_uuid(identifier):
            return self.repo.get_by_public_id(self.db, identifier.lower())
        return None

    def verify(self, identifier: str) -> dict:
        bicycle = self._find_by_identifier(identifier)
        if not bicycle:
            logger.info(f"🔍 Verification lookup found nothing for {identifier}")
            raise HTTPException(status_code=404, detail="Bicycle not found")

        if bicycle.theft_status == "reported_stolen":
            logger.info(f"🚨 Verification lookup hit a stolen bicycle: {bicycle.id}")
        return to_public_view(bicycle)

    def search(self, search_type: str, term: str) -> dict:
        search_type = (search_type or "").strip().lower()
        term = (term or "").strip()

        if search_type not in SEARCH_TYPES:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid search type. Use one of: {', '.join(SEARCH_TYPES)}",
            )
        if not term:
            raise HTTPException(status_code=400, detail="Search term is required")

        if search_type == "serial":
            bicycles = self.repo.search_by_serial(self.db, term)
        elif search_type == "id":
            bicycle = self._find_by_identifier(term)
            bicycles = [bicycle] if bicycle else []
        elif search_type == "color":
            bicycles = self.repo.search_by_attribute(self.db, Bicycle.color, term)
        else:
            bicycles = self.repo.search_by_attribute(self.db, Bicycle.model, term)

        logger.info(f"🔍 Public search type={search_type} returned {len(bicycles)} result(s)")
        return {
            "type": search_type,
            "query": term,
            "count": len(bicycles),
            "results": [to_public_view(bicycle) for bicycle in bicycles],
        }

    def recent(self) -> list[dict]:
        return [
            {
                "id": bicycle.id,
                "public_id": bicycle.public_id,
                "serial_number": bicycle.serial_number,
                "brand": bicycle.brand,
                "model": bicycle.model,
                "color": bicycle.color,
                "registration_date": bicycle.registration_date,
                "owner_name": bicycle.owner.full_name if bicycle.owner else None,
                "image_url": bicycle.images[0].image_url if bicycle.images else None,
            }
            for bicycle in self.repo.get_recent(self.db)
        ]
