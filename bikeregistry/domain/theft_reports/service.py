"""Theft report service - Flags bicycles as stolen and notifies the owner"""

import logging
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...email_service import send_theft_report_confirmation
from ...models import TheftReport, User
from ..bicycles.repository import BicycleRepository
from .repository import TheftReportRepository
from .schemas import TheftReportCreate

logger = logging.getLogger(__name__)


class TheftReportService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = TheftReportRepository()
        self.bicycles = BicycleRepository()

    def list_reports(self, user: User) -> list[TheftReport]:
        return self.repo.list_for_user(self.db, user.id)

    async def report_theft(self, bicycle_id: int, data: TheftReportCreate, user: User) -> TheftReport:
        if not data.location or not data.description:
            raise HTTPException(status_code=400, detail="Location and description are required")

        bicycle = self.bicycles.get_bicycle_by_id(self.db, bicycle_id, user.id)
        if not bicycle:
            raise HTTPException(status_code=404, detail="Bicycle not found")

        if bicycle.theft_status == "reported_stolen":
            raise HTTPException(
                status_code=400, detail="This bicycle is already reported as stolen"
            )

        try:
            report = self.repo.create_report(
                self.db,
                bicycle,
                location=data.location,
                description=data.description,
                police_report_number=data.policeReportNumber,
            )
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create theft report for bicycle {bicycle.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to report theft") from e

        logger.info(f"🚨 Bicycle {bicycle.id} ({bicycle.serial_number}) reported stolen by user {user.id}")

        try:
            await send_theft_report_confirmation(
                to=user.email,
                user_name=user.full_name,
                bicycle_label=f"{bicycle.brand} {bicycle.model}",
                serial_number=bicycle.serial_number,
                location=report.location,
                report_date=report.report_date or datetime.utcnow(),
                public_id=bicycle.public_id,
            )
        except Exception as e:
            logger.error(f"❌ Failed to send theft confirmation to user {user.id}: {e}")

        return report
