"""Theft report repository - Database operations for theft reports"""

from sqlalchemy.orm import Session

from ...models import Bicycle, TheftReport


class TheftReportRepository:
    """Repository for theft report database operations"""

    @staticmethod
    def list_for_user(db: Session, user_id: int) -> list[TheftReport]:
        return (
            db.query(TheftReport)
            .filter(TheftReport.user_id == user_id)
            .order_by(TheftReport.report_date.desc(), TheftReport.id.desc())
            .all()
        )

    @staticmethod
    def create_report(db: Session, bicycle: Bicycle, **kwargs) -> TheftReport:
        """Insert the report and flag the bicycle as stolen in one commit"""
        report = TheftReport(
            bicycle_id=bicycle.id, user_id=bicycle.user_id, status="reported", **kwargs
        )
        db.add(report)
        bicycle.theft_status = "reported_stolen"
        db.commit()
        db.refresh(report)
        return report
