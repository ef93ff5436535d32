"""Certification repository - Database operations for certifications"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import User
from ...models_certification import Certification
from ...shared.persistence import commit as commit_session


class CertificationRepository:
    """Repository for certification database operations"""

    @staticmethod
    def get_certification(db: Session, certification_id: int) -> Optional[Certification]:
        return (
            db.query(Certification)
            .options(joinedload(Certification.service_provider))
            .filter(Certification.id == certification_id)
            .first()
        )

    @staticmethod
    def create_certification(db: Session, commit: bool = True, **data) -> Certification:
        certification = Certification(**data)
        db.add(certification)
        if commit:
            commit_session(db, certification)
        else:
            db.flush()
        return certification

    @staticmethod
    def get_provider_certifications(
        db: Session, provider_id: int, status: Optional[str] = None
    ) -> list[Certification]:
        query = db.query(Certification).filter(Certification.service_provider_id == provider_id)
        if status:
            query = query.filter(Certification.status == status)
        return query.order_by(Certification.created_at.desc(), Certification.id.desc()).all()

    @staticmethod
    def list_certifications(
        db: Session,
        status: Optional[str] = None,
        category: Optional[str] = None,
        provider_id: Optional[int] = None,
    ) -> list[Certification]:
        """Admin listing, newest first"""
        query = db.query(Certification).options(joinedload(Certification.service_provider))
        if status:
            query = query.filter(Certification.status == status)
        if category:
            query = query.filter(Certification.category == category)
        if provider_id:
            query = query.filter(Certification.service_provider_id == provider_id)
        return query.order_by(Certification.created_at.desc(), Certification.id.desc()).all()

    @staticmethod
    def get_stats(db: Session, top_limit: int = 10) -> dict:
        by_status = dict(
            db.query(Certification.status, func.count(Certification.id)).group_by(Certification.status).all()
        )
        by_category = (
            db.query(Certification.category, func.count(Certification.id).label("count"))
            .group_by(Certification.category)
            .order_by(func.count(Certification.id).desc())
            .all()
        )
        top_providers = (
            db.query(User)
            .filter(User.role == "service_provider")
            .order_by(User.certification_points.desc(), User.id)
            .limit(top_limit)
            .all()
        )
        return {
            "totalCertifications": sum(by_status.values()),
            "pendingCertifications": by_status.get("pending", 0),
            "approvedCertifications": by_status.get("approved", 0),
            "rejectedCertifications": by_status.get("rejected", 0),
            "categoryStats": [{"category": category, "count": count} for category, count in by_category],
            "topProviders": [
                {
                    "id": p.id,
                    "name": p.name,
                    "email": p.email,
                    "serviceCategory": p.service_category,
                    "certificationPoints": p.certification_points,
                    "certificationLevel": p.certification_level,
                }
                for p in top_providers
            ],
        }
