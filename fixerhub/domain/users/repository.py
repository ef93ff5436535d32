"""User repository - Database operations for users"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import Booking, User
from ...shared.persistence import commit as commit_session


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    @staticmethod
    def create_user(db: Session, commit: bool = True, **user_data) -> User:
        """Create a new user"""
        user = User(**user_data)
        db.add(user)
        if commit:
            commit_session(db, user)
        else:
            db.flush()
        return user

    @staticmethod
    def update_user(db: Session, user: User, commit: bool = True, **updates) -> User:
        """Update a user with provided fields"""
        for key, value in updates.items():
            if hasattr(user, key):
                setattr(user, key, value)

        if commit:
            commit_session(db, user)
        return user

    @staticmethod
    def delete_user(db: Session, user: User) -> None:
        db.delete(user)
        commit_session(db)

    @staticmethod
    def has_bookings(db: Session, user_id: int) -> bool:
        return (
            db.query(Booking.id)
            .filter(or_(Booking.service_seeker_id == user_id, Booking.service_provider_id == user_id))
            .first()
            is not None
        )

    @staticmethod
    def get_all_users(db: Session) -> list[User]:
        return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    @staticmethod
    def search_providers(
        db: Session,
        category: Optional[str] = None,
        location: Optional[str] = None,
        name: Optional[str] = None,
    ) -> list[User]:
        """Providers matching the filters, highest certification points then rating first"""
        query = db.query(User).filter(User.role == "service_provider")

        if category and category != "all":
            query = query.filter(User.service_category == category)
        if location:
            query = query.filter(User.location.ilike(f"%{location}%"))
        if name:
            query = query.filter(User.name.ilike(f"%{name}%"))

        return query.order_by(User.certification_points.desc(), User.rating.desc(), User.id).all()

    @staticmethod
    def get_provider(db: Session, provider_id: int) -> Optional[User]:
        return (
            db.query(User)
            .filter(User.id == provider_id, User.role == "service_provider")
            .first()
        )

    @staticmethod
    def get_dashboard_stats(db: Session) -> dict:
        """User counts for the admin dashboard"""
        week_ago = datetime.utcnow() - timedelta(days=7)

        role_counts = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
        verified = db.query(func.count(User.id)).filter(User.email_verified.is_(True)).scalar()
        total = db.query(func.count(User.id)).scalar()
        recent = db.query(func.count(User.id)).filter(User.created_at >= week_ago).scalar()
        categories = (
            db.query(User.service_category, func.count(User.id))
            .filter(User.role == "service_provider")
            .group_by(User.service_category)
            .order_by(func.count(User.id).desc())
            .all()
        )

        return {
            "totalUsers": total or 0,
            "totalProviders": role_counts.get("service_provider", 0),
            "totalSeekers": role_counts.get("service_seeker", 0),
            "totalAdmins": role_counts.get("admin", 0),
            "verifiedUsers": verified or 0,
            "unverifiedUsers": (total or 0) - (verified or 0),
            "recentRegistrations": recent or 0,
            "categoryStats": [{"category": c, "count": n} for c, n in categories],
        }
