"""
Certification scoring - provider points and the level derived from them.

Every mutation is a single UPDATE whose SET clause reads the current row, so
concurrent awards against the same provider add up instead of overwriting
each other. The stored level is recomputed inside the same statement and is
never written anywhere else.
"""

import logging

from sqlalchemy import case, update
from sqlalchemy.orm import Session

from ...errors import NotFoundError, ValidationError
from ...models import User
from ...shared.persistence import commit as commit_session

logger = logging.getLogger(__name__)

# Highest threshold first, first match wins
LEVEL_THRESHOLDS = (
    (500, "diamond"),
    (300, "platinum"),
    (150, "gold"),
    (50, "silver"),
)
BASE_LEVEL = "bronze"

SCORING_FIELDS = (
    "certification_points",
    "verified_certifications",
    "total_certifications",
    "certification_level",
    "profile_picture_points",
)


def calculated_level(points: int) -> str:
    """Map accumulated certification points to a level"""
    for threshold, level in LEVEL_THRESHOLDS:
        if points >= threshold:
            return level
    return BASE_LEVEL


def certification_level_expression(points_expr):
    """SQL CASE equivalent of calculated_level over a column expression"""
    return case(
        *[(points_expr >= threshold, level) for threshold, level in LEVEL_THRESHOLDS],
        else_=BASE_LEVEL,
    )


def floored_difference(column, amount):
    """column - amount, clamped at zero"""
    return case((column - amount < 0, 0), else_=column - amount)


def _check_points(points: int) -> int:
    if points is None or points < 0:
        raise ValidationError("Points must be a non-negative integer")
    return int(points)


class CertificationScoring:
    """Point mutators for providers. Pass commit=False to join a larger transaction."""

    @staticmethod
    def _apply(db: Session, user: User, values: dict, commit: bool) -> User:
        # Pending ORM changes must reach the database before the row is re-read
        db.flush()
        result = db.execute(
            update(User)
            .where(User.id == user.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("User", user.id)

        if commit:
            commit_session(db)
        db.refresh(user, attribute_names=list(SCORING_FIELDS))
        return user

    @staticmethod
    def update_level(db: Session, user: User, commit: bool = True) -> User:
        """Recompute the stored level from the stored points"""
        return CertificationScoring._apply(
            db,
            user,
            {"certification_level": certification_level_expression(User.certification_points)},
            commit,
        )

    @staticmethod
    def add_certification_points(db: Session, user: User, points: int, commit: bool = True) -> User:
        """Award an approved certification's points. totalCertifications is counted at upload."""
        points = _check_points(points)
        new_points = User.certification_points + points
        CertificationScoring._apply(
            db,
            user,
            {
                "certification_points": new_points,
                "verified_certifications": User.verified_certifications + 1,
                "certification_level": certification_level_expression(new_points),
            },
            commit,
        )
        logger.info(
            f"🏅 Awarded {points} points to provider {user.id}: "
            f"{user.certification_points} points, level {user.certification_level}"
        )
        return user

    @staticmethod
    def remove_certification_points(db: Session, user: User, points: int, commit: bool = True) -> User:
        """Take back a revoked certification's points, never going below zero"""
        points = _check_points(points)
        new_points = floored_difference(User.certification_points, points)
        CertificationScoring._apply(
            db,
            user,
            {
                "certification_points": new_points,
                "verified_certifications": floored_difference(User.verified_certifications, 1),
                "certification_level": certification_level_expression(new_points),
            },
            commit,
        )
        logger.info(
            f"🏅 Removed {points} points from provider {user.id}: "
            f"{user.certification_points} points, level {user.certification_level}"
        )
        return user

    @staticmethod
    def add_profile_picture_points(db: Session, user: User, points: int, commit: bool = True) -> User:
        points = _check_points(points)
        return CertificationScoring._apply(
            db, user, {"profile_picture_points": User.profile_picture_points + points}, commit
        )

    @staticmethod
    def remove_profile_picture_points(db: Session, user: User, points: int, commit: bool = True) -> User:
        points = _check_points(points)
        return CertificationScoring._apply(
            db,
            user,
            {"profile_picture_points": floored_difference(User.profile_picture_points, points)},
            commit,
        )

    @staticmethod
    def adjust_total_certifications(db: Session, user: User, delta: int, commit: bool = True) -> User:
        """Upload and delete bookkeeping for totalCertifications, floored at zero"""
        if delta >= 0:
            value = User.total_certifications + delta
        else:
            value = floored_difference(User.total_certifications, -delta)
        return CertificationScoring._apply(db, user, {"total_certifications": value}, commit)
