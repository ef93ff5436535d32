"""Commit helpers shared by the repositories"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import ConstraintViolation, ValidationError

logger = logging.getLogger(__name__)


def commit(db: Session, *instances) -> None:
    """
    Commit the session and refresh the given instances.

    A failed commit is rolled back. Unique index violations surface as
    ConstraintViolation, any other integrity failure as ValidationError.
    """
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        message = str(e.orig)
        logger.warning(f"⚠️ Integrity error on commit: {message}")
        if "unique" in message.lower() or "duplicate" in message.lower():
            raise ConstraintViolation(f"Duplicate record: {message}") from e
        raise ValidationError(f"Integrity constraint failed: {message}") from e
    except Exception:
        db.rollback()
        raise

    for instance in instances:
        db.refresh(instance)
