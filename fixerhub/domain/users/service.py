"""User service - Registration, authentication and profile logic"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import PROFILE_PICTURE_POINTS
from ...errors import ConstraintViolation
from ...models import User
from ...security_utils import (
    create_access_token,
    generate_email_verification_token,
    hash_password,
    verify_email_verification_token,
    verify_password,
)
from ...shared.persistence import commit as commit_session
from ..certifications.scoring import CertificationScoring
from .repository import UserRepository
from .schemas import AdminUserUpdate, UserProfileUpdate, UserRegister

logger = logging.getLogger(__name__)

# Fields a provider profile must hold after every update
PROVIDER_PROFILE_FIELDS = (
    "name",
    "location",
    "service_category",
    "description",
    "hourly_rate",
    "bank_name",
    "account_number",
    "branch_name",
)

PROFILE_FIELD_MAP = {
    "name": "name",
    "location": "location",
    "serviceCategory": "service_category",
    "hourlyRate": "hourly_rate",
    "description": "description",
    "image": "image",
    "bankName": "bank_name",
    "accountNumber": "account_number",
    "branchName": "branch_name",
    "emailVerified": "email_verified",
}


class UserService:
    """Service layer for user business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    # ------------------------------------------------------------------
    # Registration & authentication
    # ------------------------------------------------------------------

    def register(self, data: UserRegister) -> tuple[User, str]:
        """Create an unverified account and return it with its verification token"""
        if self.repo.get_by_email(self.db, data.email):
            raise HTTPException(status_code=400, detail="User with this email already exists")

        is_provider = data.role == "service_provider"
        user_data = {
            "name": data.name,
            "email": data.email,
            "password_hash": hash_password(data.password),
            "role": data.role,
            "location": data.location,
            "service_category": data.serviceCategory,
            "hourly_rate": data.hourlyRate,
            "description": data.description,
            "image": data.image or None,
            # Bank details only belong to providers
            "bank_name": data.bankName if is_provider else None,
            "account_number": data.accountNumber if is_provider else None,
            "branch_name": data.branchName if is_provider else None,
            "email_verified": False,
        }

        user = self.repo.create_user(self.db, commit=False, **user_data)
        if is_provider and user.image:
            CertificationScoring.add_profile_picture_points(
                self.db, user, PROFILE_PICTURE_POINTS, commit=False
            )
            logger.info(f"📸 Awarded {PROFILE_PICTURE_POINTS} profile picture points to new provider")
        commit_session(self.db, user)

        logger.info(f"✅ Registered {user.role} {user.id} ({user.email})")
        return user, generate_email_verification_token(user.email)

    def authenticate(self, email: str, password: str, admin_only: bool = False) -> tuple[User, str]:
        """Check credentials and issue an access token"""
        user = self.repo.get_by_email(self.db, email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"⚠️ Failed login attempt for {email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")

        if admin_only and not user.is_admin:
            raise HTTPException(status_code=401, detail="Invalid admin credentials")

        if not user.email_verified and not user.is_admin:
            raise HTTPException(
                status_code=403,
                detail={
                    "message": "Please verify your email address before logging in. "
                    "Check your inbox for the verification email.",
                    "requiresVerification": True,
                    "email": user.email,
                },
            )

        return user, create_access_token(user.id, user.role)

    def verify_email(self, token: str) -> tuple[User, bool]:
        """
        Mark the token's account as verified.

        Returns the user and whether this call changed anything.
        """
        email = verify_email_verification_token(token)
        if not email:
            raise HTTPException(status_code=400, detail="Invalid or expired verification token")

        user = self.repo.get_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        if user.email_verified:
            return user, False

        self.repo.update_user(self.db, user, email_verified=True)
        logger.info(f"✅ Email verified for user {user.id}")
        return user, True

    def prepare_resend_verification(self, email: str) -> tuple[User, str]:
        user = self.repo.get_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        if user.email_verified:
            raise HTTPException(status_code=400, detail="Email is already verified")
        return user, generate_email_verification_token(user.email)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> User:
        user = self.repo.get_by_id(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")
        return user

    def get_provider(self, provider_id: int) -> User:
        provider = self.repo.get_provider(self.db, provider_id)
        if not provider:
            raise HTTPException(status_code=404, detail="Provider not found")
        return provider

    def search_providers(
        self, category: Optional[str] = None, location: Optional[str] = None, name: Optional[str] = None
    ) -> list[User]:
        return self.repo.search_providers(self.db, category, location, name)

    def _collect_updates(self, data: UserProfileUpdate) -> dict:
        updates = {}
        for field in data.model_fields_set:
            column = PROFILE_FIELD_MAP.get(field)
            if not column:
                continue
            value = getattr(data, field)
            if field == "image":
                updates["image"] = value or None
            elif value is not None:
                updates[column] = value
        return updates

    def _apply_profile_updates(self, user: User, updates: dict) -> User:
        """Write profile changes and settle picture points in one transaction"""
        had_picture = bool(user.image)

        if user.is_provider:
            missing = [
                field for field in PROVIDER_PROFILE_FIELDS
                if not updates.get(field) and not getattr(user, field)
            ]
            if missing:
                raise HTTPException(
                    status_code=400,
                    detail=f"Missing required fields for service provider: {', '.join(missing)}",
                )

        self.repo.update_user(self.db, user, commit=False, **updates)
        self._sync_picture_points(user, had_picture)
        commit_session(self.db, user)
        return user

    def _sync_picture_points(self, user: User, had_picture: bool) -> None:
        """Adding a first picture earns points, removing it takes them back, replacing is neutral"""
        if not user.is_provider:
            return

        has_picture = bool(user.image)
        if has_picture and not had_picture:
            CertificationScoring.add_profile_picture_points(
                self.db, user, PROFILE_PICTURE_POINTS, commit=False
            )
            logger.info(f"📸 Awarded {PROFILE_PICTURE_POINTS} profile picture points to user {user.id}")
        elif had_picture and not has_picture:
            CertificationScoring.remove_profile_picture_points(
                self.db, user, PROFILE_PICTURE_POINTS, commit=False
            )
            logger.info(f"📸 Removed {PROFILE_PICTURE_POINTS} profile picture points from user {user.id}")

    def update_profile(self, user_id: int, data: UserProfileUpdate, current_user: User) -> User:
        user = self.get_user(user_id)
        if user.id != current_user.id:
            raise HTTPException(status_code=403, detail="You can only update your own profile")

        return self._apply_profile_updates(user, self._collect_updates(data))

    def set_profile_picture(self, user_id: int, image_path: str, current_user: User) -> tuple[User, Optional[str]]:
        """Store an uploaded picture path and return the user with the replaced path"""
        user = self.get_user(user_id)
        if user.id != current_user.id:
            raise HTTPException(status_code=403, detail="You can only update your own profile")

        previous = user.image
        return self._apply_profile_updates(user, {"image": image_path}), previous

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def list_users(self) -> list[User]:
        return self.repo.get_all_users(self.db)

    def admin_update_user(self, user_id: int, data: AdminUserUpdate) -> User:
        user = self.get_user(user_id)
        return self._apply_profile_updates(user, self._collect_updates(data))

    def toggle_verification(self, user_id: int) -> User:
        user = self.get_user(user_id)
        return self.repo.update_user(self.db, user, email_verified=not user.email_verified)

    def promote_to_admin(self, user_id: int) -> User:
        user = self.get_user(user_id)
        self.repo.update_user(self.db, user, role="admin")
        logger.info(f"👑 User {user.id} promoted to admin")
        return user

    def delete_user(self, user_id: int, current_user: User) -> dict:
        user = self.get_user(user_id)
        if user.id == current_user.id:
            raise HTTPException(status_code=400, detail="You cannot delete your own account")
        if self.repo.has_bookings(self.db, user.id):
            raise ConstraintViolation("User is a party to existing bookings and cannot be deleted")

        self.repo.delete_user(self.db, user)
        logger.info(f"🗑️ User {user_id} deleted by admin {current_user.id}")
        return {"message": "User deleted successfully"}

    def get_dashboard_stats(self) -> dict:
        return self.repo.get_dashboard_stats(self.db)
