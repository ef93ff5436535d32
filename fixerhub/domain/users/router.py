"""User router - FastAPI endpoints for accounts and profiles"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...email_service import notify, send_verification_email, send_welcome_email
from ...models import User
from ...storage import IMAGE_TYPES, delete_upload, save_upload
from .schemas import (
    AdminUserUpdate,
    AuthResponse,
    ResendVerificationRequest,
    UserLogin,
    UserProfileUpdate,
    UserRegister,
    UserResponse,
    serialize_user,
)
from .service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


# ============================================================================
# REGISTRATION & AUTHENTICATION
# ============================================================================


@router.post("/register", status_code=201)
async def register(data: UserRegister, service: UserService = Depends(get_user_service)):
    """Register a seeker or provider. Login is blocked until the email is verified."""
    user, token = service.register(data)

    # Registration stands even when the email cannot be sent
    email_sent = await notify(send_verification_email(user.email, user.name, token))

    return {
        "message": "Registration successful! Please check your email to verify your account before logging in.",
        "user": serialize_user(user),
        "requiresVerification": True,
        "emailSent": email_sent,
    }


@router.post("/login", response_model=AuthResponse)
async def login(data: UserLogin, service: UserService = Depends(get_user_service)):
    user, token = service.authenticate(data.email, data.password)
    return AuthResponse(user=serialize_user(user), token=token)


@router.get("/verify-email")
async def verify_email(token: str = Query(...), service: UserService = Depends(get_user_service)):
    user, changed = service.verify_email(token)
    if not changed:
        return {"message": "Email already verified", "emailVerified": True}

    await notify(send_welcome_email(user.email, user.name, user.role))
    return {"message": "Email verified successfully", "emailVerified": True}


@router.post("/resend-verification")
async def resend_verification(
    data: ResendVerificationRequest, service: UserService = Depends(get_user_service)
):
    user, token = service.prepare_resend_verification(data.email)
    try:
        await send_verification_email(user.email, user.name, token)
    except Exception as e:
        logger.error(f"❌ Failed to resend verification email to {user.email}: {e}")
        raise HTTPException(status_code=500, detail="Failed to send verification email") from e
    return {"message": "Verification email sent successfully"}


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return serialize_user(current_user)


# ============================================================================
# PROVIDERS & PROFILES
# ============================================================================


@router.get("/providers", response_model=list[UserResponse])
async def search_providers(
    category: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    name: Optional[str] = Query(None),
    service: UserService = Depends(get_user_service),
):
    """Find providers, ordered by certification points then rating"""
    return [serialize_user(p) for p in service.search_providers(category, location, name)]


@router.get("/providers/{provider_id}", response_model=UserResponse)
async def get_provider_details(provider_id: int, service: UserService = Depends(get_user_service)):
    return serialize_user(service.get_provider(provider_id))


@router.get("/profile/{user_id}", response_model=UserResponse)
async def get_profile(user_id: int, service: UserService = Depends(get_user_service)):
    return serialize_user(service.get_user(user_id))


@router.put("/profile/{user_id}", response_model=UserResponse)
async def update_profile(
    user_id: int,
    data: UserProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return serialize_user(service.update_profile(user_id, data, current_user))


@router.post("/profile/{user_id}/picture", response_model=UserResponse)
async def upload_profile_picture(
    user_id: int,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Upload a profile picture. A provider's first picture earns points."""
    if user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only update your own profile")

    image_path = await save_upload(file, "profiles", "profile", IMAGE_TYPES)
    user, previous = service.set_profile_picture(user_id, image_path, current_user)
    if previous and previous != image_path:
        delete_upload(previous)
    return serialize_user(user)


# ============================================================================
# ADMIN
# ============================================================================


@router.post("/admin/login", response_model=AuthResponse)
async def admin_login(data: UserLogin, service: UserService = Depends(get_user_service)):
    user, token = service.authenticate(data.email, data.password, admin_only=True)
    return AuthResponse(user=serialize_user(user), token=token)


@router.get("/admin/users", response_model=list[UserResponse])
async def list_users(
    _admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return [serialize_user(u) for u in service.list_users()]


@router.get("/admin/stats")
async def get_dashboard_stats(
    _admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.get_dashboard_stats()


@router.put("/admin/users/{user_id}", response_model=UserResponse)
async def admin_update_user(
    user_id: int,
    data: AdminUserUpdate,
    _admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return serialize_user(service.admin_update_user(user_id, data))


@router.patch("/admin/users/{user_id}/verify", response_model=UserResponse)
async def toggle_user_verification(
    user_id: int,
    _admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return serialize_user(service.toggle_verification(user_id))


@router.put("/admin/users/{user_id}/promote", response_model=UserResponse)
async def promote_to_admin(
    user_id: int,
    _admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return serialize_user(service.promote_to_admin(user_id))


@router.delete("/admin/users/{user_id}")
async def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    return service.delete_user(user_id, admin)


__all__ = ["router"]
