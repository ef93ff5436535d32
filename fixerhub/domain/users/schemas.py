"""User domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_password

REGISTERABLE_ROLES = ("service_seeker", "service_provider")


class UserRegister(BaseModel):
    """Schema for registering a seeker or provider"""

    name: str
    email: str
    password: str
    role: str = "service_seeker"
    location: str
    serviceCategory: Optional[str] = None
    hourlyRate: Optional[float] = None
    description: Optional[str] = None
    image: Optional[str] = None
    bankName: Optional[str] = None
    accountNumber: Optional[str] = None
    branchName: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        if v not in REGISTERABLE_ROLES:
            raise ValueError(f"Role must be one of: {', '.join(REGISTERABLE_ROLES)}")
        return v

    @field_validator("name", "location")
    @classmethod
    def check_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class UserLogin(BaseModel):
    email: str
    password: str


class ResendVerificationRequest(BaseModel):
    email: str


class UserProfileUpdate(BaseModel):
    """Profile fields a user may change. Sending image as null or "" removes the picture."""

    name: Optional[str] = None
    location: Optional[str] = None
    serviceCategory: Optional[str] = None
    hourlyRate: Optional[float] = None
    description: Optional[str] = None
    image: Optional[str] = None
    bankName: Optional[str] = None
    accountNumber: Optional[str] = None
    branchName: Optional[str] = None

    @field_validator("hourlyRate")
    @classmethod
    def check_rate(cls, v):
        if v is not None and v < 0:
            raise ValueError("Hourly rate cannot be negative")
        return v


class AdminUserUpdate(UserProfileUpdate):
    emailVerified: Optional[bool] = None


class UserResponse(BaseModel):
    """Schema for user response"""

    id: int
    name: str
    email: str
    role: str
    location: str
    serviceCategory: Optional[str] = None
    hourlyRate: Optional[float] = None
    description: Optional[str] = None
    image: Optional[str] = None
    bankName: Optional[str] = None
    accountNumber: Optional[str] = None
    branchName: Optional[str] = None
    rating: float = 0
    totalRatings: int = 0
    emailVerified: bool = False
    certificationPoints: int = 0
    totalCertifications: int = 0
    verifiedCertifications: int = 0
    certificationLevel: str = "bronze"
    profilePicturePoints: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    user: UserResponse
    token: str
    token_type: str = "bearer"


def serialize_user(user) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        location=user.location,
        serviceCategory=user.service_category,
        hourlyRate=user.hourly_rate,
        description=user.description,
        image=user.image,
        bankName=user.bank_name,
        accountNumber=user.account_number,
        branchName=user.branch_name,
        rating=user.rating or 0,
        totalRatings=user.total_ratings or 0,
        emailVerified=bool(user.email_verified),
        certificationPoints=user.certification_points or 0,
        totalCertifications=user.total_certifications or 0,
        verifiedCertifications=user.verified_certifications or 0,
        certificationLevel=user.certification_level or "bronze",
        profilePicturePoints=user.profile_picture_points or 0,
        created_at=user.created_at,
    )
