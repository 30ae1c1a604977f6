"""User profile API endpoints."""

from fastapi import APIRouter, Depends
from pydantic import EmailStr, Field

from sincut.auth.middleware import CurrentUser, require_auth
from sincut.auth.models import ApiModel, User
from sincut.profile.service import BIO_MAX_LENGTH, profile_service

router = APIRouter(prefix="/users", tags=["users"])


class UpdateProfileRequest(ApiModel):
    """Update profile request."""
    name: str | None = Field(default=None, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    bio: str | None = Field(default=None, max_length=BIO_MAX_LENGTH)


class UpdateAvatarRequest(ApiModel):
    profile_image: str | None = None


class ProfileResponse(ApiModel):
    success: bool = True
    message: str | None = None
    user: User


@router.get("/profile", response_model=ProfileResponse)
def get_profile(user: CurrentUser = Depends(require_auth)):
    """Get the current user's profile."""
    account = profile_service.get_profile(user.user_id)
    return ProfileResponse(user=User.model_validate(account))


@router.put("/update-profile", response_model=ProfileResponse)
def update_profile(
    body: UpdateProfileRequest,
    user: CurrentUser = Depends(require_auth),
):
    """Update name, email, phone or bio."""
    account = profile_service.update_profile(
        user.user_id,
        name=body.name,
        email=body.email,
        phone=body.phone,
        bio=body.bio,
    )
    return ProfileResponse(
        message="Profile updated successfully",
        user=User.model_validate(account),
    )


@router.put("/update-avatar", response_model=ProfileResponse)
def update_avatar(
    body: UpdateAvatarRequest,
    user: CurrentUser = Depends(require_auth),
):
    """Select a preset avatar image."""
    account = profile_service.update_avatar(user.user_id, body.profile_image)
    return ProfileResponse(
        message="Avatar updated",
        user=User.model_validate(account),
    )
