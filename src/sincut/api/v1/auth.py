"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import EmailStr, Field

from sincut.api.rate_limit import limiter
from sincut.auth.local import auth_service
from sincut.auth.middleware import CurrentUser, require_auth
from sincut.auth.models import ApiModel, Gender, OccupationType, User
from sincut.errors import AuthError, NotFoundError
from sincut.logging_config import get_logger
from sincut.settings import settings

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ==================== MODELS ====================


class RegisterRequest(ApiModel):
    """User registration request.

    Required fields are checked by the service so that missing values map
    to the same 400 response as other validation failures.
    """
    email: EmailStr | None = None
    password: str | None = Field(default=None, max_length=128)
    name: str | None = Field(default=None, max_length=100)
    gender: Gender | None = None
    occupation_type: OccupationType | None = None
    occupation: str | None = Field(default=None, max_length=255)
    agreed_to_privacy_policy: bool = False
    referral_code: str | None = Field(default=None, max_length=20)


class LoginRequest(ApiModel):
    """User login request."""
    email: str | None = None
    password: str | None = None


class ReferralBonus(ApiModel):
    message: str
    coins: int


class AuthResponse(ApiModel):
    """Token response for register / login."""
    message: str
    user: User
    access_token: str
    referral_bonus: ReferralBonus | None = None


class RefreshResponse(ApiModel):
    access_token: str
    user: User


# ==================== COOKIES ====================


def _cookie_options() -> dict:
    # Cross-site cookies need SameSite=None, which browsers only accept with Secure
    return {
        "path": "/",
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "none" if settings.is_production else "lax",
    }


def set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.refresh_cookie_name,
        token,
        max_age=settings.refresh_token_expire_days * 24 * 3600,
        **_cookie_options(),
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(settings.refresh_cookie_name, **_cookie_options())


# ==================== ENDPOINTS ====================


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register(request: Request, response: Response, body: RegisterRequest):
    """Register a new user account.

    If referral_code belongs to an existing user, both users get a bonus.
    Sets the refresh token cookie.
    """
    result = auth_service.register(
        email=body.email,
        password=body.password,
        agreed_to_privacy_policy=body.agreed_to_privacy_policy,
        name=body.name,
        referral_code=body.referral_code,
        gender=body.gender,
        occupation_type=body.occupation_type,
        occupation=body.occupation,
    )

    set_refresh_cookie(response, result.refresh_token)

    referral_bonus = None
    message = "User registered successfully"
    if result.referral_bonus:
        message = "User registered successfully with referral bonus!"
        referral_bonus = ReferralBonus(
            message=f"You received {result.referral_bonus} coins for using a referral code!",
            coins=result.referral_bonus,
        )

    return AuthResponse(
        message=message,
        user=User.model_validate(result.user),
        access_token=result.access_token,
        referral_bonus=referral_bonus,
    )


@router.post("/login", response_model=AuthResponse)
@limiter.limit("10/minute")
def login(request: Request, response: Response, body: LoginRequest):
    """Login with email and password.

    Returns an access token and rotates the refresh token cookie.
    """
    result = auth_service.login(body.email, body.password)
    set_refresh_cookie(response, result.refresh_token)

    return AuthResponse(
        message="Login successful",
        user=User.model_validate(result.user),
        access_token=result.access_token,
    )


@router.post("/logout")
def logout(request: Request, response: Response):
    """Logout: invalidate the stored refresh token and clear the cookie."""
    auth_service.logout(request.cookies.get(settings.refresh_cookie_name))
    clear_refresh_cookie(response)
    return {"message": "Logged out successfully"}


@router.post("/refresh-token", response_model=RefreshResponse)
def refresh_token(request: Request, response: Response):
    """Exchange the refresh token cookie for a new access token.

    The refresh token is rotated; on failure the cookie is cleared and no
    rotation happens.
    """
    token = request.cookies.get(settings.refresh_cookie_name)

    try:
        if not token:
            raise AuthError("No refresh token provided")
        result = auth_service.refresh(token)
    except AuthError as e:
        logger.warning("refresh_token_rejected", reason=e.message)
        error_response = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": e.message},
        )
        clear_refresh_cookie(error_response)
        return error_response

    set_refresh_cookie(response, result.refresh_token)
    return RefreshResponse(
        access_token=result.access_token,
        user=User.model_validate(result.user),
    )


@router.get("/me", response_model=User)
def get_me(user: CurrentUser = Depends(require_auth)):
    """Get current user information (no secrets)."""
    account = auth_service.get_user_by_id(user.user_id)
    if not account:
        raise NotFoundError("User not found")
    return User.model_validate(account)
