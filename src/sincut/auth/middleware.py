"""Authentication dependencies for FastAPI."""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sincut.auth.models import UserRole
from sincut.auth.tokens import TokenClaims, TokenKind, token_issuer
from sincut.errors import AuthError, ForbiddenError
from sincut.logging_config import get_logger

logger = get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)

CurrentUser = TokenClaims


def require_auth(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    """Require a valid access token - raises 401 before the handler runs.

    Args:
        request: FastAPI request
        credentials: Bearer token

    Returns:
        Identity of the caller

    Raises:
        AuthError: Missing or invalid token
    """
    if not credentials or not credentials.credentials:
        raise AuthError("Not authorized, no token")

    try:
        claims = token_issuer.verify(credentials.credentials, TokenKind.ACCESS)
    except AuthError as e:
        raise AuthError("Not authorized, token failed") from e

    # Store identity in request state for later use
    request.state.user = claims
    return claims


def require_admin(user: CurrentUser = Depends(require_auth)) -> CurrentUser:
    """Require admin privileges.

    Raises:
        ForbiddenError: 403 if not admin
    """
    if user.role != UserRole.ADMIN.value:
        raise ForbiddenError("Admin access required")
    return user
