"""JWT access / refresh token issuer."""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from jose import JWTError, jwt

from sincut.errors import InvalidToken
from sincut.logging_config import get_logger
from sincut.settings import Settings, settings

logger = get_logger(__name__)


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenConfig:
    """Signing keys and lifetimes for the token issuer."""
    access_secret: str
    refresh_secret: str
    access_ttl: timedelta
    refresh_ttl: timedelta
    algorithm: str = "HS256"

    @classmethod
    def from_settings(cls, config: Settings) -> "TokenConfig":
        return cls(
            access_secret=config.jwt_access_secret,
            refresh_secret=config.jwt_refresh_secret,
            access_ttl=timedelta(minutes=config.access_token_expire_minutes),
            refresh_ttl=timedelta(days=config.refresh_token_expire_days),
            algorithm=config.jwt_algorithm,
        )


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a verified token."""
    user_id: int
    role: str


class TokenIssuer:
    """Signs and verifies access and refresh tokens."""

    def __init__(self, config: TokenConfig):
        self.config = config

    def _secret(self, kind: TokenKind) -> str:
        if kind == TokenKind.ACCESS:
            return self.config.access_secret
        return self.config.refresh_secret

    def _ttl(self, kind: TokenKind) -> timedelta:
        if kind == TokenKind.ACCESS:
            return self.config.access_ttl
        return self.config.refresh_ttl

    def _issue(self, user_id: int, role: str, kind: TokenKind) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "role": role,
            "type": kind.value,
            # Unique per token so a rotated refresh token never equals the old one
            "jti": secrets.token_hex(8),
            "iat": now,
            "exp": now + self._ttl(kind),
        }
        return jwt.encode(payload, self._secret(kind), algorithm=self.config.algorithm)

    def issue_access_token(self, user_id: int, role: str) -> str:
        """Create a short-lived access token."""
        return self._issue(user_id, role, TokenKind.ACCESS)

    def issue_refresh_token(self, user_id: int, role: str) -> str:
        """Create a long-lived refresh token."""
        return self._issue(user_id, role, TokenKind.REFRESH)

    def verify(self, token: str, kind: TokenKind) -> TokenClaims:
        """Verify and decode a token.

        Args:
            token: Encoded JWT
            kind: Expected token kind

        Returns:
            Claims with user id and role

        Raises:
            InvalidToken: Expired, tampered, malformed or wrong-kind token
        """
        if not token:
            raise InvalidToken("No token provided")

        try:
            payload = jwt.decode(token, self._secret(kind), algorithms=[self.config.algorithm])
        except JWTError as e:
            logger.debug("token_verification_failed", kind=kind.value, error=str(e))
            raise InvalidToken() from e

        if payload.get("type") != kind.value:
            raise InvalidToken("Wrong token type")

        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidToken("Malformed token subject") from e

        return TokenClaims(user_id=user_id, role=payload.get("role", "user"))


# Shared issuer configured from settings
token_issuer = TokenIssuer(TokenConfig.from_settings(settings))
