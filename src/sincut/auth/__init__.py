"""Authentication: user records, JWT tokens and session handling."""

from sincut.auth.models import User, UserAccount, UserRole
from sincut.auth.tokens import TokenClaims, TokenConfig, TokenIssuer, TokenKind

__all__ = [
    "User",
    "UserAccount",
    "UserRole",
    "TokenClaims",
    "TokenConfig",
    "TokenIssuer",
    "TokenKind",
]
