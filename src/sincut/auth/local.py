"""Local authentication service (email/password + refresh-token sessions)."""

from dataclasses import dataclass
from datetime import datetime

from passlib.context import CryptContext

from sincut.auth.models import Gender, OccupationType, UserAccount, UserRole, WalletEntryType
from sincut.auth.tokens import TokenClaims, TokenIssuer, TokenKind, token_issuer
from sincut.errors import AuthError, ConflictError, InvalidSession, InvalidToken, ValidationError
from sincut.logging_config import get_logger
from sincut.referral.service import REFERRED_SIGNUP_BONUS, ReferralService, referral_service
from sincut.storage.db import db
from sincut.wallet import ledger

logger = get_logger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass
class AuthResult:
    """Outcome of a successful register / login / refresh."""
    user: UserAccount
    access_token: str
    refresh_token: str
    referral_bonus: int = 0


class LocalAuthService:
    """Authentication service for local (email/password) users."""

    def __init__(
        self,
        issuer: TokenIssuer | None = None,
        referrals: ReferralService | None = None,
    ):
        """Initialize auth service.

        Args:
            issuer: Token issuer (defaults to the shared one)
            referrals: Referral service (defaults to the shared one)
        """
        self.issuer = issuer or token_issuer
        self.referrals = referrals or referral_service
        self.logger = get_logger(__name__)

    # ==================== PASSWORD ====================

    def _truncate_password(self, password: str) -> str:
        """Truncate password to 72 bytes (bcrypt limit)."""
        return password.encode("utf-8")[:72].decode("utf-8", errors="ignore")

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(self._truncate_password(password))

    def verify_password(self, password: str, hashed: str) -> bool:
        return pwd_context.verify(self._truncate_password(password), hashed)

    # ==================== TOKENS ====================

    def _start_session(self, user: UserAccount) -> tuple[str, str]:
        """Issue a token pair and store the refresh token on the user.

        Storing the new refresh token invalidates any previous one.
        """
        role = user.role.value if user.role else UserRole.USER.value
        access_token = self.issuer.issue_access_token(user.id, role)
        refresh_token = self.issuer.issue_refresh_token(user.id, role)
        user.refresh_token = refresh_token
        return access_token, refresh_token

    # ==================== USER MANAGEMENT ====================

    def register(
        self,
        email: str | None,
        password: str | None,
        agreed_to_privacy_policy: bool = False,
        name: str | None = None,
        referral_code: str | None = None,
        gender: Gender | None = None,
        occupation_type: OccupationType | None = None,
        occupation: str | None = None,
    ) -> AuthResult:
        """Create a new local user and start a session.

        A valid referral code links the new user to the referrer and credits
        both; an unknown code is logged and ignored.

        Raises:
            ValidationError: Missing email/password or no privacy consent
            ConflictError: Email already registered
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        if not agreed_to_privacy_policy:
            raise ValidationError("You must agree to the privacy policy")

        email = email.strip().lower()

        with db.session() as session:
            existing = session.query(UserAccount.id).filter(
                UserAccount.email == email
            ).first()
            if existing:
                raise ConflictError("User already exists")

            referrer = None
            if referral_code:
                referrer = self.referrals.resolve_referrer(session, referral_code)

            user = UserAccount(
                email=email,
                name=name,
                password_hash=self.hash_password(password),
                role=UserRole.USER,
                gender=gender,
                occupation_type=occupation_type,
                occupation=occupation,
                agreed_to_privacy_policy=True,
                referral_code=self.referrals.generate_unique_code(session, name),
                referred_by_id=referrer.id if referrer else None,
                referral_count=0,
                coins=0,
                divine_coins=0,
            )
            session.add(user)

            referral_bonus = 0
            if referrer:
                ledger.credit(
                    user,
                    REFERRED_SIGNUP_BONUS,
                    WalletEntryType.EARN,
                    "Signup bonus for using a referral code",
                )
                referral_bonus = REFERRED_SIGNUP_BONUS

            session.flush()

            if referrer:
                self.referrals.apply_signup_bonus(referrer, user)

            access_token, refresh_token = self._start_session(user)
            session.commit()
            session.refresh(user)

            self.logger.info(
                "user_registered",
                user_id=user.id,
                email=email,
                referred_by=user.referred_by_id,
            )
            return AuthResult(user, access_token, refresh_token, referral_bonus)

    def authenticate(self, email: str, password: str) -> UserAccount:
        """Check credentials.

        Raises:
            AuthError: Unknown email or wrong password
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        with db.session() as session:
            user = session.query(UserAccount).filter(
                UserAccount.email == email.strip().lower()
            ).first()

            if not user or not self.verify_password(password, user.password_hash):
                self.logger.warning("login_failed", email=email)
                raise AuthError("Invalid email or password")

            return user

    def login(self, email: str, password: str) -> AuthResult:
        """Authenticate and rotate the user's session."""
        user = self.authenticate(email, password)

        with db.session() as session:
            user = session.get(UserAccount, user.id)
            access_token, refresh_token = self._start_session(user)
            session.commit()

        self.logger.info("user_logged_in", user_id=user.id)
        return AuthResult(user, access_token, refresh_token)

    def verify_session(self, refresh_token: str) -> TokenClaims:
        """Verify a refresh token is valid and is the user's current session.

        Raises:
            InvalidToken: Expired, tampered or malformed token
            InvalidSession: Token was rotated away or logged out
        """
        claims = self.issuer.verify(refresh_token, TokenKind.REFRESH)

        with db.session() as session:
            user = session.get(UserAccount, claims.user_id)
            if not user or user.refresh_token != refresh_token:
                self.logger.warning("invalid_session", user_id=claims.user_id)
                raise InvalidSession()

        return claims

    def refresh(self, refresh_token: str) -> AuthResult:
        """Exchange a current refresh token for a new token pair.

        Raises:
            InvalidToken: Expired, tampered or malformed token
            InvalidSession: Token does not match the stored one
        """
        claims = self.issuer.verify(refresh_token, TokenKind.REFRESH)

        with db.session() as session:
            user = session.query(UserAccount).filter(
                UserAccount.id == claims.user_id
            ).with_for_update().first()

            if not user or user.refresh_token != refresh_token:
                self.logger.warning("invalid_session", user_id=claims.user_id)
                raise InvalidSession()

            access_token, new_refresh_token = self._start_session(user)
            session.commit()

        self.logger.info("token_refreshed", user_id=user.id)
        return AuthResult(user, access_token, new_refresh_token)

    def logout(self, refresh_token: str | None) -> None:
        """End the session the refresh token belongs to.

        Only the current session can be ended; a token that was already
        rotated away leaves the newer session alone.
        """
        if not refresh_token:
            return

        try:
            claims = self.issuer.verify(refresh_token, TokenKind.REFRESH)
        except InvalidToken:
            self.logger.info("logout_with_invalid_token")
            return

        with db.session() as session:
            user = session.get(UserAccount, claims.user_id)
            if not user or user.refresh_token != refresh_token:
                self.logger.info("logout_with_stale_token", user_id=claims.user_id)
                return

            user.refresh_token = None
            user.updated_at = datetime.utcnow()
            session.commit()

        self.logger.info("user_logged_out", user_id=claims.user_id)

    def get_user_by_id(self, user_id: int) -> UserAccount | None:
        with db.session() as session:
            return session.get(UserAccount, user_id)


# Singleton instance
auth_service = LocalAuthService()
