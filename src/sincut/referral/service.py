"""Referral service: referral codes, signup bonuses and payment rewards."""

import secrets
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from sincut.auth.models import ReferralAction, ReferralEntry, UserAccount, WalletEntryType
from sincut.errors import NotFoundError
from sincut.logging_config import get_logger
from sincut.storage.db import db
from sincut.wallet import ledger
from sincut.wallet.service import lock_user

logger = get_logger(__name__)

# Canonical bonus table (coins)
REFERRER_SIGNUP_BONUS = 40  # Referrer, when someone signs up with their code
REFERRED_SIGNUP_BONUS = 40  # New user, for signing up with a valid code
PAYMENT_BONUS = 50  # Paying user
PAYMENT_REFERRER_BONUS = 20  # Referrer of the paying user

CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
CODE_RANDOM_LENGTH = 6
MAX_CODE_ATTEMPTS = 10


def _generate_code(name: str | None = None) -> str:
    """Generate a readable referral code.

    Format: three-letter name prefix (or USR) + random suffix, e.g. ``JOH-K7Q2MX``.
    """
    letters = "".join(ch for ch in (name or "") if ch.isalpha())
    prefix = letters[:3].upper() if len(letters) >= 3 else "USR"
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_RANDOM_LENGTH))
    return f"{prefix}-{suffix}"


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


class ReferralService:
    """Service for referral codes and referral bonuses."""

    def __init__(self):
        """Initialize referral service."""
        self.logger = get_logger(__name__)

    def generate_unique_code(self, session: Session, name: str | None = None) -> str:
        """Generate a referral code not used by any user.

        Args:
            session: Open database session
            name: Optional user name used as prefix

        Returns:
            Unused referral code
        """
        code = _generate_code(name)
        attempts = 0
        while attempts < MAX_CODE_ATTEMPTS:
            existing = session.query(UserAccount.id).filter(
                UserAccount.referral_code == code
            ).first()
            if not existing:
                return code
            code = _generate_code(name)
            attempts += 1

        # Fall back to a longer random code; collisions here are negligible
        return f"USR-{secrets.token_hex(6).upper()}"

    def resolve_referrer(self, session: Session, code: str | None) -> UserAccount | None:
        """Find and lock the owner of a referral code.

        Args:
            session: Open database session
            code: Referral code as typed by the user

        Returns:
            Referring user or None if the code is unknown
        """
        code = normalize_code(code)
        if not code:
            return None

        referrer = session.query(UserAccount).filter(
            UserAccount.referral_code == code
        ).with_for_update().first()

        if not referrer:
            self.logger.warning("referrer_not_found", referral_code=code)
        return referrer

    def apply_signup_bonus(self, referrer: UserAccount, referred: UserAccount) -> None:
        """Credit the referrer for a new signup.

        Mutates ``referrer`` in memory; the caller's session persists it.

        Args:
            referrer: Locked referring user
            referred: Newly created user (must have an id)
        """
        ledger.credit(
            referrer,
            REFERRER_SIGNUP_BONUS,
            WalletEntryType.REFERRAL_BONUS,
            f"Referral bonus for {referred.name or referred.email}",
        )
        referrer.referral_count = (referrer.referral_count or 0) + 1
        referrer.referral_history.append(ReferralEntry(
            action=ReferralAction.SIGNUP_BONUS,
            amount=REFERRER_SIGNUP_BONUS,
            referred_user_id=referred.id,
            by="system",
            created_at=datetime.utcnow(),
        ))
        ledger.convert_to_divine(referrer)

        self.logger.info(
            "referral_signup_processed",
            referrer_id=referrer.id,
            referred_id=referred.id,
            bonus_credited=REFERRER_SIGNUP_BONUS,
        )

    def reward_payment(self, user_id: int) -> dict[str, int]:
        """Credit a paying user and, if referred, their referrer.

        Both credits auto-convert and commit independently, so a missing
        referrer never undoes the payer's bonus.

        Args:
            user_id: Paying user's ID

        Returns:
            Payer's resulting balances

        Raises:
            NotFoundError: If the paying user does not exist
        """
        with db.session() as session:
            buyer = lock_user(session, user_id)
            ledger.credit(
                buyer,
                PAYMENT_BONUS,
                WalletEntryType.CONFESSION_PAYMENT_BONUS,
                "Confession payment bonus",
            )
            buyer.referral_history.append(ReferralEntry(
                action=ReferralAction.CONFESSION_PAYMENT,
                amount=PAYMENT_BONUS,
                by="system",
                created_at=datetime.utcnow(),
            ))
            ledger.convert_to_divine(buyer)
            session.commit()

            result = {"coins": buyer.coins, "divine_coins": buyer.divine_coins}
            referrer_id = buyer.referred_by_id

        self.logger.info("payment_bonus_credited", user_id=user_id, amount=PAYMENT_BONUS)

        if referrer_id:
            with db.session() as session:
                referrer = session.query(UserAccount).filter(
                    UserAccount.id == referrer_id
                ).with_for_update().first()

                if not referrer:
                    self.logger.warning("referrer_not_found", referrer_id=referrer_id, user_id=user_id)
                    return result

                ledger.credit(
                    referrer,
                    PAYMENT_REFERRER_BONUS,
                    WalletEntryType.REFERRAL_BONUS,
                    "Referral bonus for a referred user's payment",
                )
                referrer.referral_history.append(ReferralEntry(
                    action=ReferralAction.REFERRAL_BONUS,
                    amount=PAYMENT_REFERRER_BONUS,
                    referred_user_id=user_id,
                    by="system",
                    created_at=datetime.utcnow(),
                ))
                ledger.convert_to_divine(referrer)
                session.commit()

            self.logger.info(
                "referrer_payment_bonus_credited",
                referrer_id=referrer_id,
                user_id=user_id,
                amount=PAYMENT_REFERRER_BONUS,
            )

        return result

    def get_dashboard(self, user_id: int) -> dict[str, Any]:
        """Get referral statistics for a user.

        Args:
            user_id: User ID

        Returns:
            Dashboard dict, history newest first
        """
        with db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                raise NotFoundError("User not found")

            entries = session.query(ReferralEntry).filter(
                ReferralEntry.user_id == user_id
            ).order_by(ReferralEntry.id.desc()).all()

            totals = {action: 0 for action in ReferralAction}
            history = []
            for entry in entries:
                totals[entry.action] += entry.amount
                referred = entry.referred_user
                history.append({
                    "id": entry.id,
                    "action": entry.action.value,
                    "amount": entry.amount,
                    "by": entry.by,
                    "referredUser": {
                        "id": referred.id,
                        "name": referred.name,
                        "email": referred.email,
                    } if referred else None,
                    "createdAt": entry.created_at.isoformat() if entry.created_at else None,
                })

            return {
                "referralCode": user.referral_code,
                "totalReferredUsers": user.referral_count or 0,
                "referralCoins": totals[ReferralAction.SIGNUP_BONUS] + totals[ReferralAction.REFERRAL_BONUS],
                "totalSignupBonus": totals[ReferralAction.SIGNUP_BONUS],
                "totalConfessionBonus": totals[ReferralAction.CONFESSION_PAYMENT],
                "history": history,
            }


# Singleton instance
referral_service = ReferralService()
