"""Wallet service: transactional wrapper around the ledger."""

from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from sincut.auth.models import ReferralAction, ReferralEntry, UserAccount, WalletEntry, WalletEntryType
from sincut.errors import NotFoundError
from sincut.logging_config import get_logger
from sincut.storage.db import db
from sincut.wallet import ledger

logger = get_logger(__name__)


def lock_user(session: Session, user_id: int) -> UserAccount:
    """Load a user row locked for update.

    Raises:
        NotFoundError: If no such user exists
    """
    # SELECT FOR UPDATE so concurrent mutations on the same user serialize;
    # SQLite drops the clause and relies on BEGIN IMMEDIATE (storage.db)
    user = session.query(UserAccount).filter(
        UserAccount.id == user_id
    ).with_for_update().first()

    if not user:
        raise NotFoundError("User not found")
    return user


def serialize_entry(entry: WalletEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "type": entry.type.value,
        "amount": entry.amount,
        "description": entry.description,
        "message": entry.message,
        "createdAt": entry.created_at.isoformat() if entry.created_at else None,
    }


class WalletService:
    """Service for reading and mutating coin balances.

    Operations:
    - Wallet projection
    - Coin -> divine coin conversion
    - Divine coin spending
    - Coin credits
    """

    def __init__(self):
        """Initialize wallet service."""
        self.logger = get_logger(__name__)

    def get_wallet(self, user_id: int) -> dict[str, Any]:
        """Get balances and history, newest entry first.

        Args:
            user_id: User ID

        Returns:
            Wallet projection dict
        """
        with db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                raise NotFoundError("User not found")

            history = session.query(WalletEntry).filter(
                WalletEntry.user_id == user_id
            ).order_by(WalletEntry.id.desc()).all()

            referral_coins = session.query(
                func.sum(ReferralEntry.amount)
            ).filter(
                ReferralEntry.user_id == user_id,
                ReferralEntry.action.in_([ReferralAction.SIGNUP_BONUS, ReferralAction.REFERRAL_BONUS]),
            ).scalar() or 0

            return {
                "coins": user.coins,
                "divineCoins": user.divine_coins,
                "referralCoins": int(referral_coins),
                "walletHistory": [serialize_entry(e) for e in history],
            }

    def convert_to_divine(self, user_id: int) -> dict[str, int]:
        """Convert coins to divine coins.

        Raises:
            InsufficientBalance: If the user holds fewer than 333 coins
        """
        with db.session() as session:
            user = lock_user(session, user_id)
            coins_before = user.coins
            divine = ledger.convert_to_divine(user, strict=True)
            session.commit()

            coins_used = coins_before - user.coins
            self.logger.info(
                "coins_converted",
                user_id=user_id,
                coins_used=coins_used,
                divine_added=divine,
                coins=user.coins,
                divine_coins=user.divine_coins,
            )
            return {
                "coins_used": coins_used,
                "divine_added": divine,
                "coins": user.coins,
                "divine_coins": user.divine_coins,
            }

    def use_divine_coin(self, user_id: int) -> int:
        """Spend one divine coin.

        Returns:
            Remaining divine coins

        Raises:
            InsufficientDivineCoins: If the user holds none
        """
        with db.session() as session:
            user = lock_user(session, user_id)
            ledger.use_divine_coin(user)
            session.commit()

            self.logger.info("divine_coin_used", user_id=user_id, divine_coins=user.divine_coins)
            return user.divine_coins

    def credit(
        self,
        user_id: int,
        amount: int,
        entry_type: WalletEntryType = WalletEntryType.EARN,
        description: str | None = None,
    ) -> int:
        """Credit coins and auto-convert any full divine coin blocks.

        Returns:
            New coin balance
        """
        with db.session() as session:
            user = lock_user(session, user_id)
            ledger.credit(user, amount, entry_type, description)
            ledger.convert_to_divine(user)
            session.commit()

            self.logger.info(
                "coins_credited",
                user_id=user_id,
                amount=amount,
                reason=entry_type.value,
                coins=user.coins,
            )
            return user.coins


# Singleton instance
wallet_service = WalletService()
