"""Balance mutations on a user row.

Each function mutates the given ``UserAccount`` in memory and appends the
matching ``WalletEntry`` rows; persisting is left to the caller's session.
"""

from datetime import datetime

from sincut.auth.models import UserAccount, WalletEntry, WalletEntryType
from sincut.errors import InsufficientBalance, InsufficientDivineCoins, ValidationError

# 333 coins -> 1 divine coin
DIVINE_COIN_RATE = 333


def _append(user: UserAccount, entry_type: WalletEntryType, amount: int,
            description: str, message: str | None = None) -> WalletEntry:
    entry = WalletEntry(
        type=entry_type,
        amount=amount,
        description=description,
        message=message,
        created_at=datetime.utcnow(),
    )
    user.wallet_history.append(entry)
    return entry


def credit(
    user: UserAccount,
    amount: int,
    entry_type: WalletEntryType = WalletEntryType.EARN,
    description: str | None = None,
) -> WalletEntry:
    """Add coins to a user's balance.

    Args:
        user: User row to mutate
        amount: Positive number of coins
        entry_type: History entry type describing the reason
        description: Human readable reason

    Returns:
        The appended history entry

    Raises:
        ValidationError: If amount is not a positive integer
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError("Amount must be a positive integer")

    user.coins += amount
    return _append(user, entry_type, amount, description or f"Received {amount} coins")


def convert_to_divine(user: UserAccount, strict: bool = False) -> int:
    """Convert as many whole blocks of coins as possible into divine coins.

    One ``conversion`` entry and one ``divine_coin_received`` entry are written
    for the whole batch.

    Args:
        user: User row to mutate
        strict: Raise instead of returning 0 when nothing can be converted

    Returns:
        Number of divine coins added

    Raises:
        InsufficientBalance: If strict and coins < DIVINE_COIN_RATE
    """
    divine = user.coins // DIVINE_COIN_RATE
    if divine == 0:
        if strict:
            raise InsufficientBalance(DIVINE_COIN_RATE, user.coins)
        return 0

    coins_used = divine * DIVINE_COIN_RATE
    user.coins -= coins_used
    user.divine_coins += divine

    _append(
        user,
        WalletEntryType.CONVERSION,
        -coins_used,
        f"Converted {coins_used} coins to {divine} divine coin(s)",
    )
    _append(
        user,
        WalletEntryType.DIVINE_COIN_RECEIVED,
        divine,
        f"Received {divine} divine coin(s) from conversion",
    )
    return divine


def use_divine_coin(user: UserAccount) -> WalletEntry:
    """Spend one divine coin.

    Raises:
        InsufficientDivineCoins: If the user holds none (state untouched)
    """
    if user.divine_coins < 1:
        raise InsufficientDivineCoins()

    user.divine_coins -= 1
    return _append(
        user,
        WalletEntryType.DIVINE_COIN_USED,
        -1,
        "Used divine coin for premium feature",
        message="Divine coin used successfully!",
    )
