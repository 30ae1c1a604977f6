"""Wallet API endpoints."""

from fastapi import APIRouter, Depends

from sincut.auth.middleware import CurrentUser, require_auth
from sincut.wallet.service import wallet_service

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("")
def get_wallet(user: CurrentUser = Depends(require_auth)):
    """Get balances and wallet history (newest first)."""
    return wallet_service.get_wallet(user.user_id)


@router.post("/convert-to-divine")
def convert_to_divine(user: CurrentUser = Depends(require_auth)):
    """Convert all full blocks of 333 coins into divine coins."""
    result = wallet_service.convert_to_divine(user.user_id)
    return {
        "message": (
            f"Successfully converted {result['coins_used']} coins "
            f"to {result['divine_added']} divine coin(s)"
        ),
        "coins": result["coins"],
        "divineCoins": result["divine_coins"],
    }


@router.post("/use-divine-coin")
def use_divine_coin(user: CurrentUser = Depends(require_auth)):
    """Spend one divine coin on a premium feature."""
    remaining = wallet_service.use_divine_coin(user.user_id)
    return {
        "message": "Divine coin used successfully!",
        "divineCoins": remaining,
    }
