"""Referral API endpoints."""

from fastapi import APIRouter, Depends

from sincut.auth.middleware import CurrentUser, require_auth
from sincut.auth.models import ApiModel, UserRole
from sincut.errors import ForbiddenError
from sincut.logging_config import get_logger
from sincut.referral.service import referral_service

logger = get_logger(__name__)

router = APIRouter(prefix="/referral", tags=["referral"])


class RewardPaymentRequest(ApiModel):
    """Payment reward request; user_id defaults to the caller."""
    user_id: int | None = None


@router.get("/dashboard")
def get_referral_dashboard(user: CurrentUser = Depends(require_auth)):
    """Get referral code, totals and referral history."""
    return referral_service.get_dashboard(user.user_id)


@router.post("/reward-payment")
def reward_referral_payment(
    body: RewardPaymentRequest | None = None,
    user: CurrentUser = Depends(require_auth),
):
    """Apply the payment bonus to a user and their referrer.

    Only admins may reward a user other than themselves.
    """
    target_id = body.user_id if body and body.user_id else user.user_id

    if target_id != user.user_id and user.role != UserRole.ADMIN.value:
        logger.warning("reward_payment_forbidden", caller_id=user.user_id, target_id=target_id)
        raise ForbiddenError("Only admins can reward other users")

    result = referral_service.reward_payment(target_id)
    return {
        "message": "Referral reward applied",
        "buyerCoins": result["coins"],
        "buyerDivineCoins": result["divine_coins"],
    }
