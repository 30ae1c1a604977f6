"""Referral system module.

- Referrer gets 40 coins when someone signs up with their code
- Referred user gets 40 coins on signup
- Paying users get 50 coins, their referrer 20
"""

from sincut.referral.service import ReferralService, referral_service

__all__ = ["ReferralService", "referral_service"]
