"""sincut - coin wallet and referral backend."""

__version__ = "1.0.0"
