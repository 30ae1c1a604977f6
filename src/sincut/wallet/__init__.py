"""Coin / divine coin wallet ledger.

- 333 coins convert into 1 divine coin
- Every balance change appends a wallet history entry
"""
