"""Concurrent balance mutations against a file-backed SQLite database."""

import threading
import time

import pytest

from sincut.auth.models import UserAccount, WalletEntry, WalletEntryType
from sincut.errors import InsufficientDivineCoins
from sincut.storage.db import Database
from sincut.wallet import ledger
from sincut.wallet import service as wallet_module
from sincut.wallet.service import wallet_service


@pytest.fixture
def file_db(tmp_path, monkeypatch):
    database = Database(f"sqlite:///{tmp_path / 'wallet.db'}")
    database.create_tables()
    monkeypatch.setattr(wallet_module, "db", database)
    yield database
    database.engine.dispose()


def make_user(database, coins=0, divine_coins=0):
    with database.session() as session:
        user = UserAccount(
            email="user@example.com",
            password_hash="x",
            referral_code="USR-TEST01",
            coins=coins,
            divine_coins=divine_coins,
        )
        session.add(user)
        session.flush()
        return user.id


def slowed(monkeypatch, name):
    """Pause after the in-memory mutation so two transactions overlap."""
    original = getattr(ledger, name)

    def wrapper(*args, **kwargs):
        result = original(*args, **kwargs)
        time.sleep(0.2)
        return result

    monkeypatch.setattr(ledger, name, wrapper)


def run_concurrently(target, count=2):
    barrier = threading.Barrier(count)
    errors = []

    def worker():
        barrier.wait()
        try:
            target()
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return errors


def wallet_entries(database, user_id):
    with database.session() as session:
        return session.query(WalletEntry).filter(WalletEntry.user_id == user_id).all()


def test_concurrent_credits_are_not_lost(file_db, monkeypatch):
    user_id = make_user(file_db)
    slowed(monkeypatch, "credit")

    errors = run_concurrently(lambda: wallet_service.credit(user_id, 10))

    assert errors == []
    with file_db.session() as session:
        assert session.get(UserAccount, user_id).coins == 20
    entries = wallet_entries(file_db, user_id)
    assert [(e.type, e.amount) for e in entries] == [(WalletEntryType.EARN, 10)] * 2


def test_concurrent_spends_cannot_overdraw(file_db, monkeypatch):
    user_id = make_user(file_db, divine_coins=1)
    slowed(monkeypatch, "use_divine_coin")

    errors = run_concurrently(lambda: wallet_service.use_divine_coin(user_id))

    assert len(errors) == 1
    assert isinstance(errors[0], InsufficientDivineCoins)
    with file_db.session() as session:
        assert session.get(UserAccount, user_id).divine_coins == 0
    entries = wallet_entries(file_db, user_id)
    assert [e.type for e in entries] == [WalletEntryType.DIVINE_COIN_USED]
