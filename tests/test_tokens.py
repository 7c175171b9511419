# tests/test_tokens.py
from storefront.storage import MemoryStorage
from storefront.tokens import REFRESH_THRESHOLD, TOKEN_KEY, TokenManager


class Clock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_token_round_trip():
    tokens = TokenManager(MemoryStorage(), clock=Clock())
    tokens.set_token("abc", 3600)
    assert tokens.get_token() == "abc"
    assert tokens.is_authenticated()
    assert tokens.get_token_data()["token_type"] == "bearer"


def test_expired_token_is_cleared():
    clock = Clock()
    storage = MemoryStorage()
    tokens = TokenManager(storage, clock=clock)
    tokens.set_token("abc", 60)
    clock.now += 60
    assert tokens.get_token() is None
    assert storage.get_item(TOKEN_KEY) is None


def test_expiring_soon():
    clock = Clock()
    tokens = TokenManager(MemoryStorage(), clock=clock)
    tokens.set_token("abc", 3600)
    assert not tokens.is_token_expiring_soon()
    clock.now += 3600 - REFRESH_THRESHOLD
    assert tokens.is_token_expiring_soon()


def test_corrupt_token_data_is_cleared():
    storage = MemoryStorage({TOKEN_KEY: "{broken"})
    tokens = TokenManager(storage)
    assert tokens.get_token() is None
    assert storage.get_item(TOKEN_KEY) is None

    storage.set_item(TOKEN_KEY, '{"access_token": "abc"}')
    assert not tokens.is_authenticated()
