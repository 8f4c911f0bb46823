"""Test doubles for charm store transports."""
from .fake_store import FakeStoreLog, FakeStoreTransport

__all__ = ["FakeStoreLog", "FakeStoreTransport"]
