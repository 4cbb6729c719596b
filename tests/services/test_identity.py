# tests/services/test_identity.py
"""Tests for anonymous identity tokens."""

import re

import pytest

from resto_pulse.services.identity import (
    DEVICE_ID_KEY,
    DeviceIdentityProvider,
    FileTokenStorage,
    FingerprintIdentityProvider,
    MemoryTokenStorage,
    generate_device_id,
    normalize_identity,
    require_identity,
)
from resto_pulse.services.results import ValidationError


class BrokenStorage:
    def get(self, key):
        raise OSError("storage unavailable")

    def set(self, key, value):
        raise OSError("storage unavailable")


def test_device_id_format() -> None:
    token = generate_device_id(now_ms=1700000000000)

    assert re.fullmatch(r"device_1700000000000_[0-9a-z]{9}", token)


def test_device_id_is_persisted_and_reused() -> None:
    storage = MemoryTokenStorage()
    first = DeviceIdentityProvider(storage).resolve_identity()

    assert storage.get(DEVICE_ID_KEY) == first
    assert DeviceIdentityProvider(storage).resolve_identity() == first


def test_cleared_storage_yields_new_identity() -> None:
    storage = MemoryTokenStorage()
    provider = DeviceIdentityProvider(storage)
    first = provider.resolve_identity()

    storage.clear()
    provider.forget()

    assert provider.resolve_identity() != first


def test_unusable_storage_still_returns_token() -> None:
    provider = DeviceIdentityProvider(BrokenStorage())

    token = provider.resolve_identity()

    assert token.startswith("device_")
    assert provider.resolve_identity() == token


def test_file_storage_round_trip(tmp_path) -> None:
    path = tmp_path / "identity.json"
    first = DeviceIdentityProvider(FileTokenStorage(path)).resolve_identity()

    assert DeviceIdentityProvider(FileTokenStorage(path)).resolve_identity() == first


def test_fingerprint_is_stable_for_same_environment() -> None:
    attributes = {
        "user_agent": "Mozilla/5.0",
        "language": "en-US",
        "screen_width": 1920,
        "screen_height": 1080,
        "platform": "Linux",
    }

    first = FingerprintIdentityProvider(**attributes).resolve_identity()
    second = FingerprintIdentityProvider(**attributes).resolve_identity()
    other = FingerprintIdentityProvider(**{**attributes, "language": "ur-PK"}).resolve_identity()

    assert first == second
    assert first != other
    assert re.fullmatch(r"user_[0-9a-f]{20}", first)


@pytest.mark.parametrize("raw", [None, "", "   ", "has space", "x" * 129, 12])
def test_unusable_tokens_are_rejected(raw) -> None:
    assert normalize_identity(raw) is None
    with pytest.raises(ValidationError):
        require_identity(raw)


def test_tokens_are_trimmed() -> None:
    assert require_identity("  device_1_abc  ") == "device_1_abc"
