"""Anonymous visitor identity.

Visitors have no accounts. Every rating, review and reaction is keyed by an
opaque identity token. A token is not a real identity: clearing client
storage yields a new one, and two devices with the same fingerprint share
one.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import secrets
import string
import time
from pathlib import Path
from threading import Lock
from typing import Protocol

from resto_pulse.services.results import ValidationError

logger = logging.getLogger(__name__)

DEVICE_ID_KEY = "restaurant_app_device_id"
MAX_IDENTITY_LENGTH = 128
FINGERPRINT_LENGTH = 20

_BASE36 = string.digits + string.ascii_lowercase
_IDENTITY_PATTERN = re.compile(r"^[A-Za-z0-9_.:\-]+$")


class IdentityProvider(Protocol):
    """Produces the identity token for the current visitor."""

    def resolve_identity(self) -> str:
        """Return a usable token. Implementations never raise."""


class TokenStorage(Protocol):
    """Persistent client-side key/value storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryTokenStorage:
    """Token storage that lives as long as the process."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def clear(self) -> None:
        self._values.clear()


class FileTokenStorage:
    """Token storage backed by a small JSON document on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = Lock()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        if not isinstance(data, dict):
            raise ValueError(f"Token storage at {self.path} is not a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data), encoding="utf-8")


def normalize_identity(raw: object) -> str | None:
    """Return the cleaned token, or None if it cannot be used as a key."""
    if not isinstance(raw, str):
        return None
    token = raw.strip()
    if not token or len(token) > MAX_IDENTITY_LENGTH:
        return None
    if not _IDENTITY_PATTERN.match(token):
        return None
    return token


def require_identity(raw: object) -> str:
    """Return the cleaned token or raise a validation error."""
    token = normalize_identity(raw)
    if token is None:
        raise ValidationError("A valid identity token is required")
    return token


def generate_device_id(now_ms: int | None = None) -> str:
    """Synthesize ``device_<epoch ms>_<9 base36 chars>``."""
    millis = int(time.time() * 1000) if now_ms is None else now_ms
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"device_{millis}_{suffix}"


class DeviceIdentityProvider:
    """Device id persisted in client storage.

    The first call synthesizes and persists a token; later calls return the
    same one until the storage is cleared.
    """

    def __init__(self, storage: TokenStorage, key: str = DEVICE_ID_KEY) -> None:
        self.storage = storage
        self.key = key
        self._token: str | None = None

    def resolve_identity(self) -> str:
        if self._token is not None:
            return self._token

        stored: str | None = None
        try:
            stored = normalize_identity(self.storage.get(self.key))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read device id from storage: %s", exc)

        if stored is None:
            stored = generate_device_id()
            try:
                self.storage.set(self.key, stored)
            except OSError as exc:
                # Still usable for this session, just not persisted.
                logger.warning("Could not persist device id: %s", exc)

        self._token = stored
        return stored

    def forget(self) -> None:
        """Drop the memoized token so the next call re-reads storage."""
        self._token = None


class FingerprintIdentityProvider:
    """Token derived from stable browser/environment attributes."""

    def __init__(
        self,
        user_agent: str = "",
        language: str = "",
        screen_width: int | str = "",
        screen_height: int | str = "",
        platform: str = "",
    ) -> None:
        self.user_agent = user_agent or ""
        self.language = language or ""
        self.screen_width = screen_width
        self.screen_height = screen_height
        self.platform = platform or ""

    def resolve_identity(self) -> str:
        fingerprint = (
            f"{self.user_agent}{self.language}{self.screen_width}"
            f"{self.screen_height}{self.platform}"
        )
        digest = hashlib.sha256(fingerprint.encode("utf-8")).hexdigest()
        return f"user_{digest[:FINGERPRINT_LENGTH]}"
