"""Admin credential helpers built on a shared password and HS256 tokens."""
from __future__ import annotations

import hashlib
import secrets
import time
from collections import defaultdict
from datetime import timedelta
from threading import Lock

from jose import JWTError, jwt

from resto_pulse.core.settings import settings
from resto_pulse.db.time import utcnow

ADMIN_SUBJECT = "admin"


def hash_key(key: str) -> str:
    """Return a SHA-256 hash of the provided key."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def verify_admin_password(candidate: str) -> bool:
    """Compare a candidate password with the configured admin password.

    Returns False when no admin password is configured, so the admin surface
    is closed by default.
    """
    expected = settings.admin_password
    if not expected:
        return False
    return secrets.compare_digest(hash_key(candidate), hash_key(expected))


def create_admin_token(expires_minutes: int | None = None) -> str:
    """Issue a short-lived admin token."""
    minutes = expires_minutes or settings.admin_token_expire_minutes
    expire = utcnow() + timedelta(minutes=minutes)
    payload = {"sub": ADMIN_SUBJECT, "exp": expire, "role": "admin"}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_admin_token(token: str) -> bool:
    """Return True if the token is a valid, unexpired admin token."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return False
    return payload.get("sub") == ADMIN_SUBJECT and payload.get("role") == "admin"


class LoginThrottle:
    """In-process lockout after repeated failed admin logins, per client host."""

    def __init__(self, max_attempts: int | None = None, lockout_seconds: int | None = None) -> None:
        self.max_attempts = max_attempts or settings.admin_max_login_attempts
        self.lockout_seconds = lockout_seconds or settings.admin_lockout_minutes * 60
        self._failures: defaultdict[str, int] = defaultdict(int)
        self._locked_until: dict[str, float] = {}
        self._lock = Lock()

    def is_locked(self, host: str) -> bool:
        with self._lock:
            locked_until = self._locked_until.get(host)
            if locked_until is None:
                return False
            if time.time() >= locked_until:
                self._locked_until.pop(host, None)
                self._failures.pop(host, None)
                return False
            return True

    def record_failure(self, host: str) -> None:
        with self._lock:
            self._failures[host] += 1
            if self._failures[host] >= self.max_attempts:
                self._locked_until[host] = time.time() + self.lockout_seconds

    def reset(self, host: str | None = None) -> None:
        """Clear one host's failures, or every host's when ``host`` is None."""
        with self._lock:
            if host is None:
                self._failures.clear()
                self._locked_until.clear()
                return
            self._failures.pop(host, None)
            self._locked_until.pop(host, None)


login_throttle = LoginThrottle()
