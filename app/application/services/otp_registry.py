"""One-time-code registry — pending signups keyed by email, with a TTL.

A pending signup holds everything needed to create the account once the code
comes back: the hashed password and the names. Entries are single use; the
periodic sweep only reclaims memory, since ``consume`` re-checks expiry itself.
"""

import hmac
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Protocol

import structlog

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_code(length: int = 6) -> str:
    """Fixed-length numeric code, zero padded."""
    return f"{secrets.randbelow(10 ** length):0{length}d}"


@dataclass(frozen=True)
class SignupPayload:
    first_name: str
    last_name: str
    password_hash: str


@dataclass(frozen=True)
class PendingSignup:
    email: str
    code: str
    expires_at: datetime
    payload: SignupPayload


class OTPRegistry(Protocol):
    """Keyed store with TTL semantics; swap in a durable TTL store behind this."""

    def store(self, email: str, code: str, payload: SignupPayload) -> PendingSignup:
        ...

    def consume(self, email: str, code: str) -> Optional[SignupPayload]:
        ...

    def discard(self, email: str, code: str) -> None:
        ...

    def sweep(self) -> int:
        ...


class InMemoryOTPRegistry:
    """Process-local registry. Cleared on restart."""

    def __init__(self, ttl: timedelta = timedelta(minutes=10), clock: Clock = utcnow):
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, PendingSignup] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, email: str) -> bool:
        with self._lock:
            return email in self._entries

    def store(self, email: str, code: str, payload: SignupPayload) -> PendingSignup:
        entry = PendingSignup(
            email=email,
            code=code,
            expires_at=self._clock() + self.ttl,
            payload=payload,
        )
        with self._lock:
            replaced = email in self._entries
            self._entries[email] = entry
        logger.info("Pending signup stored", email=email, replaced=replaced, expires_at=entry.expires_at.isoformat())
        return entry

    def consume(self, email: str, code: str) -> Optional[SignupPayload]:
        with self._lock:
            entry = self._entries.get(email)
            if entry is None:
                outcome = "missing"
            elif self._clock() > entry.expires_at:
                del self._entries[email]
                outcome = "expired"
            elif not hmac.compare_digest(entry.code.encode(), code.encode()):
                outcome = "mismatch"
            else:
                del self._entries[email]
                outcome = "ok"

        logger.info("Pending signup consume attempt", email=email, outcome=outcome)
        return entry.payload if outcome == "ok" else None

    def discard(self, email: str, code: str) -> None:
        """Drop the entry only if it still holds ``code``; a newer signup is left alone."""
        with self._lock:
            entry = self._entries.get(email)
            if entry is not None and entry.code == code:
                del self._entries[email]

    def sweep(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [email for email, entry in self._entries.items() if now > entry.expires_at]
            for email in expired:
                del self._entries[email]

        if expired:
            logger.info("Expired pending signups removed", count=len(expired))
        return len(expired)
