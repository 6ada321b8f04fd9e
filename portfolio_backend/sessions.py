"""
Admin session stores.

Supports an in-memory store for single-process deployments and tests, and a
Redis-backed store that lets Redis handle expiry.
"""

from __future__ import annotations

import json
import logging
import secrets
import time
from dataclasses import asdict, dataclass, field
from typing import Callable, Dict, Optional, Protocol

import redis

logger = logging.getLogger(__name__)


@dataclass
class AdminSession:
    token: str
    created_at: float
    expires_at: float
    last_seen: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


def new_token() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(Protocol):
    """Minimal interface for issuing and checking admin bearer tokens."""

    def create(self, ttl_seconds: int) -> str:
        ...

    def validate(self, token: str) -> Optional[AdminSession]:
        ...

    def touch(self, token: str) -> None:
        ...


@dataclass
class InMemorySessionStore:
    """
    Process-local session table. Expired sessions are evicted when a lookup
    finds them; nothing sweeps in the background.
    """

    clock: Callable[[], float] = time.time
    sessions: Dict[str, AdminSession] = field(default_factory=dict)

    def create(self, ttl_seconds: int) -> str:
        now = self.clock()
        token = new_token()
        self.sessions[token] = AdminSession(
            token=token, created_at=now, expires_at=now + ttl_seconds, last_seen=now
        )
        return token

    def validate(self, token: str) -> Optional[AdminSession]:
        if not token:
            return None
        session = self.sessions.get(token)
        if session is None:
            return None
        if session.is_expired(self.clock()):
            self.sessions.pop(token, None)
            logger.info("Evicted expired admin session")
            return None
        return session

    def touch(self, token: str) -> None:
        session = self.validate(token)
        if session:
            session.last_seen = self.clock()


@dataclass
class RedisSessionStore:
    """Sessions stored as JSON under ``key_prefix + token`` with a Redis TTL."""

    url: str
    key_prefix: str = "portfolio:session:"
    clock: Callable[[], float] = time.time

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    def create(self, ttl_seconds: int) -> str:
        now = self.clock()
        token = new_token()
        session = AdminSession(
            token=token, created_at=now, expires_at=now + ttl_seconds, last_seen=now
        )
        self.client.set(self._key(token), json.dumps(asdict(session)), ex=ttl_seconds)
        return token

    def validate(self, token: str) -> Optional[AdminSession]:
        if not token:
            return None
        raw = self.client.get(self._key(token))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        session = AdminSession(**json.loads(raw))
        if session.is_expired(self.clock()):
            self.client.delete(self._key(token))
            return None
        return session

    def touch(self, token: str) -> None:
        session = self.validate(token)
        if session is None:
            return
        session.last_seen = self.clock()
        # keepttl leaves the original expiry in place.
        self.client.set(self._key(token), json.dumps(asdict(session)), keepttl=True)
