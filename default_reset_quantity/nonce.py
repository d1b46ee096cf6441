"""Single-use form tokens for the settings page.

A token is issued each time the form is rendered and accepted once,
for the action it was issued for, within the configured lifetime.
At most ``max_tokens`` are outstanding; issuing past the cap evicts
the oldest.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable

logger = logging.getLogger("drq.nonce")


class NonceManager:
    """In-memory registry of outstanding form tokens."""

    def __init__(
        self,
        ttl_seconds: int = 86400,
        max_tokens: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_tokens <= 0:
            raise ValueError("max_tokens must be positive")
        self.ttl_seconds = ttl_seconds
        self.max_tokens = max_tokens
        self._clock = clock
        # token -> (action, issued_at), in issue order
        self._issued: dict[str, tuple[str, float]] = {}

    def issue(self, action: str) -> str:
        self._purge_expired()
        while len(self._issued) >= self.max_tokens:
            oldest = next(iter(self._issued))
            del self._issued[oldest]
            logger.debug("Form token cap reached, evicted the oldest token")
        token = secrets.token_urlsafe(16)
        self._issued[token] = (action, self._clock())
        return token

    def consume(self, token: str | None, action: str) -> bool:
        """Accept ``token`` for ``action`` and retire it. False if invalid."""
        if not token:
            return False
        entry = self._issued.pop(token, None)
        if entry is None:
            return False
        issued_action, issued_at = entry
        if not secrets.compare_digest(issued_action, action):
            logger.warning("Form token presented for the wrong action")
            return False
        if self._clock() - issued_at > self.ttl_seconds:
            logger.info("Expired form token rejected")
            return False
        return True

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [
            token
            for token, (_, issued_at) in self._issued.items()
            if now - issued_at > self.ttl_seconds
        ]
        for token in expired:
            del self._issued[token]

    def __len__(self) -> int:
        return len(self._issued)
