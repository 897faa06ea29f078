"""
Nonce Cache
===========
In-memory nonce cache for replay protection on the receiving side.
"""

import threading
import time
from typing import Callable, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class NonceCache:
    """
    Remembers nonces for `ttl_ms` milliseconds.

    The TTL should cover the whole window in which a signed timestamp is
    accepted; with a skew of S either way that is 2*S.

    In production with several verifier processes, back this with a shared
    store instead.
    """

    def __init__(self, ttl_ms: int, clock: Optional[Callable[[], int]] = None):
        self.ttl_ms = ttl_ms
        self._clock = clock or _now_ms
        self._cache: Dict[str, int] = {}
        self._lock = threading.Lock()

    def check_and_store(self, nonce: str) -> bool:
        """
        Check if nonce is fresh and store it.

        Returns:
            True if the nonce has not been seen within the TTL
        """
        with self._lock:
            now = self._clock()
            self._cleanup(now)

            if nonce in self._cache:
                logger.warning("Replay attack detected", nonce=nonce[:8])
                return False

            self._cache[nonce] = now
            return True

    def __len__(self) -> int:
        return len(self._cache)

    def _cleanup(self, now: int) -> None:
        """Remove expired nonces."""
        expired = [
            nonce for nonce, seen_at in self._cache.items()
            if now - seen_at > self.ttl_ms
        ]
        for nonce in expired:
            del self._cache[nonce]
