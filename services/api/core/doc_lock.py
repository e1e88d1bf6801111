# services/api/core/doc_lock.py
"""
Short-lived named leases around the delete+create of a worksheet.

Process-local: two requests for the same work order on this instance cannot
interleave their delete/create. Leases expire after `ttl_s` so a request that
died mid-commit does not block the work order forever.
"""
from __future__ import annotations

import logging
import threading
import time
import uuid
from contextlib import contextmanager
from typing import Iterator

from cachetools import TTLCache

from core.errors import WriteConflict

logger = logging.getLogger(__name__)


class DocumentLeases:
    def __init__(self, ttl_s: float = 120.0, maxsize: int = 1024) -> None:
        self.ttl_s = ttl_s
        self._leases: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_s, timer=time.monotonic)
        self._mutex = threading.Lock()

    def acquire(self, name: str) -> str:
        """
        Take the lease for `name` and return its token.

        Raises:
            WriteConflict: if an unexpired lease for `name` exists
        """
        with self._mutex:
            if name in self._leases:
                raise WriteConflict(f"A submission for '{name}' is already being written")
            token = uuid.uuid4().hex
            self._leases[name] = token
            return token

    def release(self, name: str, token: str) -> None:
        with self._mutex:
            # only the holder may release; an expired-and-retaken lease is left alone
            if self._leases.get(name) == token:
                del self._leases[name]

    def is_held(self, name: str) -> bool:
        with self._mutex:
            return name in self._leases

    @contextmanager
    def hold(self, name: str) -> Iterator[str]:
        token = self.acquire(name)
        logger.debug("Lease acquired for %r", name)
        try:
            yield token
        finally:
            self.release(name, token)
            logger.debug("Lease released for %r", name)


_default_leases: DocumentLeases | None = None


def get_document_leases(ttl_s: float = 120.0) -> DocumentLeases:
    """Process-wide lease registry shared by every writer instance."""
    global _default_leases
    if _default_leases is None:
        _default_leases = DocumentLeases(ttl_s=ttl_s)
    return _default_leases
