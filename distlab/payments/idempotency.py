"""Server-side cache of responses keyed by idempotency key."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

log = logging.getLogger(__name__)


class Unavailable(RuntimeError):
    """A transient failure; responses raising it are never cached."""


class ResponseCache:
    """Replays the outcome of a request already handled under the same key."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[Any, Optional[BaseException]]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def call(self, key: Optional[str], handler: Callable[[Any], Any], request: Any) -> Any:
        """Run `handler(request)` once per key, replaying its result or error."""
        if key is None:
            return handler(request)
        log.info("Idempotency key found: %s", key)

        with self._lock:
            cached = self._entries.get(key)
        if cached is not None:
            log.info("Found cached response for %s", key)
            response, error = cached
            if error is not None:
                raise error
            return response

        try:
            response = handler(request)
        except Unavailable:
            raise
        except Exception as exc:
            with self._lock:
                self._entries[key] = (None, exc)
            log.info("Caching response for %s", key)
            raise
        with self._lock:
            self._entries[key] = (response, None)
        log.info("Caching response for %s", key)
        return response