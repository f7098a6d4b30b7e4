"""Client-side idempotent requests with background retries."""

from __future__ import annotations

import logging
import queue
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

RETRY_THRESHOLD = 5.0
RETRY_FREQUENCY = 2.0
MAX_RETRIES = 5
CLIENT_PREFIX = "services/client/"

log = logging.getLogger(__name__)

Invoker = Callable[[str], Any]


class MaxRetriesReached(RuntimeError):
    """Raised when a request has used up its retries."""


def bearer_metadata(token: str) -> Dict[str, str]:
    """Metadata carrying a bearer token."""
    return {"authorization": "Bearer " + token}


@dataclass
class _Pending:
    invoker: Invoker
    last_time: float
    results: "queue.Queue[Tuple[Any, Optional[BaseException]]]"
    retries_left: int
    lock: threading.Lock = field(default_factory=threading.Lock)


class TransactionManager:
    """Tags each request with an idempotency key and retries stalled ones.

    The invoker is called with the request's idempotency key; every retry
    reuses the same key.
    """

    def __init__(
        self,
        threshold: float = RETRY_THRESHOLD,
        frequency: float = RETRY_FREQUENCY,
        max_retries: int = MAX_RETRIES,
    ) -> None:
        self.threshold = threshold
        self.frequency = frequency
        self.max_retries = max_retries
        self._pending: Dict[str, _Pending] = {}
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __enter__(self) -> "TransactionManager":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    @property
    def pending_keys(self) -> List[str]:
        with self._lock:
            return list(self._pending)

    def submit(self, invoker: Invoker, timeout: Optional[float] = None) -> Any:
        """Invoke a request and wait for it or one of its retries to finish."""
        key = str(uuid.uuid4())
        log.info("Generated idempotency key: %s", key)
        txn = _Pending(
            invoker=invoker,
            last_time=time.monotonic(),
            results=queue.Queue(),
            retries_left=self.max_retries,
        )
        with self._lock:
            self._pending[key] = txn

        def first_attempt() -> None:
            try:
                value = invoker(key)
            except Exception as exc:
                log.info("Initial request failed for key: %s, error: %s. Waiting for retry...", key, exc)
                return
            txn.results.put((value, None))
            with self._lock:
                self._pending.pop(key, None)

        start = time.monotonic()
        threading.Thread(target=first_attempt, daemon=True).start()
        try:
            value, error = txn.results.get(timeout=timeout)
        except queue.Empty:
            log.info("Context expired for key: %s", key)
            raise TimeoutError(f"request {key} timed out") from None
        duration = time.monotonic() - start
        if error is not None:
            log.info("Request %s failed in (%.6fs): %s", key, duration, error)
            raise error
        log.info("Request %s completed in (%.6fs)", key, duration)
        return value

    def _retry(self, key: str, txn: _Pending, now: float) -> None:
        with txn.lock:
            txn.retries_left -= 1
            txn.last_time = now
            if txn.retries_left == 0:
                log.info("Max retries reached for key: %s", key)
                txn.results.put((None, MaxRetriesReached("max retries reached")))
        try:
            value = txn.invoker(key)
        except Exception as exc:
            log.info("Retry failed for key: %s, error: %s", key, exc)
            txn.results.put((None, exc))
        else:
            log.info("Retry succeeded for key: %s", key)
            txn.results.put((value, None))
        with self._lock:
            self._pending.pop(key, None)

    def retry_pending(self, now: Optional[float] = None) -> List[threading.Thread]:
        """Start a retry for every request idle longer than the threshold."""
        now = time.monotonic() if now is None else now
        with self._lock:
            due = [
                (key, txn)
                for key, txn in self._pending.items()
                if now - txn.last_time > self.threshold
            ]
        threads = []
        for key, txn in due:
            log.info("Retrying request for key: %s", key)
            thread = threading.Thread(target=self._retry, args=(key, txn, now), daemon=True)
            thread.start()
            threads.append(thread)
        return threads

    def _loop(self) -> None:
        while not self._stop.wait(self.frequency):
            self.retry_pending()

    def start(self) -> None:
        """Run the retry loop in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the retry loop."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None