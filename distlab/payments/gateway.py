"""Payment gateway routing logins, balances and two-phase payments to banks."""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Any, Callable, Dict

from distlab.payments.idempotency import ResponseCache, Unavailable

PAYMENT_GATEWAY_PREFIX = "services/gateway/"
PAYMENT_GATEWAY_URL = "localhost:8080"
TIMEOUT_2PC = 10.0

log = logging.getLogger(__name__)


class BankNotRegistered(LookupError):
    """Raised when a request names a bank the gateway does not know."""


class TransactionAborted(Unavailable):
    """Raised when a payment is rolled back; never cached by idempotency."""


def logged_call(method: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call `func`, logging its start, duration and outcome under `method`."""
    start = time.monotonic()
    log.info("[gRPC] Method: %s - Started", method)
    try:
        result = func(*args, **kwargs)
    except Exception as exc:
        log.info(
            "[gRPC] Method: %s - Failed in (%.6fs) - Error: %s",
            method,
            time.monotonic() - start,
            exc,
        )
        raise
    log.info("[gRPC] Method: %s - Completed in (%.6fs)", method, time.monotonic() - start)
    return result


def _vote(query: Callable[[], Any], timeout: float) -> bool:
    """Ask one participant for its vote; an error or a timeout counts as no."""
    outcome: "queue.Queue[bool]" = queue.Queue(maxsize=1)

    def run() -> None:
        try:
            outcome.put(bool(query()))
        except Exception as exc:
            log.info("Query failed: %s", exc)
            outcome.put(False)

    threading.Thread(target=run, daemon=True).start()
    try:
        return outcome.get(timeout=timeout)
    except queue.Empty:
        return False


class PaymentGateway:
    """Keeps the registered banks and coordinates payments between them."""

    def __init__(self, timeout: float = TIMEOUT_2PC) -> None:
        self.timeout = timeout
        self.crm = ResponseCache()
        self._banks: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def _bank(self, bankname: str) -> Any:
        with self._lock:
            bank = self._banks.get(bankname)
        if bank is None:
            raise BankNotRegistered("bank not registered")
        return bank

    def bank_register(self, bankname: str, bank: Any) -> bool:
        """Register (or replace) the bank serving `bankname`."""
        log.info("Registering bank: %s", bankname)
        with self._lock:
            self._banks[bankname] = bank
        log.info("Bank registered: %s", bankname)
        return True

    def check_balance(self, username: str, bankname: str) -> int:
        """Forward a balance query to the user's bank."""
        bank = self._bank(bankname)
        log.info("CheckBalance: %s @ %s", username, bankname)
        return bank.check_balance(username)

    def make_payment(
        self,
        sender_username: str,
        sender_bankname: str,
        receiver_username: str,
        receiver_bankname: str,
        amount: int,
    ) -> bool:
        """Run a two-phase commit between the two banks; True on commit."""
        sender_bank = self._bank(sender_bankname)
        receiver_bank = self._bank(receiver_bankname)

        log.info("MakePayment: Query phase started for sender: %s @ %s", sender_username, sender_bankname)
        final_vote = _vote(
            lambda: sender_bank.query_payment(sender_username, True, amount), self.timeout
        )
        log.info("MakePayment: Query phase started for receiver: %s @ %s", receiver_username, receiver_bankname)
        receiver_vote = _vote(
            lambda: receiver_bank.query_payment(receiver_username, False, amount), self.timeout
        )
        final_vote = final_vote and receiver_vote

        log.info("MakePayment: Final vote: %s | Starting Commit/Rollback", final_vote)
        if not final_vote:
            log.info("MakePayment: Rollback successful for both banks")
            raise TransactionAborted("Transaction aborted")

        for bank, username, is_sender in (
            (sender_bank, sender_username, True),
            (receiver_bank, receiver_username, False),
        ):
            try:
                bank.persist_payment(username, amount, is_sender)
            except Exception as exc:
                log.warning("PersistPayment for %s failed: %s", username, exc)
        log.info("MakePayment: Commit successful for both banks")
        return True