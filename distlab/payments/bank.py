"""Bank service answering the payment gateway."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from distlab.payments.bank_db import BankDatabase
from distlab.payments.idempotency import ResponseCache

BANK_PREFIX = "services/server/"
BANK_DB_PREFIX = "services/server/db/"

log = logging.getLogger(__name__)


class InvalidCredentials(PermissionError):
    """Raised when a login's password does not match."""


@dataclass(frozen=True)
class ClientSession:
    """Outcome of a successful login at the bank."""

    success: bool
    token: str = ""
    role: str = ""


class BankServer:
    """Handles logins, balance queries and two-phase payment steps."""

    def __init__(self, bankname: str, database: BankDatabase) -> None:
        self.bankname = bankname
        self.database = database
        self.address = ""
        self.crm = ResponseCache()

    def get_client_session(self, username: str, password: str) -> ClientSession:
        """Verify a user's credentials and return their session."""
        role, valid = self.database.verify_client_credentials(username, password)
        log.info("GetClientSession: %s @ %s exists", username, self.bankname)
        if not valid:
            raise InvalidCredentials("invalid credentials")
        log.info("GetClientSession: %s @ %s verified", username, self.bankname)
        return ClientSession(success=True, token="", role=role)

    def check_balance(self, username: str) -> int:
        """The user's balance."""
        balance = self.database.get_balance(username)
        log.info("CheckBalance: %s @ %s has balance %d", username, self.bankname, balance)
        return balance

    def query_payment(self, username: str, is_sender: bool, amount: int) -> bool:
        """Vote on a payment: a sender must be able to cover it."""
        if is_sender:
            can_deduct = self.database.capable_of_deducting(username, amount)
            if not can_deduct:
                log.info("QueryPayment: %s failed: insufficient balance", username)
            return can_deduct
        log.info("QueryPayment: %s successful", username)
        return True

    def persist_payment(self, username: str, amount: int, is_sender: bool) -> bool:
        """Deduct from a sender or credit a receiver."""
        delta = -amount if is_sender else amount
        self.database.adjust_balance(username, delta)
        if is_sender:
            log.info("PersistPayment: %s deducted %d", username, amount)
        else:
            log.info("PersistPayment: %s added %d", username, amount)
        return True