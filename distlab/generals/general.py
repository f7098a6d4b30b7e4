"""A general taking part in the oral-messages agreement protocol."""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

PORT_BASE = 5000
HONEST = "honest"
TRAITOR = "traitor"

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Value:
    """An order relayed between generals in a given round."""

    round: int
    sender: int
    attack: bool
    is_commander: bool = True


class General:
    """One participant; general 0 is the commander.

    Peers are any objects with a ``send_value(value)`` method, keyed by id.
    """

    def __init__(
        self,
        general_id: int,
        kind: str = HONEST,
        n: int = 1,
        t: int = 1,
        log_dir: Optional[Union[str, Path]] = ".",
        rng: Optional[random.Random] = None,
    ) -> None:
        self.id = general_id
        self.kind = kind
        self.n = n
        self.t = t
        self.log_dir = None if log_dir is None else Path(log_dir)
        self.rng = rng if rng is not None else random.Random()
        self.peers: Dict[int, object] = {}
        self._lock = threading.Lock()
        self._values: Dict[int, List[bool]] = {
            round_: [False] * n for round_ in range(n + 1)
        }

    @property
    def values(self) -> Dict[int, List[bool]]:
        """A copy of the values recorded for each round."""
        with self._lock:
            return {round_: list(row) for round_, row in self._values.items()}

    @property
    def log_path(self) -> Optional[Path]:
        return None if self.log_dir is None else self.log_dir / f"{self.id}.out"

    def connect(self, peers: Mapping[int, object]) -> None:
        """Remember every other general, keyed by id."""
        log.info("Server %d connecting to everyone", self.id)
        self.peers = {peer_id: peer for peer_id, peer in peers.items() if peer_id != self.id}
        log.info("Server %d connected to everyone", self.id)

    def majority(self, round_: int) -> bool:
        """True if more than half of the values recorded for the round are attack."""
        row = self._values.get(round_, [])
        return sum(row) > len(row) // 2

    def _store(self, round_: int, sender: int, attack: bool) -> None:
        row = self._values.get(round_)
        if row is None or not 0 <= sender < len(row):
            raise ValueError(f"round {round_} or sender {sender} out of range")
        with self._lock:
            row[sender] = attack

    def _log_majority(self, round_: int, majority: bool) -> None:
        path = self.log_path
        if path is None:
            return
        try:
            with open(path, "a", encoding="utf-8") as handle:
                handle.write(
                    f"Round {round_}: [{self.kind}] Majority Value = {str(majority).lower()}\n"
                )
        except OSError as exc:
            log.error("Error writing to file: %s", exc)

    def _lieutenants(self) -> List[int]:
        return [i for i in range(self.n) if i not in (self.id, 0)]

    def _peer(self, peer_id: int):
        peer = self.peers.get(peer_id)
        if peer is None:
            raise RuntimeError(f"general {peer_id} is not connected")
        return peer

    def send_value(self, value: Value) -> None:
        """Receive a value; record it and relay it unless this is the last round."""
        log.info("Server %d received value from %d: %s", self.id, value.sender, value.attack)
        self._log_majority(value.round, self.majority(value.round))
        if value.round == self.t:
            return

        if value.is_commander:
            self._store(value.round, value.sender, value.attack)
            for peer_id in self._lieutenants():
                attack = value.attack
                if self.kind == TRAITOR:
                    attack = self.rng.randrange(2) == 0
                peer = self._peer(peer_id)
                try:
                    peer.send_value(
                        Value(round=value.round + 1, sender=self.id, attack=attack, is_commander=True)
                    )
                except Exception as exc:
                    log.warning("Server %d failed to relay to %d: %s", self.id, peer_id, exc)
        elif self._lieutenants():
            self._store(value.round, value.sender, self.majority(value.round))

        log.info("Server %d sent value to all", self.id)

    def issue_order(self, attack: bool = True) -> List[int]:
        """As commander, send the order to every other general; return who got it."""
        if self.id != 0:
            raise ValueError("only general 0 can issue an order")
        delivered = []
        for peer_id, peer in sorted(self.peers.items()):
            log.info("Server %d sending attack to %d", self.id, peer_id)
            try:
                peer.send_value(Value(round=0, sender=0, attack=attack, is_commander=True))
            except Exception as exc:
                log.warning("Server %d failed to send attack to %d: %s", self.id, peer_id, exc)
                continue
            delivered.append(peer_id)
        return delivered