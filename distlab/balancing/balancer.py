"""Load balancer that tracks task servers and picks one per client request."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

from distlab.balancing.policies import ServerInfo, get_policy

TTL = 10
HEARTBEAT_INTERVAL = 1
LB_PORT = ":8080"
SERVERS_PREFIX = "/servers/"
VALID_POLICIES = ("least_loaded", "round_robin", "pick_first")

log = logging.getLogger(__name__)


class NoServersAvailable(RuntimeError):
    """Raised when no task server can take a request."""


def validate_policy(name: str) -> str:
    """Return the name if it is a known policy, else raise ValueError."""
    if name not in VALID_POLICIES:
        raise ValueError(
            "Invalid policy. Please use either 'least_loaded' or 'round_robin'"
        )
    return name


def _append_log(path: Union[str, Path], message: str) -> None:
    stamp = datetime.now().strftime("%Y/%m/%d %H:%M:%S")
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(f"{stamp} {message}\n")


class LoadBalancer:
    """Keeps the set of live servers and selects one with the chosen policy."""

    def __init__(
        self,
        policy_name: str = "least_loaded",
        log_path: Optional[Union[str, Path]] = "server.log",
    ) -> None:
        self._policy = get_policy(policy_name)
        self._servers: Dict[str, ServerInfo] = {}
        self._lock = threading.Lock()
        self.log_path = log_path

    @property
    def servers(self) -> Dict[str, ServerInfo]:
        with self._lock:
            return dict(self._servers)

    def process_server_heartbeat(self, info: ServerInfo) -> bool:
        """Record the latest state reported by a server."""
        with self._lock:
            self._servers[info.address] = info
        log.info("Received heartbeat from server %s", info.address)
        return True

    def process_client_request(self, load: int) -> ServerInfo:
        """Pick a server for a client's task of the given load."""
        with self._lock:
            server = self._policy(self._servers)
            if server is None:
                raise NoServersAvailable("no servers available")
            message = f"Selected server: {server.address} for load: {load}"
            log.info(message)
            if self.log_path is not None:
                _append_log(self.log_path, message)
            return server

    def server_registered(self, address: str) -> None:
        """A server's lease was granted or renewed."""
        with self._lock:
            self._servers[address] = ServerInfo(address=address)
            log.info("Server %s lease renewed; %d servers", address, len(self._servers))

    def server_expired(self, address: str) -> None:
        """A server's lease expired; forget it."""
        with self._lock:
            self._servers.pop(address, None)
        log.info("Server %s removed (lease expired)", address)