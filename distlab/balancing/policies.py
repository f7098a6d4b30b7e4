"""Server selection policies used by the load balancer."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Mapping, Optional


@dataclass
class ServerInfo:
    """What the balancer knows about one task server."""

    address: str
    cpu_load: float = 0.0
    task_load: int = 0


Policy = Callable[[Mapping[str, ServerInfo]], Optional[ServerInfo]]


def pick_first(servers: Mapping[str, ServerInfo]) -> Optional[ServerInfo]:
    """Return the first known server, or None when there is none."""
    return next(iter(servers.values()), None)


def least_loaded(servers: Mapping[str, ServerInfo]) -> Optional[ServerInfo]:
    """Return the server with the lowest CPU load, ties broken by task load."""
    best = ServerInfo(address="", cpu_load=100, task_load=1_000_000)
    for server in servers.values():
        if server.cpu_load < best.cpu_load:
            best = server
        elif server.cpu_load == best.cpu_load and server.task_load < best.task_load:
            best = server
    return best if best.address else None


class RoundRobin:
    """Cycle through the known servers, remembering the last one chosen."""

    def __init__(self) -> None:
        self._last_address = ""
        self._lock = threading.Lock()

    def __call__(self, servers: Mapping[str, ServerInfo]) -> Optional[ServerInfo]:
        with self._lock:
            if not servers:
                return None
            found_last = len(servers) == 1
            for address, server in servers.items():
                if found_last:
                    self._last_address = address
                    return server
                found_last = address == self._last_address
            address, server = next(iter(servers.items()))
            self._last_address = address
            return server


def get_policy(name: str) -> Policy:
    """Map a policy name to a selection function; unknown names mean least loaded."""
    if name == "pick_first":
        return pick_first
    if name == "round_robin":
        return RoundRobin()
    return least_loaded