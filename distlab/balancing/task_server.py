"""Task server that runs busy-work tasks and reports its load."""

from __future__ import annotations

import logging
import random
import threading
import time

import psutil

from distlab.balancing.balancer import HEARTBEAT_INTERVAL
from distlab.balancing.policies import ServerInfo

log = logging.getLogger(__name__)


def fake_task(seconds: float) -> float:
    """Keep the CPU busy for the given number of seconds."""
    result = 0.0
    end = time.monotonic() + seconds
    while time.monotonic() < end:
        result += random.random() * random.random()
        if result > 1000:
            result = 0.0
    return result


def get_cpu_load(interval: float = 1.0) -> float:
    """Overall CPU usage in percent, or 0 if it cannot be measured."""
    try:
        return float(psutil.cpu_percent(interval=interval))
    except Exception:
        return 0.0


class TaskServer:
    """Runs client tasks and sends heartbeats to a load balancer."""

    cpu_sample_interval = 1.0

    def __init__(self, address: str, balancer) -> None:
        self.address = address
        self.balancer = balancer
        self.task_load = 0
        self._lock = threading.Lock()

    def run_task(self, load: float) -> bool:
        """Run a task of `load` seconds; returns True on completion."""
        with self._lock:
            self.task_load += 1
        log.info("Starting task on %s (current TaskLoad: %d)", self.address, self.task_load)
        try:
            fake_task(load)
        finally:
            with self._lock:
                self.task_load -= 1
        log.info("Finished task on %s (current TaskLoad: %d)", self.address, self.task_load)
        return True

    def heartbeat(self) -> ServerInfo:
        """Send the current state to the balancer and return it."""
        info = ServerInfo(
            address=self.address,
            cpu_load=get_cpu_load(self.cpu_sample_interval),
            task_load=self.task_load,
        )
        self.balancer.process_server_heartbeat(info)
        return info

    def send_heartbeats(
        self, stop_event: threading.Event, interval: float = HEARTBEAT_INTERVAL
    ) -> None:
        """Send heartbeats every `interval` seconds until `stop_event` is set."""
        while not stop_event.wait(interval):
            try:
                self.heartbeat()
            except Exception as exc:
                log.warning("Failed to send heartbeat: %s", exc)