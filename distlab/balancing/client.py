"""Client that asks the balancer for a server and runs a task on it."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

log = logging.getLogger(__name__)


class TaskClient:
    """Sends one task through the load balancer and records turnaround time."""

    def __init__(
        self,
        balancer,
        connect: Callable[[str], object],
        log_path: Optional[Union[str, Path]] = "client.log",
    ) -> None:
        self.balancer = balancer
        self.connect = connect
        self.log_path = log_path

    def run(self, load: int) -> float:
        """Run a task of the given load and return the turnaround in seconds."""
        start = time.monotonic()
        server = self.balancer.process_client_request(load)
        log.info("Got response from lb: %s", server)
        runner = self.connect(server.address)
        log.info("Sending task load to task runner: %s at time %d", server.address, int(time.time()))
        runner.run_task(load)
        turnaround = time.monotonic() - start
        if self.log_path is not None:
            stamp = datetime.now().strftime("%Y/%m/%d %H:%M:%S")
            with open(self.log_path, "a", encoding="utf-8") as handle:
                handle.write(f"{stamp} Turnaround time: {turnaround:.2f} seconds\n")
        log.info("Finished task load on task runner: %s at time %d", server.address, int(time.time()))
        return turnaround