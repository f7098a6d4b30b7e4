"""Starts a set of generals, either as processes or within one process."""

from __future__ import annotations

import argparse
import logging
import random
import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from distlab.generals.general import HONEST, PORT_BASE, TRAITOR, General

log = logging.getLogger(__name__)


def validate(n: int, t: int) -> tuple:
    """Check the number of voters and traitors; return them unchanged."""
    if n < 4:
        raise ValueError("Number of Voters must be at least 4")
    if t < 0:
        raise ValueError("Number of Traitors must be at least 1")
    return n, t


def choose_traitors(n: int, t: int, rng: Optional[random.Random] = None) -> Dict[int, str]:
    """Pick `t` distinct traitors among ids 1..n; every other id below n is honest."""
    if t > n:
        raise ValueError("more traitors than generals")
    rng = rng if rng is not None else random.Random()
    kinds: Dict[int, str] = {}
    while len(kinds) < t:
        kinds[rng.randrange(n) + 1] = TRAITOR
    for general_id in range(n):
        kinds.setdefault(general_id, HONEST)
    return dict(sorted(kinds.items()))


def fork_processes(
    n: int, t: int, rng: Optional[random.Random] = None
) -> List[subprocess.Popen]:
    """Start one server process per general."""
    processes = []
    errors = []
    for general_id, kind in choose_traitors(n, t, rng).items():
        port = PORT_BASE + general_id
        command = [
            "make",
            "run-server",
            f"ID={general_id}",
            f"PORT={port}",
            f"TYPE={kind}",
            f"N={n}",
            f"T={t}",
        ]
        try:
            processes.append(subprocess.Popen(command))
        except OSError as exc:
            errors.append(f"failed to start process on port {port}: {exc}")
            continue
        log.info("Started process on port : %d", port)
    if errors:
        raise RuntimeError(f"Error during process spawning or connection: {errors[0]}")
    return processes


def simulate(
    n: int,
    t: int,
    log_dir: Optional[Union[str, Path]] = ".",
    rng: Optional[random.Random] = None,
) -> Dict[int, General]:
    """Run the whole protocol in this process; return the generals by id."""
    rng = rng if rng is not None else random.Random()
    generals = {
        general_id: General(general_id, kind, n, t, log_dir, rng)
        for general_id, kind in choose_traitors(n, t, rng).items()
    }
    network = {general_id: generals[general_id] for general_id in range(n)}
    for general in generals.values():
        general.connect(network)
    generals[0].issue_order(True)
    return generals


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the Byzantine generals simulation.")
    parser.add_argument("-N", type=int, default=1, help="Number of Voters")
    parser.add_argument("-T", type=int, default=1, help="Number of Traitors")
    parser.add_argument("-SIMULATE", action="store_true", help="Run all generals in this process")
    parser.add_argument("-LOGDIR", default=".", help="Folder for the generals' logs")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        validate(args.N, args.T)
        if args.SIMULATE:
            simulate(args.N, args.T, args.LOGDIR)
        else:
            fork_processes(args.N, args.T)
    except (ValueError, RuntimeError) as exc:
        print(exc, file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())