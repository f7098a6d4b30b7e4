"""MapReduce worker acting as either a mapper or a reducer."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable, List, Union

from distlab.mapreduce.intermediate import (
    KV,
    emit_key_value,
    read_intermediate_file,
    reduce_by_key,
    sort_kv,
    split_words,
    write_output,
)
from distlab.mapreduce.tasks import get_task_details

MAPPER_PORT_BASE = 5000
REDUCER_PORT_BASE = 6000

log = logging.getLogger(__name__)


class UnknownTask(ValueError):
    """Raised when a worker is asked to run a task it does not know."""


class Worker:
    """A mapper writes partitioned intermediate files; a reducer merges them.

    Chunks handed to a mapper are objects with ``document_id`` and
    ``chunk_data`` attributes.
    """

    def __init__(
        self,
        is_mapper: bool,
        task: str,
        num_reducers: int,
        port_number: int,
        workdir: Union[str, Path] = ".",
    ) -> None:
        self.is_mapper = is_mapper
        self.task = task
        self.num_reducers = num_reducers
        self.port_number = port_number
        self.workdir = Path(workdir)
        self.details = get_task_details(task)
        self.reducer_list: List[KV] = []
        self._lock = threading.Lock()

    @property
    def reducer_index(self) -> int:
        return self.port_number - REDUCER_PORT_BASE

    def receive_chunks(self, chunks: Iterable) -> str:
        """Map every chunk into intermediate files; return their location."""
        for chunk in chunks:
            words = split_words(chunk.chunk_data)
            if self.task == "wordcount":
                value = None
            elif self.task == "invertedindex":
                value = str(chunk.document_id)
            else:
                log.error("Unknown task description: %s", self.task)
                raise UnknownTask(f"unknown task description: {self.task}")
            for word in words:
                emit_key_value(
                    self.workdir,
                    word,
                    "1" if value is None else value,
                    self.port_number,
                    self.num_reducers,
                )
        log.info("Finished receiving chunks.")
        return f"mapResults/{self.port_number}"

    def receive_location(self, location: str) -> List[KV]:
        """Read this reducer's partition from a mapper's result location."""
        path = self.workdir / location / f"{self.reducer_index}.out"
        log.info("Received file path: %s", path)
        pairs = read_intermediate_file(path)
        with self._lock:
            self.reducer_list.extend(pairs)
        return pairs

    def flush(self) -> Path:
        """Sort and reduce everything received, and write the final output."""
        with self._lock:
            output = list(self.reducer_list)
        reduced = reduce_by_key(sort_kv(output), self.task)
        target = self.workdir / "reducerResults" / f"{self.task}-{self.reducer_index}.out"
        return write_output(target, reduced)


def new_worker(
    is_mapper: bool,
    task: str,
    num_reducers: int,
    port_number: int,
    workdir: Union[str, Path] = ".",
) -> Worker:
    """Create a worker for a known task; raise UnknownTask otherwise."""
    if get_task_details(task) is None:
        raise UnknownTask(f"Task details not found for task: {task}")
    return Worker(is_mapper, task, num_reducers, port_number, workdir)