"""User-level map and reduce functions for the built-in MapReduce tasks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional


@dataclass(frozen=True)
class KeyValue:
    """A single key/value pair flowing through a map or reduce step."""

    key: Any
    value: Any


MapFunc = Callable[[Iterable[KeyValue]], Iterator[KeyValue]]
ReduceFunc = Callable[[Iterable[KeyValue]], Iterator[KeyValue]]


@dataclass(frozen=True)
class TaskDetails:
    """The map and reduce functions that make up one task."""

    mapper: MapFunc
    reducer: ReduceFunc


def wordcount_map(pairs: Iterable[KeyValue]) -> Iterator[KeyValue]:
    """Emit (word, 1) for every whitespace-separated word of each value."""
    for pair in pairs:
        for word in str(pair.value).split():
            yield KeyValue(word, 1)


def wordcount_reduce(pairs: Iterable[KeyValue]) -> Iterator[KeyValue]:
    """Sum the counts of each word."""
    counts: Dict[str, int] = {}
    for pair in pairs:
        counts[pair.key] = counts.get(pair.key, 0) + int(pair.value)
    for word, count in counts.items():
        yield KeyValue(word, count)


def invertedindex_map(pairs: Iterable[KeyValue]) -> Iterator[KeyValue]:
    """Emit (word, document) for every word of each document."""
    for pair in pairs:
        for word in str(pair.value).split():
            yield KeyValue(word, pair.key)


def invertedindex_reduce(pairs: Iterable[KeyValue]) -> Iterator[KeyValue]:
    """Group the documents in which each word occurs."""
    grouped: Dict[str, List[Any]] = {}
    for pair in pairs:
        grouped.setdefault(pair.key, []).append(pair.value)
    for word, documents in grouped.items():
        yield KeyValue(word, documents)


_TASKS: Dict[str, TaskDetails] = {
    "wordcount": TaskDetails(mapper=wordcount_map, reducer=wordcount_reduce),
    "invertedindex": TaskDetails(mapper=invertedindex_map, reducer=invertedindex_reduce),
}


def get_task_details(name: str) -> Optional[TaskDetails]:
    """Return the functions for a task name, or None if the task is unknown."""
    return _TASKS.get(name)