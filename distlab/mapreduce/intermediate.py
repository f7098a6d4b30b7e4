"""Intermediate files, partitioning and key grouping for MapReduce workers."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import groupby
from pathlib import Path
from typing import Iterable, List, Union

CHUNK_SIZE = 1 * 1024 * 1024
MASTER_PORT = "8080"
DATASET_PATH = "datasets"

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193

PathLike = Union[str, Path]


@dataclass(frozen=True)
class KV:
    """A key/value line of an intermediate file."""

    key: str
    value: str


@dataclass
class ReducedKV:
    """A key with the values it was reduced to."""

    key: str
    values: List[str] = field(default_factory=list)


def split_words(chunk: Union[bytes, str]) -> List[str]:
    """Split a chunk of text into whitespace-separated words."""
    if isinstance(chunk, bytes):
        chunk = chunk.decode("utf-8", errors="replace")
    return chunk.split()


def fnv1a_32(text: str) -> int:
    """32-bit FNV-1a hash of the UTF-8 bytes of `text`."""
    value = _FNV_OFFSET
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * _FNV_PRIME) & 0xFFFFFFFF
    return value


def partition(key: str, reducers: int) -> int:
    """The reducer index a key belongs to."""
    if reducers <= 0:
        raise ValueError("number of reducers must be positive")
    return fnv1a_32(key) % reducers


def emit_key_value(
    root: PathLike, key: str, value: str, port_number: int, reduce_tasks: int
) -> Path:
    """Append a key/value line to the intermediate file of its reducer."""
    target = (
        Path(root) / "mapResults" / str(port_number) / f"{partition(key, reduce_tasks)}.out"
    )
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "a", encoding="utf-8") as handle:
        handle.write(f"{key}\t{value}\n")
    return target


def read_intermediate_file(path: PathLike) -> List[KV]:
    """Read the tab-separated key/value lines of an intermediate file.

    Malformed lines and a final line without a newline are skipped.
    """
    pairs: List[KV] = []
    with open(path, "r", encoding="utf-8", newline="") as handle:
        for line in handle:
            if not line.endswith("\n"):
                break
            parts = line[:-1].split("\t")
            if len(parts) != 2:
                continue
            pairs.append(KV(parts[0], parts[1]))
    return pairs


def sort_kv(pairs: Iterable[KV]) -> List[KV]:
    """Return the pairs ordered by key."""
    return sorted(pairs, key=lambda pair: pair.key)


def reduce_by_key(sorted_pairs: Iterable[KV], task: str) -> List[ReducedKV]:
    """Collapse runs of equal keys according to the task.

    Word count keeps the number of occurrences; inverted index keeps the
    distinct values in first-seen order; other tasks keep no values.
    """
    reduced: List[ReducedKV] = []
    for key, group in groupby(sorted_pairs, key=lambda pair: pair.key):
        if key == "":
            continue
        items = list(group)
        if task == "wordcount":
            values = [str(len(items))]
        elif task == "invertedindex":
            values = list(dict.fromkeys(item.value for item in items))
        else:
            values = []
        reduced.append(ReducedKV(key, values))
    return reduced


def write_output(path: PathLike, reduced: Iterable[ReducedKV]) -> Path:
    """Append `key : v1,v2` lines to the output file."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "a", encoding="utf-8") as handle:
        for item in reduced:
            handle.write(f"{item.key} : {','.join(item.values)}\n")
    return target