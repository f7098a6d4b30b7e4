"""Master that feeds files to mappers and drives reducers to completion."""

from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from distlab.mapreduce.intermediate import CHUNK_SIZE, DATASET_PATH
from distlab.mapreduce.worker import (
    MAPPER_PORT_BASE,
    REDUCER_PORT_BASE,
    UnknownTask,
    Worker,
    new_worker,
)

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class ChunkMetadata:
    """One chunk of an input document."""

    document_id: str
    chunk_id: int
    chunk_data: bytes


@dataclass
class Master:
    """The mappers and reducers taking part in one job."""

    mappers: List[Worker] = field(default_factory=list)
    reducers: List[Worker] = field(default_factory=list)


def _input_files(folder: PathLike) -> List[Path]:
    return sorted(entry for entry in Path(folder).iterdir() if not entry.is_dir())


def count_files(folder: PathLike) -> int:
    """Number of entries in a folder that are not directories."""
    return len(_input_files(folder))


def read_chunks(path: PathLike, chunk_size: int = CHUNK_SIZE) -> Iterator[ChunkMetadata]:
    """Yield the file's contents in chunks of at most `chunk_size` bytes."""
    if chunk_size <= 0:
        raise ValueError("chunk size must be positive")
    document_id = str(path)
    with open(path, "rb") as handle:
        chunk_id = 0
        while data := handle.read(chunk_size):
            log.debug("Read chunk %d of %s (%d bytes)", chunk_id, document_id, len(data))
            yield ChunkMetadata(document_id, chunk_id, data)
            chunk_id += 1
    log.info("Finished reading file: %s", document_id)


def send_file_to_mapper(
    path: PathLike,
    mapper: Worker,
    reducers: Sequence[Worker],
    chunk_size: int = CHUNK_SIZE,
) -> str:
    """Stream a file to a mapper and tell every reducer where its output is."""
    location = mapper.receive_chunks(read_chunks(path, chunk_size))
    log.info("Intermediate info from mapper %d: %s", mapper.port_number, location)
    for reducer in reducers:
        reducer.receive_location(location)
    return location


def run_pipeline(folder: PathLike, master: Master, chunk_size: int = CHUNK_SIZE) -> List[str]:
    """Send each input file to its own mapper concurrently; return locations."""
    files = _input_files(folder)
    if len(files) > len(master.mappers):
        raise ValueError("more input files than mappers")
    if not files:
        return []
    with ThreadPoolExecutor(max_workers=len(files)) as pool:
        futures = [
            pool.submit(send_file_to_mapper, path, master.mappers[index], master.reducers, chunk_size)
            for index, path in enumerate(files)
        ]
        return [future.result() for future in futures]


def _spawn_master(num_mappers: int, num_reducers: int, task: str, workdir: PathLike) -> Master:
    return Master(
        mappers=[
            new_worker(True, task, num_reducers, MAPPER_PORT_BASE + i, workdir)
            for i in range(num_mappers)
        ],
        reducers=[
            new_worker(False, task, num_reducers, REDUCER_PORT_BASE + i, workdir)
            for i in range(num_reducers)
        ],
    )


def run_job(
    folder: PathLike,
    task: str = "wordcount",
    num_reducers: int = 5,
    workdir: PathLike = ".",
) -> List[Path]:
    """Run a whole job over a folder; return the reducers' output files."""
    num_mappers = count_files(folder)
    log.info("Mappers: %d, Reducers: %d, Task ID: %s", num_mappers, num_reducers, task)
    master = _spawn_master(num_mappers, num_reducers, task, workdir)
    run_pipeline(folder, master)
    if not master.reducers:
        return []
    with ThreadPoolExecutor(max_workers=len(master.reducers)) as pool:
        outputs = list(pool.map(lambda reducer: reducer.flush(), master.reducers))
    log.info("Client done")
    return outputs


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a MapReduce job.")
    parser.add_argument("-R", type=int, default=5, help="Number of reducers")
    parser.add_argument("-T", default="wordcount", help="Task ID")
    parser.add_argument("-DATA", default=DATASET_PATH, help="Folder of input files")
    parser.add_argument("-WORKDIR", default=".", help="Folder for results")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    try:
        outputs = run_job(args.DATA, args.T, args.R, args.WORKDIR)
    except UnknownTask as exc:
        print(exc, file=sys.stderr)
        return 1
    for path in outputs:
        print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())