from collections import Counter

import pytest

from distlab.mapreduce.master import (
    Master,
    count_files,
    main,
    read_chunks,
    run_job,
    run_pipeline,
    send_file_to_mapper,
)
from distlab.mapreduce.worker import UnknownTask, new_worker


def _parse_outputs(paths):
    result = {}
    for path in paths:
        for line in path.read_text().splitlines():
            key, values = line.split(" : ", 1)
            result[key] = values.split(",")
    return result


@pytest.fixture
def dataset(tmp_path):
    folder = tmp_path / "data"
    folder.mkdir()
    (folder / "a.txt").write_text("the cat\nthe dog\n")
    (folder / "b.txt").write_text("the end cat\n")
    (folder / "sub").mkdir()
    return folder


def test_count_files_ignores_directories(dataset):
    assert count_files(dataset) == 2


def test_count_files_missing_folder(tmp_path):
    with pytest.raises(FileNotFoundError):
        count_files(tmp_path / "missing")


def test_read_chunks_round_trip(tmp_path):
    path = tmp_path / "f.txt"
    payload = b"abcdefghij" * 3
    path.write_bytes(payload)
    chunks = list(read_chunks(path, 7))
    assert b"".join(c.chunk_data for c in chunks) == payload
    assert [c.chunk_id for c in chunks] == list(range(len(chunks)))
    assert all(len(c.chunk_data) <= 7 for c in chunks)
    assert {c.document_id for c in chunks} == {str(path)}


def test_read_chunks_empty_file(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_bytes(b"")
    assert list(read_chunks(path)) == []


def test_read_chunks_rejects_bad_size(tmp_path):
    path = tmp_path / "f.txt"
    path.write_bytes(b"x")
    with pytest.raises(ValueError):
        list(read_chunks(path, 0))


def test_send_file_to_mapper_feeds_reducers(tmp_path):
    path = tmp_path / "in.txt"
    path.write_text("x y x")
    mapper = new_worker(True, "wordcount", 1, 5000, tmp_path)
    reducer = new_worker(False, "wordcount", 1, 6000, tmp_path)
    location = send_file_to_mapper(path, mapper, [reducer])
    assert location == "mapResults/5000"
    assert sorted(kv.key for kv in reducer.reducer_list) == ["x", "x", "y"]


def test_run_pipeline_too_few_mappers(dataset, tmp_path):
    master = Master(mappers=[new_worker(True, "wordcount", 1, 5000, tmp_path)], reducers=[])
    with pytest.raises(ValueError):
        run_pipeline(dataset, master)


def test_run_job_wordcount(dataset, tmp_path):
    work = tmp_path / "work"
    outputs = run_job(dataset, "wordcount", 3, work)
    assert len(outputs) == 3
    expected = Counter(
        (dataset / "a.txt").read_text().split() + (dataset / "b.txt").read_text().split()
    )
    counts = {k: int(v[0]) for k, v in _parse_outputs(outputs).items()}
    assert counts == dict(expected)


def test_run_job_invertedindex(dataset, tmp_path):
    outputs = run_job(dataset, "invertedindex", 2, tmp_path / "work")
    index = {k: set(v) for k, v in _parse_outputs(outputs).items()}
    a, b = str(dataset / "a.txt"), str(dataset / "b.txt")
    assert index["the"] == {a, b}
    assert index["dog"] == {a}
    assert index["end"] == {b}


def test_run_job_unknown_task(dataset, tmp_path):
    with pytest.raises(UnknownTask):
        run_job(dataset, "nope", 1, tmp_path)


def test_main_runs_job(dataset, tmp_path):
    work = tmp_path / "out"
    assert main([f"-R=2", "-T=wordcount", f"-DATA={dataset}", f"-WORKDIR={work}"]) == 0
    produced = sorted(p.name for p in (work / "reducerResults").iterdir())
    assert produced == ["wordcount-0.out", "wordcount-1.out"]


def test_main_unknown_task(dataset, tmp_path):
    assert main(["-T=nope", f"-DATA={dataset}", f"-WORKDIR={tmp_path}"]) == 1