import pytest

from distlab.payments.idempotency import ResponseCache, Unavailable


def _counting(result):
    calls = []

    def handler(request):
        calls.append(request)
        return result

    return handler, calls


def test_same_key_runs_handler_once():
    cache = ResponseCache()
    handler, calls = _counting("done")
    assert cache.call("k1", handler, "req") == "done"
    assert cache.call("k1", handler, "req") == "done"
    assert calls == ["req"]


def test_different_keys_run_separately():
    cache = ResponseCache()
    handler, calls = _counting("done")
    cache.call("k1", handler, "a")
    cache.call("k2", handler, "b")
    assert calls == ["a", "b"]
    assert len(cache) == 2


def test_no_key_never_cached():
    cache = ResponseCache()
    handler, calls = _counting("done")
    cache.call(None, handler, "a")
    cache.call(None, handler, "a")
    assert len(calls) == 2
    assert len(cache) == 0


def test_error_is_cached_and_replayed():
    cache = ResponseCache()
    calls = []

    def handler(request):
        calls.append(request)
        raise KeyError("missing")

    with pytest.raises(KeyError):
        cache.call("k", handler, "r")
    with pytest.raises(KeyError):
        cache.call("k", handler, "r")
    assert len(calls) == 1
    assert "k" in cache


def test_unavailable_is_not_cached():
    cache = ResponseCache()
    outcomes = iter([Unavailable("busy"), "ok"])

    def handler(request):
        outcome = next(outcomes)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    with pytest.raises(Unavailable):
        cache.call("k", handler, "r")
    assert "k" not in cache
    assert cache.call("k", handler, "r") == "ok"
    assert "k" in cache