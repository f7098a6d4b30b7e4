import pytest

from distlab.balancing.balancer import (
    LoadBalancer,
    NoServersAvailable,
    validate_policy,
)
from distlab.balancing.policies import ServerInfo


def test_validate_policy_accepts_known_names():
    for name in ("least_loaded", "round_robin", "pick_first"):
        assert validate_policy(name) == name


def test_validate_policy_rejects_unknown():
    with pytest.raises(ValueError):
        validate_policy("random")


def test_request_without_servers_raises(tmp_path):
    lb = LoadBalancer("least_loaded", tmp_path / "server.log")
    with pytest.raises(NoServersAvailable):
        lb.process_client_request(3)


def test_heartbeat_then_request_selects_and_logs(tmp_path):
    path = tmp_path / "server.log"
    lb = LoadBalancer("least_loaded", path)
    assert lb.process_server_heartbeat(ServerInfo("localhost:1", 5.0, 0)) is True
    chosen = lb.process_client_request(3)
    assert chosen.address == "localhost:1"
    assert "Selected server: localhost:1 for load: 3" in path.read_text()


def test_least_loaded_uses_heartbeat_state(tmp_path):
    lb = LoadBalancer("least_loaded", tmp_path / "server.log")
    lb.process_server_heartbeat(ServerInfo("a", 80.0, 0))
    lb.process_server_heartbeat(ServerInfo("b", 10.0, 2))
    assert lb.process_client_request(1).address == "b"


def test_registered_then_expired(tmp_path):
    lb = LoadBalancer("pick_first", tmp_path / "server.log")
    lb.server_registered("localhost:9")
    assert lb.process_client_request(1).address == "localhost:9"
    lb.server_expired("localhost:9")
    with pytest.raises(NoServersAvailable):
        lb.process_client_request(1)


def test_log_disabled_writes_nothing(tmp_path):
    lb = LoadBalancer("pick_first", None)
    lb.server_registered("x")
    assert lb.process_client_request(1).address == "x"
    assert list(tmp_path.iterdir()) == []


def test_round_robin_balancer_alternates(tmp_path):
    lb = LoadBalancer("round_robin", tmp_path / "server.log")
    lb.server_registered("a")
    lb.server_registered("b")
    picks = {lb.process_client_request(1).address for _ in range(2)}
    assert picks == {"a", "b"}