import pytest

from distlab.balancing.balancer import LoadBalancer, NoServersAvailable
from distlab.balancing.client import TaskClient
from distlab.balancing.task_server import TaskServer


class _Runner:
    def __init__(self):
        self.loads = []

    def run_task(self, load):
        self.loads.append(load)
        return True


def test_run_sends_load_to_selected_server(tmp_path):
    lb = LoadBalancer("pick_first", tmp_path / "server.log")
    lb.server_registered("localhost:3")
    runner = _Runner()
    connected = []

    def connect(address):
        connected.append(address)
        return runner

    client = TaskClient(lb, connect, tmp_path / "client.log")
    turnaround = client.run(4)
    assert connected == ["localhost:3"]
    assert runner.loads == [4]
    assert turnaround >= 0.0
    assert "Turnaround time:" in (tmp_path / "client.log").read_text()


def test_run_with_real_task_server(tmp_path):
    lb = LoadBalancer("least_loaded", tmp_path / "server.log")
    server = TaskServer("localhost:4", lb)
    server.cpu_sample_interval = 0.0
    server.heartbeat()
    client = TaskClient(lb, lambda address: server, tmp_path / "client.log")
    assert client.run(0) >= 0.0
    assert server.task_load == 0


def test_run_without_servers_raises_and_logs_nothing(tmp_path):
    lb = LoadBalancer("least_loaded", tmp_path / "server.log")
    runner = _Runner()
    client = TaskClient(lb, lambda address: runner, tmp_path / "client.log")
    with pytest.raises(NoServersAvailable):
        client.run(1)
    assert runner.loads == []
    assert not (tmp_path / "client.log").exists()


def test_runner_failure_propagates(tmp_path):
    lb = LoadBalancer("pick_first", tmp_path / "server.log")
    lb.server_registered("localhost:5")

    class _Broken:
        def run_task(self, load):
            raise ConnectionError("gone")

    client = TaskClient(lb, lambda address: _Broken(), tmp_path / "client.log")
    with pytest.raises(ConnectionError):
        client.run(1)
    assert not (tmp_path / "client.log").exists()