import threading
import time

from distlab.balancing.balancer import LoadBalancer
from distlab.balancing.task_server import TaskServer, fake_task, get_cpu_load


class _RecordingBalancer:
    def __init__(self, fail=False):
        self.received = []
        self.fail = fail

    def process_server_heartbeat(self, info):
        self.received.append(info)
        if self.fail:
            raise ConnectionError("down")
        return True


def test_fake_task_zero_returns_quickly():
    start = time.monotonic()
    result = fake_task(0)
    assert time.monotonic() - start < 1.0
    assert result == 0.0


def test_fake_task_runs_for_duration():
    start = time.monotonic()
    result = fake_task(0.1)
    assert time.monotonic() - start >= 0.1
    assert 0.0 <= result <= 1000.0


def test_cpu_load_in_range():
    assert 0.0 <= get_cpu_load(0.0) <= 100.0


def test_run_task_returns_true_and_restores_load():
    server = TaskServer("localhost:1", _RecordingBalancer())
    assert server.run_task(0) is True
    assert server.task_load == 0


def test_task_load_counts_running_tasks():
    server = TaskServer("localhost:1", _RecordingBalancer())
    worker = threading.Thread(target=server.run_task, args=(0.5,))
    worker.start()
    time.sleep(0.1)
    during = server.task_load
    worker.join()
    assert during == 1
    assert server.task_load == 0


def test_heartbeat_registers_with_balancer(tmp_path):
    lb = LoadBalancer("least_loaded", tmp_path / "server.log")
    server = TaskServer("localhost:7", lb)
    server.cpu_sample_interval = 0.0
    info = server.heartbeat()
    assert info.address == "localhost:7"
    assert info.task_load == 0
    assert lb.process_client_request(1).address == "localhost:7"


def test_send_heartbeats_until_stopped_and_survives_errors():
    balancer = _RecordingBalancer(fail=True)
    server = TaskServer("localhost:8", balancer)
    server.cpu_sample_interval = 0.0
    stop = threading.Event()
    thread = threading.Thread(target=server.send_heartbeats, args=(stop, 0.01))
    thread.start()
    time.sleep(0.2)
    stop.set()
    thread.join(timeout=2)
    assert not thread.is_alive()
    assert len(balancer.received) >= 2
    assert all(info.address == "localhost:8" for info in balancer.received)