"""
Pytest configuration for unit tests

Scenarios run against FakeDockerManager, which records every call and
appends scripted log lines to containers as they are started or restarted.
"""
import json
import pytest
from collections import defaultdict
from typing import Callable, Dict, List, Optional
from unittest.mock import MagicMock

from mongotest.config import Settings
from mongotest.models.container import CommandResult
from mongotest.services.docker_manager import DockerManager

TEST_IMAGE = "test/mongodb:latest"
TEST_HELPER_IMAGE = "test/helper:latest"


class FakeDockerManager:
    """In-memory stand-in for DockerManager"""

    def __init__(self, image: str = TEST_IMAGE):
        self.image = image
        self.calls: List[tuple] = []
        self.log_text: Dict[str, str] = defaultdict(str)
        self.scripted_logs: Dict[tuple, List[str]] = {}
        self.ips: Dict[str, str] = {}
        self.environments: List[tuple] = []
        self.responder: Optional[Callable] = None

    def _emit(self, event: str, name: str):
        self.calls.append((event, name))
        for line in self.scripted_logs.get((event, name), []):
            self.log_text[name] += line + "\n"

    def events(self, event: str) -> List[str]:
        return [name for e, name in self.calls if e == event]

    def create_data_container(self, name, image=None):
        self._emit("create", name)

    def run_once(self, command, environment=None, volumes_from=None, extra_hosts=None,
                 image=None, include_stderr=False, check=True):
        self.calls.append(("run_once", tuple(command)))
        self.environments.append((tuple(command), dict(environment or {})))
        if self.responder:
            return self.responder(command, environment or {})
        return CommandResult(exit_code=0, output="")

    def run_detached(self, name, command=None, environment=None, volumes_from=None,
                     extra_hosts=None, image=None):
        if image and image != self.image:
            self.calls.append(("probe", name))
            self.log_text[name] = f"{self.ips.get(name, '')} \n"
            return
        self._emit("run_detached", name)

    def restart(self, name, timeout=10):
        self._emit("restart", name)

    def kill(self, name, signal="SIGKILL"):
        self.calls.append(("kill", name))

    def start(self, name):
        self._emit("start", name)

    def stop(self, name, timeout=10):
        self.calls.append(("stop", name))

    def logs(self, name, stderr=True):
        return self.log_text[name]

    def inspect_ip(self, name):
        return self.ips.get(name, "")

    def top(self, name):
        self.calls.append(("top", name))
        return {"Titles": ["PID", "CMD"], "Processes": [["1", "mongod"]]}

    def remove(self, *names):
        for name in names:
            self.calls.append(("remove", name))
            self.log_text.pop(name, None)

    def cleanup_all(self):
        pass

    def close(self):
        pass


def entrypoint_responder(command: List[str], environment: Dict[str, str]) -> CommandResult:
    """Answers entrypoint flags the way the image under test does"""
    flag = command[0]
    if flag == "--discover":
        return CommandResult(exit_code=0, output=json.dumps({
            "suggested_configuration": {"SSL_MODE": "required", "REPLICA_SET": 1}
        }))
    if flag == "--connection-url":
        host = environment.get("EXPOSE_HOST", "localhost")
        port = environment.get("PORT", "27017")
        database = environment.get("DATABASE", "db")
        url = f"mongodb://testuser:testpass@{host}:{port}/{database}?replicaSet=rs0"
        return CommandResult(exit_code=0, output=json.dumps({"url": url}))
    return CommandResult(exit_code=0, output="")


@pytest.fixture
def test_settings():
    """Settings with polling sped up"""
    return Settings(
        image=TEST_IMAGE,
        helper_image=TEST_HELPER_IMAGE,
        poll_interval_seconds=0.01,
        readiness_timeout_seconds=1,
        start_delay_seconds=8,
        start_delay_step_seconds=4,
        enable_debug=False
    )


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Never actually sleep in unit tests"""
    sleeps = []
    monkeypatch.setattr("time.sleep", lambda seconds: sleeps.append(seconds))
    return sleeps


@pytest.fixture
def fake_docker():
    manager = FakeDockerManager()
    manager.responder = entrypoint_responder
    return manager


@pytest.fixture
def docker_client():
    """Mocked Docker SDK client"""
    client = MagicMock()
    client.ping.return_value = True
    return client


@pytest.fixture
def docker_manager(docker_client):
    return DockerManager(image=TEST_IMAGE, client=docker_client)
