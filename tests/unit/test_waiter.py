"""
Unit tests for polling helpers
"""
import pytest

from mongotest.errors import WaitTimeout
from mongotest.services.log_inspector import LogInspector
from mongotest.services.waiter import countdown, wait_for, wait_for_mongo


def test_wait_for_returns_attempts(no_sleep):
    answers = iter([False, False, True])

    attempts = wait_for(lambda: next(answers), interval=2, attempts=5)

    assert attempts == 3
    assert no_sleep == [2, 2]


def test_wait_for_unbounded_keeps_polling(no_sleep):
    answers = iter([False] * 50 + [True])

    assert wait_for(lambda: next(answers), interval=2) == 51


def test_wait_for_exceptions_mean_not_ready():
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError("connection refused")
        return True

    assert wait_for(flaky, interval=0, attempts=5) == 3


def test_wait_for_timeout(no_sleep):
    with pytest.raises(WaitTimeout, match="primary"):
        wait_for(lambda: False, interval=2, attempts=3, description="primary")

    # no sleep after the final attempt
    assert no_sleep == [2, 2]


def test_countdown_steps(no_sleep, caplog):
    caplog.set_level("INFO")

    countdown(20, 4)

    assert no_sleep == [4, 4, 4, 4, 4]
    assert "20 seconds left..." in caplog.text
    assert "4 seconds left..." in caplog.text


class TestWaitForMongo:

    def test_waits_for_a_new_readiness_line(self, fake_docker):
        fake_docker.log_text["mongo"] = "waiting for connections on port 27217\n"
        inspector = LogInspector(fake_docker)

        checks = []

        def logs(name, stderr=True):
            checks.append(name)
            if len(checks) >= 3:
                return fake_docker.log_text[name] + "waiting for connections on port 27217\n"
            return fake_docker.log_text[name]

        fake_docker.logs = logs

        assert wait_for_mongo(inspector, "mongo", seen=1, interval=1, timeout=10) == 2
        assert len(checks) == 3

    def test_timeout(self, fake_docker):
        inspector = LogInspector(fake_docker)

        with pytest.raises(WaitTimeout, match="mongo to accept connections"):
            wait_for_mongo(inspector, "mongo", seen=0, interval=1, timeout=3)
