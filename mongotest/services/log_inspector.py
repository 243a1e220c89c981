import logging
import re
from typing import List

from mongotest.errors import ScenarioFailure
from mongotest.services.docker_manager import DockerManager

logger = logging.getLogger(__name__)

# mongod log markers, covering the 2.x/3.x text format and 4.4+ JSON logs
CLEAN_SHUTDOWN = r"(dbexit.*(rc: 0|really exit))|(shutting down with code:0)"
REPLICA_CONFIG_FOUND = r"(this node is.*in the config|replSet I am)"
CRASH_RECOVERY = r"(recovering data from the last clean checkpoint|recover done)"
STEP_DOWN = r"relinquishing primary"
WAITING_FOR_CONNECTIONS = r"waiting for connections"


def member_down_patterns(host: str, port: int) -> List[str]:
    """
    Log lines a primary writes when it loses sight of a member

    The first form is logged by MongoDB 2.6, the second by 3.2.
    """
    member = re.escape(f"{host}:{port}")
    return [
        rf"{member} is now in state DOWN",
        rf"{member}; ExceededTimeLimit",
    ]


class LogInspector:
    """Case-insensitive pattern checks over container logs"""

    def __init__(self, docker_manager: DockerManager):
        self.docker_manager = docker_manager

    def matching_lines(self, container: str, pattern: str, since: int = 0) -> List[str]:
        """Log lines of `container` matching `pattern`, skipping the first `since` lines"""
        regex = re.compile(pattern, re.IGNORECASE)
        logs = self.docker_manager.logs(container)
        return [line for line in logs.splitlines()[since:] if regex.search(line)]

    def line_count(self, container: str) -> int:
        """Number of lines logged so far, used as a `since` mark"""
        return len(self.docker_manager.logs(container).splitlines())

    def matches(self, container: str, pattern: str) -> bool:
        return bool(self.matching_lines(container, pattern))

    def count(self, container: str, pattern: str) -> int:
        return len(self.matching_lines(container, pattern))

    def assert_present(self, container: str, pattern: str, message: str = "", since: int = 0):
        """Fail unless some log line of `container` after `since` matches `pattern`"""
        lines = self.matching_lines(container, pattern, since)
        if not lines:
            self._fail(container, message or f"{container} never logged /{pattern}/")
        logger.info(f"{container}: {lines[-1].strip()}")

    def assert_absent(self, container: str, pattern: str, message: str = "", since: int = 0):
        """Fail if any log line of `container` after `since` matches `pattern`"""
        lines = self.matching_lines(container, pattern, since)
        if lines:
            self._fail(container, message or f"{container} unexpectedly logged: {lines[0].strip()}")

    def _fail(self, container: str, message: str):
        logger.error(f"Logs of {container}:\n{self.docker_manager.logs(container)}")
        raise ScenarioFailure(message)
