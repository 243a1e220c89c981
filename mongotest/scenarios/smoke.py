import logging
import re
from typing import Optional

from mongotest.config import Settings
from mongotest.errors import ScenarioFailure
from mongotest.scenarios.base import Scenario
from mongotest.services.docker_manager import DockerManager

logger = logging.getLogger(__name__)

ANY_VERSION = r"version v?\d+\.\d+"


class SmokeScenario(Scenario):
    """Checks the image reports the MongoDB version it was built with"""

    name = "smoke"

    def __init__(
        self,
        docker_manager: DockerManager,
        expected_version: Optional[str] = None,
        settings: Optional[Settings] = None
    ):
        super().__init__(docker_manager, settings)
        self.expected_version = expected_version

    def execute(self):
        output = self.entrypoint.version(self.settings.version_command)
        logger.info(output.strip())

        if self.expected_version:
            pattern = re.escape(self.expected_version)
        else:
            pattern = ANY_VERSION

        if not re.search(pattern, output, re.IGNORECASE):
            expected = self.expected_version or "a version string"
            raise ScenarioFailure(f"Expected {expected} in version output, got: {output.strip()!r}")
