import logging
from datetime import datetime
from typing import List, Optional

from mongotest.config import Settings, settings as default_settings
from mongotest.errors import HarnessError
from mongotest.models.scenario import ScenarioResult
from mongotest.services.docker_manager import DockerManager
from mongotest.services.entrypoint import ImageEntrypoint
from mongotest.services.log_inspector import LogInspector

logger = logging.getLogger(__name__)


class Scenario:
    """A sequence of container operations and checks against one image"""

    name = "scenario"

    def __init__(self, docker_manager: DockerManager, settings: Optional[Settings] = None):
        self.docker_manager = docker_manager
        self.settings = settings or default_settings
        self.entrypoint = ImageEntrypoint(docker_manager)
        self.log_inspector = LogInspector(docker_manager)

    def container_names(self) -> List[str]:
        """Every container this scenario may create"""
        return []

    def cleanup(self):
        logger.info("Cleaning up")
        self.docker_manager.remove(*self.container_names())

    def execute(self):
        raise NotImplementedError

    def run(self) -> ScenarioResult:
        """
        Execute the scenario, always cleaning up its containers afterwards

        Harness errors become a failed result; anything else (a Docker API
        error, a bug) propagates after cleanup.

        Returns:
            ScenarioResult: Outcome of the run
        """
        result = ScenarioResult(name=self.name, success=False)
        logger.info(f"Running {self.name} against {self.docker_manager.image}")

        self.cleanup()
        try:
            self.execute()
            result.success = True
            result.message = "passed"
        except HarnessError as e:
            logger.error(f"FAIL: {e}")
            result.message = str(e)
        finally:
            result.finished_at = datetime.utcnow()
            if self.settings.enable_debug:
                logger.info("ENABLE_DEBUG is set, skipping cleanup")
            else:
                self.cleanup()

        logger.info(f"{self.name}: {result.message}")
        return result
