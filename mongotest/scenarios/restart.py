import logging
from datetime import datetime
from typing import List

from mongotest.models.container import EntrypointEnv
from mongotest.scenarios.base import Scenario
from mongotest.services.log_inspector import (
    CLEAN_SHUTDOWN,
    CRASH_RECOVERY,
    REPLICA_CONFIG_FOUND
)
from mongotest.services.waiter import wait_for_mongo

logger = logging.getLogger(__name__)


class RestartScenario(Scenario):
    """
    Single node lifecycle: clean restart, then an unclean one

    Test order:
    1. Initialize and start the database, wait until it accepts connections
    2. Verify no clean shutdown marker exists yet
    3. Restart the container, verify a clean shutdown, then a restart
       that found the replica set config and skipped recovery
    4. Kill the container, start it, verify crash recovery ran
    """

    name = "restart"

    @property
    def container(self) -> str:
        return self.settings.restart_container

    @property
    def data_container(self) -> str:
        return f"{self.container}-data"

    def container_names(self) -> List[str]:
        return [self.container, self.data_container]

    def _expose_env(self) -> EntrypointEnv:
        return EntrypointEnv(
            expose_host=self.settings.restart_expose_host,
            expose_ports=[self.settings.restart_port],
            enable_debug=self.settings.enable_debug
        )

    def _wait_online(self, seen: int) -> int:
        return wait_for_mongo(
            self.log_inspector,
            self.container,
            seen=seen,
            interval=self.settings.poll_interval_seconds,
            timeout=self.settings.readiness_timeout_seconds
        )

    def execute(self):
        logger.info("Creating data container")
        self.docker_manager.create_data_container(self.data_container)

        logger.info("Starting DB")
        init_env = self._expose_env().model_copy(update={
            "username": self.settings.db_username,
            "passphrase": self.settings.db_passphrase,
            "database": self.settings.db_database
        })
        self.entrypoint.initialize(init_env, self.data_container)

        self.docker_manager.run_detached(
            self.container,
            environment=self._expose_env().to_environment(),
            volumes_from=[self.data_container]
        )

        logger.info("Waiting for DB to come online")
        seen = self._wait_online(0)

        logger.info("Verifying DB shutdown message isn't present")
        self.log_inspector.assert_absent(self.container, CLEAN_SHUTDOWN)

        logger.info("Restarting DB container")
        logger.info(datetime.now().isoformat())
        self.docker_manager.top(self.container)
        before_restart = self.log_inspector.line_count(self.container)
        self.docker_manager.restart(self.container, timeout=self.settings.restart_timeout_seconds)

        logger.info("Waiting for DB to come back online")
        seen = self._wait_online(seen)

        logger.info("DB came back online; checking for clean shutdown and recovery")
        logger.info(datetime.now().isoformat())
        self.log_inspector.assert_present(
            self.container, CLEAN_SHUTDOWN, f"{self.container} did not shut down cleanly"
        )
        self.log_inspector.assert_present(
            self.container, REPLICA_CONFIG_FOUND, f"{self.container} did not find itself in the replica set config",
            since=before_restart
        )
        self.log_inspector.assert_absent(
            self.container, CRASH_RECOVERY, f"{self.container} ran crash recovery after a clean shutdown",
            since=before_restart
        )

        logger.info("Attempting unclean shutdown")
        self.docker_manager.kill(self.container, signal="SIGKILL")
        self.docker_manager.start(self.container)

        logger.info("Waiting for DB to come back online")
        self._wait_online(seen)
        self.log_inspector.assert_present(
            self.container, CRASH_RECOVERY, f"{self.container} did not recover after being killed"
        )
