import logging
import time
from typing import Dict, List, Optional

from mongotest.config import Settings
from mongotest.errors import ScenarioFailure
from mongotest.models.container import EntrypointEnv, ReplicaMember
from mongotest.scenarios.base import Scenario
from mongotest.services.docker_manager import DockerManager
from mongotest.services.ip_probe import IpProbe
from mongotest.services.log_inspector import STEP_DOWN, member_down_patterns
from mongotest.services.waiter import countdown, wait_for

logger = logging.getLogger(__name__)


class ReplicationScenario(Scenario):
    """
    Three member replica set formation

    Test order:
    1. Import the suggested configuration and create three data containers
    2. Predict member IPs so every member can resolve the others
    3. Initialize and start member 1, wait for it to become primary
    4. Initialize member 2 from member 1, keep it down for a while and check
       the primary noticed without stepping down, then start it
    5. Initialize member 3 from member 2, which only works if the
       entrypoint resolves the real primary
    6. Validate votes and priorities, dump the final configuration
    """

    name = "replication"

    def __init__(self, docker_manager: DockerManager, settings: Optional[Settings] = None):
        super().__init__(docker_manager, settings)
        self.ip_probe = IpProbe(docker_manager, self.settings.helper_image)
        self.members = [
            ReplicaMember(
                index=i + 1,
                container=f"{self.settings.replica_container_prefix}{i + 1}",
                data_container=f"{self.settings.replica_container_prefix}{i + 1}-data",
                port=port
            )
            for i, port in enumerate(self.settings.replica_ports)
        ]
        self.extra_hosts: Dict[str, str] = {}

    def container_names(self) -> List[str]:
        names = []
        for member in self.members:
            names.extend([member.container, member.data_container])
        return names

    def _base_env(self, suggested: Dict[str, str]) -> EntrypointEnv:
        return EntrypointEnv(
            username=self.settings.db_username,
            passphrase=self.settings.db_passphrase,
            database=self.settings.db_database,
            enable_debug=self.settings.enable_debug,
            extra=suggested
        )

    def _configure_members(self, suggested: Dict[str, str]):
        base = self._base_env(suggested)
        for member in self.members:
            member.env = base.model_copy(update={
                "port": member.port,
                "expose_host": member.container,
                "expose_ports": [member.port]
            })

    def _start_member(self, member: ReplicaMember):
        logger.info(f"Starting member {member.index} as {member.container} on port {member.port}")
        self.docker_manager.run_detached(
            member.container,
            environment=member.env.to_environment(),
            volumes_from=[member.data_container],
            extra_hosts=self.extra_hosts
        )
        self.ip_probe.check_ip(member.container, member.expected_ip)

    def _wait_until(self, probe, url: str, description: str):
        wait_for(
            lambda: probe(url, self.extra_hosts),
            interval=self.settings.poll_interval_seconds,
            description=description
        )

    def validate_cluster_conf(self, mongo_url: str):
        """
        Check every member has the expected votes and priority

        The image ships the check as a mongo shell script. Reaching the
        final attempt counts as a failure.
        """
        attempts = self.settings.cluster_conf_attempts
        for attempt in range(1, attempts + 1):
            logger.info(f"Validating voting and priority configuration (from {mongo_url}, attempt {attempt})")
            if attempt >= attempts:
                raise ScenarioFailure(f"Some members had an invalid configuration after {attempts} attempts")
            result = self.entrypoint.client_script(mongo_url, self.settings.votes_script_path, self.extra_hosts)
            if result.ok:
                return
            logger.debug(result.output)
            time.sleep(self.settings.poll_interval_seconds)

    def check_primary_stayed_up(self, primary: ReplicaMember, restarting: ReplicaMember):
        """The primary must notice `restarting` went down, without stepping down itself"""
        self.log_inspector.assert_absent(
            primary.container, STEP_DOWN, f"{primary.container} stepped down"
        )

        noticed = any(
            self.log_inspector.matches(primary.container, pattern)
            for pattern in member_down_patterns(restarting.container, restarting.port)
        )
        if not noticed:
            # Not strictly a failure, but nothing demonstrates the cluster reacted to the restart
            logger.error(f"Logs of {primary.container}:\n{self.docker_manager.logs(primary.container)}")
            raise ScenarioFailure(
                f"{primary.container} did not realize that {restarting.container} went down - aborting test"
            )

    def execute(self):
        r1, r2, r3 = self.members

        logger.info("Importing suggested configuration")
        self._configure_members(self.entrypoint.discover())

        logger.info("Initializing data containers")
        for member in self.members:
            self.docker_manager.create_data_container(member.data_container)

        logger.info("Guessing IPs")
        ips = self.ip_probe.guess_ips([member.container for member in self.members])
        for member in self.members:
            member.expected_ip = ips[member.container]
        self.extra_hosts = IpProbe.extra_hosts(ips)

        logger.info("Initializing first member")
        self.entrypoint.initialize(r1.env, r1.data_container, self.extra_hosts)
        self._start_member(r1)

        r1_url = self.entrypoint.connection_url(r1.env)
        self._wait_until(self.entrypoint.is_primary, r1_url, f"{r1.container} to become primary")

        logger.info("Initializing second member")
        r2_url = self.entrypoint.connection_url(r2.env)
        r2_admin_url = self.entrypoint.connection_url(r2.env.with_database("admin"))
        self.entrypoint.initialize_from(r1_url, r2.env, r2.data_container, self.extra_hosts)

        logger.info(f"Simulating {r2.container} start delay")
        countdown(self.settings.start_delay_seconds, self.settings.start_delay_step_seconds)
        self.check_primary_stayed_up(r1, r2)

        self._start_member(r2)
        self._wait_until(self.entrypoint.is_secondary, r2_admin_url, f"{r2.container} to become secondary")
        self.validate_cluster_conf(r2_admin_url)

        logger.info("Initializing third member from second")
        self.entrypoint.initialize_from(r2_url, r3.env, r3.data_container, self.extra_hosts)
        self._start_member(r3)

        r3_admin_url = self.entrypoint.connection_url(r3.env.with_database("admin"))
        self._wait_until(self.entrypoint.is_secondary, r3_admin_url, f"{r3.container} to become secondary")
        self.validate_cluster_conf(r3_admin_url)

        logger.info(f"Cluster configuration:\n{self.entrypoint.replica_set_config(r2_admin_url, self.extra_hosts)}")
        logger.info(f"Cluster status:\n{self.entrypoint.replica_set_status(r2_admin_url, self.extra_hosts)}")
