import logging
from typing import Dict, List, Optional

from mongotest.config import settings
from mongotest.errors import ScenarioFailure
from mongotest.services.docker_manager import DockerManager
from mongotest.services.waiter import wait_for

logger = logging.getLogger(__name__)

PROBE_COMMAND = ["sh", "-c", "hostname -I && exec sleep 10000"]


class IpProbe:
    """
    Predicts the IP addresses replica set members will get

    --add-host can only be set when a container starts, but an IP address is
    only known once the container runs, and every member needs the address
    of every other. Docker hands out bridge addresses in order and reuses
    freed ones, so throwaway containers started under the member names get
    the addresses the members will get next. check_ip confirms the guess.
    """

    def __init__(self, docker_manager: DockerManager, helper_image: Optional[str] = None):
        self.docker_manager = docker_manager
        self.helper_image = helper_image or settings.helper_image

    def guess_ips(self, names: List[str]) -> Dict[str, str]:
        """
        Start one helper container per name and collect their addresses

        Args:
            names: Container names the members will use

        Returns:
            Dict[str, str]: Container name to IP address
        """
        for name in names:
            self.docker_manager.run_detached(name, command=PROBE_COMMAND, image=self.helper_image)

        ips = {}
        try:
            for name in names:
                wait_for(
                    lambda: self.docker_manager.logs(name).split(),
                    interval=0.5,
                    attempts=20,
                    description=f"{name} to report its address"
                )
                ips[name] = self.docker_manager.logs(name).split()[0]
                logger.info(f"{name} will use {ips[name]}")
        finally:
            for name in names:
                try:
                    self.docker_manager.kill(name)
                except Exception as e:
                    logger.debug(f"Could not kill helper {name}: {e}")
            self.docker_manager.remove(*names)

        return ips

    @staticmethod
    def extra_hosts(ips: Dict[str, str]) -> Dict[str, str]:
        """--add-host entries emulating DNS between members"""
        return dict(ips)

    def check_ip(self, name: str, expected_ip: str):
        """Fail if `name` did not get the address we predicted"""
        real_ip = self.docker_manager.inspect_ip(name)
        if real_ip != expected_ip:
            raise ScenarioFailure(f"{name} IP is unexpected: expected {expected_ip}, got {real_ip}")
        logger.debug(f"{name} IP is {real_ip} as expected")
