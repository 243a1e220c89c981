import docker
from docker.models.containers import Container
from typing import Dict, List, Optional
import logging

from mongotest.config import settings
from mongotest.errors import ContainerCommandError
from mongotest.models.container import CommandResult

logger = logging.getLogger(__name__)


class DockerManager:
    """Drives the Docker runtime for the image under test"""

    def __init__(self, image: Optional[str] = None, client: Optional[docker.DockerClient] = None):
        """
        Initialize Docker client

        Args:
            image: Default image for created containers
            client: Pre-built Docker client, created from the environment if omitted
        """
        try:
            self.client = client or docker.from_env()
            self.client.ping()
            logger.debug("Docker client initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize Docker client: {e}")
            raise

        self.image = image or settings.image
        self.containers: Dict[str, Container] = {}

    def _get_container(self, name: str) -> Container:
        """Look up a container, preferring the ones we created"""
        if name not in self.containers:
            self.containers[name] = self.client.containers.get(name)
        return self.containers[name]

    def create_data_container(self, name: str, image: Optional[str] = None) -> Container:
        """Create (but do not start) a container that only holds volumes"""
        container = self.client.containers.create(image or self.image, name=name)
        self.containers[name] = container
        logger.info(f"Created data container {name}")
        return container

    def run_once(
        self,
        command: List[str],
        environment: Optional[Dict[str, str]] = None,
        volumes_from: Optional[List[str]] = None,
        extra_hosts: Optional[Dict[str, str]] = None,
        image: Optional[str] = None,
        include_stderr: bool = False,
        check: bool = True
    ) -> CommandResult:
        """
        Run a throwaway container to completion and remove it

        Args:
            command: Arguments passed to the image entrypoint
            environment: Environment variables for the container
            volumes_from: Containers whose volumes are mounted
            extra_hosts: Hostname to IP mapping added to /etc/hosts
            image: Image to run, defaults to the image under test
            include_stderr: Capture stderr along with stdout
            check: Raise ContainerCommandError on a non-zero exit code

        Returns:
            CommandResult: Exit code and captured output
        """
        logger.debug(f"Running {command} in {image or self.image}")

        container = self.client.containers.run(
            image=image or self.image,
            command=command,
            environment=environment or {},
            volumes_from=volumes_from or None,
            extra_hosts=extra_hosts or None,
            stdin_open=True,
            detach=True
        )

        try:
            status = container.wait()
            exit_code = status.get("StatusCode", 1)
            output = container.logs(stdout=True, stderr=include_stderr).decode("utf-8", errors="replace")
        finally:
            container.remove(force=True)

        result = CommandResult(exit_code=exit_code, output=output)
        logger.debug(f"{command} exited with code {exit_code}")

        if check and not result.ok:
            logger.error(f"Command {command} failed:\n{output}")
            raise ContainerCommandError(command, exit_code, output)

        return result

    def run_detached(
        self,
        name: str,
        command: Optional[List[str]] = None,
        environment: Optional[Dict[str, str]] = None,
        volumes_from: Optional[List[str]] = None,
        extra_hosts: Optional[Dict[str, str]] = None,
        image: Optional[str] = None
    ) -> Container:
        """Start a named long-running container"""
        container = self.client.containers.run(
            image=image or self.image,
            name=name,
            command=command,
            environment=environment or {},
            volumes_from=volumes_from or None,
            extra_hosts=extra_hosts or None,
            detach=True,
            remove=False
        )

        self.containers[name] = container
        logger.info(f"Started container {name}")
        return container

    def restart(self, name: str, timeout: int = 10):
        """Restart a container, giving it `timeout` seconds to stop cleanly"""
        self._get_container(name).restart(timeout=timeout)
        logger.info(f"Restarted container {name}")

    def kill(self, name: str, signal: str = "SIGKILL"):
        """Kill a container (hard crash)"""
        self._get_container(name).kill(signal=signal)
        logger.info(f"Killed container {name} with {signal}")

    def start(self, name: str):
        """Start a stopped container"""
        self._get_container(name).start()
        logger.info(f"Started container {name}")

    def stop(self, name: str, timeout: int = 10):
        """Stop a running container"""
        self._get_container(name).stop(timeout=timeout)
        logger.info(f"Stopped container {name}")

    def logs(self, name: str, stderr: bool = True) -> str:
        """Full container log, stderr included by default"""
        return self._get_container(name).logs(stdout=True, stderr=stderr).decode("utf-8", errors="replace")

    def inspect_ip(self, name: str) -> str:
        """IP address of a container on the default bridge"""
        container = self._get_container(name)
        container.reload()
        return container.attrs["NetworkSettings"]["IPAddress"]

    def top(self, name: str) -> Dict:
        """Process table of a running container"""
        processes = self._get_container(name).top()
        titles = processes.get("Titles") or []
        for row in processes.get("Processes") or []:
            logger.info(f"{name}: {dict(zip(titles, row))}")
        return processes

    def remove(self, *names: str):
        """Force-remove containers, ignoring the ones that do not exist"""
        for name in names:
            try:
                container = self.containers.pop(name, None) or self.client.containers.get(name)
                container.remove(force=True)
                logger.info(f"Removed container {name}")
            except docker.errors.NotFound:
                logger.debug(f"Container {name} not found, nothing to remove")
            except docker.errors.APIError as e:
                logger.warning(f"Failed to remove container {name}: {e}")

    def cleanup_all(self):
        """Remove every container this manager created"""
        logger.info("Cleaning up")
        self.remove(*list(self.containers.keys()))
        self.containers.clear()

    def close(self):
        self.client.close()
