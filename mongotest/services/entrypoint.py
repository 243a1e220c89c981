import logging
from typing import Dict, List, Optional

from pydantic import ValidationError
from pymongo import uri_parser
from pymongo.errors import InvalidURI

from mongotest.errors import ScenarioFailure
from mongotest.models.container import (
    CommandResult,
    ConnectionUrlResponse,
    DiscoverResponse,
    EntrypointEnv
)
from mongotest.services.docker_manager import DockerManager

logger = logging.getLogger(__name__)

IS_PRIMARY_JS = 'quit(db.isMaster()["ismaster"] ? 0 : 1)'
IS_SECONDARY_JS = 'quit(db.isMaster()["secondary"] ? 0 : 1)'
RS_CONF_JS = "printjson(rs.conf())"
RS_STATUS_JS = "printjson(rs.status())"

# The test image serves a self-signed certificate
SSL_VERIFY_SUFFIX = "&x-sslVerify=false"


class ImageEntrypoint:
    """Lifecycle flags exposed by the image entrypoint"""

    def __init__(self, docker_manager: DockerManager):
        self.docker_manager = docker_manager

    def discover(self) -> Dict[str, str]:
        """
        Import the configuration the image suggests for new databases

        Returns:
            Dict[str, str]: Environment variables to pass to every container
        """
        result = self.docker_manager.run_once(["--discover"])

        try:
            response = DiscoverResponse.model_validate_json(result.output)
        except ValidationError as e:
            raise ScenarioFailure(f"Unexpected --discover output: {result.output!r}") from e

        logger.info(f"Suggested configuration: {sorted(response.suggested_configuration)}")
        return response.suggested_configuration

    def initialize(
        self,
        env: EntrypointEnv,
        data_container: str,
        extra_hosts: Optional[Dict[str, str]] = None
    ) -> CommandResult:
        """Initialize a fresh database in the volumes of `data_container`"""
        return self.docker_manager.run_once(
            ["--initialize"],
            environment=env.to_environment(),
            volumes_from=[data_container],
            extra_hosts=extra_hosts,
            include_stderr=True
        )

    def initialize_from(
        self,
        url: str,
        env: EntrypointEnv,
        data_container: str,
        extra_hosts: Optional[Dict[str, str]] = None
    ) -> CommandResult:
        """Initialize a replica set member that joins the cluster at `url`"""
        return self.docker_manager.run_once(
            ["--initialize-from", url],
            environment=env.to_environment(),
            volumes_from=[data_container],
            extra_hosts=extra_hosts,
            include_stderr=True
        )

    def connection_url(self, env: EntrypointEnv) -> str:
        """
        Ask the image for the connection URL matching `env`

        Args:
            env: Entrypoint environment of the member

        Returns:
            str: Connection URL with certificate verification disabled
        """
        result = self.docker_manager.run_once(
            ["--connection-url"],
            environment=env.to_environment()
        )

        try:
            response = ConnectionUrlResponse.model_validate_json(result.output)
        except ValidationError as e:
            raise ScenarioFailure(f"Unexpected --connection-url output: {result.output!r}") from e

        url = response.url + SSL_VERIFY_SUFFIX

        try:
            parsed = uri_parser.parse_uri(url, validate=False, warn=True)
        except InvalidURI as e:
            raise ScenarioFailure(f"Image returned an invalid connection URL: {e}") from e

        logger.debug(f"Connection URL targets {parsed['nodelist']} database {parsed['database']}")
        return url

    def client_eval(
        self,
        url: str,
        javascript: str,
        extra_hosts: Optional[Dict[str, str]] = None
    ) -> CommandResult:
        """Evaluate `javascript` with the image's mongo shell against `url`"""
        return self._client(url, ["--quiet", "--eval", javascript], extra_hosts)

    def client_script(
        self,
        url: str,
        script_path: str,
        extra_hosts: Optional[Dict[str, str]] = None
    ) -> CommandResult:
        """Run a script shipped in the image against `url`"""
        return self._client(url, [script_path], extra_hosts)

    def _client(self, url: str, args: List[str], extra_hosts: Optional[Dict[str, str]]) -> CommandResult:
        return self.docker_manager.run_once(
            ["--client", url] + args,
            extra_hosts=extra_hosts,
            include_stderr=True,
            check=False
        )

    def is_primary(self, url: str, extra_hosts: Optional[Dict[str, str]] = None) -> bool:
        return self.client_eval(url, IS_PRIMARY_JS, extra_hosts).ok

    def is_secondary(self, url: str, extra_hosts: Optional[Dict[str, str]] = None) -> bool:
        return self.client_eval(url, IS_SECONDARY_JS, extra_hosts).ok

    def replica_set_config(self, url: str, extra_hosts: Optional[Dict[str, str]] = None) -> str:
        """Output of rs.conf() as printed by the shell"""
        return self._checked_eval(url, RS_CONF_JS, extra_hosts)

    def replica_set_status(self, url: str, extra_hosts: Optional[Dict[str, str]] = None) -> str:
        """Output of rs.status() as printed by the shell"""
        return self._checked_eval(url, RS_STATUS_JS, extra_hosts)

    def _checked_eval(self, url: str, javascript: str, extra_hosts: Optional[Dict[str, str]]) -> str:
        return self.docker_manager.run_once(
            ["--client", url, "--quiet", "--eval", javascript],
            extra_hosts=extra_hosts,
            include_stderr=True
        ).output

    def version(self, command: List[str]) -> str:
        """Output of a version command run in the image"""
        return self.docker_manager.run_once(command, include_stderr=True).output
