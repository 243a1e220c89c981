from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class EntrypointEnv(BaseModel):
    """Environment variables understood by the image entrypoint"""
    username: Optional[str] = Field(None, description="USERNAME")
    passphrase: Optional[str] = Field(None, description="PASSPHRASE")
    database: Optional[str] = Field(None, description="DATABASE")
    port: Optional[int] = Field(None, description="PORT", ge=1, le=65535)
    expose_host: Optional[str] = Field(None, description="EXPOSE_HOST")
    expose_ports: List[int] = Field(
        default_factory=list,
        description="Ports rendered as EXPOSE_PORT_<port>=<port>"
    )
    enable_debug: bool = Field(default=False, description="ENABLE_DEBUG")
    extra: Dict[str, str] = Field(
        default_factory=dict,
        description="Suggested configuration imported from --discover"
    )

    def to_environment(self) -> Dict[str, str]:
        """
        Render the variable bag passed to the container

        Suggested configuration goes first so that explicitly set
        fields override it.

        Returns:
            Dict[str, str]: Environment for the docker run call
        """
        environment = dict(self.extra)

        if self.username is not None:
            environment["USERNAME"] = self.username
        if self.passphrase is not None:
            environment["PASSPHRASE"] = self.passphrase
        if self.database is not None:
            environment["DATABASE"] = self.database
        if self.port is not None:
            environment["PORT"] = str(self.port)
        if self.expose_host is not None:
            environment["EXPOSE_HOST"] = self.expose_host
        for port in self.expose_ports:
            environment[f"EXPOSE_PORT_{port}"] = str(port)
        if self.enable_debug:
            environment["ENABLE_DEBUG"] = "1"

        return environment

    def with_database(self, database: str) -> "EntrypointEnv":
        """Copy of this environment targeting another database"""
        return self.model_copy(update={"database": database})


class DiscoverResponse(BaseModel):
    """Output of the entrypoint's --discover flag"""
    suggested_configuration: Dict[str, str] = Field(default_factory=dict)

    @field_validator("suggested_configuration", mode="before")
    @classmethod
    def _stringify(cls, value):
        if isinstance(value, dict):
            return {str(k): str(v) for k, v in value.items()}
        return value


class ConnectionUrlResponse(BaseModel):
    """Output of the entrypoint's --connection-url flag"""
    url: str = Field(..., description="MongoDB connection URL")


class CommandResult(BaseModel):
    """Exit code and captured output of a one-shot container"""
    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ReplicaMember(BaseModel):
    """A replica set member and its data container"""
    index: int = Field(..., ge=1)
    container: str
    data_container: str
    port: int = Field(..., ge=1, le=65535)
    expected_ip: Optional[str] = None
    env: EntrypointEnv = Field(default_factory=EntrypointEnv)
