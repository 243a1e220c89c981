from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Harness configuration"""

    # Application
    app_name: str = "mongotest"
    app_version: str = "1.0.0"
    enable_debug: bool = False

    # Images
    image: str = ""
    helper_image: str = "quay.io/aptible/debian:wheezy"

    # Credentials passed to the entrypoint
    db_username: str = "testuser"
    db_passphrase: str = "testpass"
    db_database: str = "db"

    # Single node lifecycle test
    restart_container: str = "mongo"
    restart_port: int = 27217
    restart_expose_host: str = "127.0.0.1"
    restart_timeout_seconds: int = 10

    # Replica set test
    replica_container_prefix: str = "mongodb-r"
    replica_ports: List[int] = [27117, 27217, 27217]
    start_delay_seconds: int = 20
    start_delay_step_seconds: int = 4
    cluster_conf_attempts: int = 5
    votes_script_path: str = "/tmp/test/assert-votes.js"

    # Smoke test
    version_command: List[str] = ["mongod", "--version"]

    # Polling
    poll_interval_seconds: float = 2
    readiness_timeout_seconds: int = 120

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
