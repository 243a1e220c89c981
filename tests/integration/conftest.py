"""
Pytest configuration for integration tests
"""
import pytest
import docker
import logging

from mongotest.config import settings
from mongotest.services.docker_manager import DockerManager

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

TEST_CONTAINER_NAMES = [
    settings.restart_container,
    f"{settings.restart_container}-data",
] + [
    name
    for i in range(1, len(settings.replica_ports) + 1)
    for name in (f"{settings.replica_container_prefix}{i}", f"{settings.replica_container_prefix}{i}-data")
]


def pytest_collection_modifyitems(config, items):
    if config.getoption("--image"):
        return
    skip = pytest.mark.skip(reason="needs --image to run against real containers")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def image(request):
    return request.config.getoption("--image")


@pytest.fixture(scope="session")
def docker_client():
    """Get Docker client."""
    client = docker.from_env()
    yield client
    client.close()


def cleanup_test_containers(docker_client: docker.DockerClient):
    """Remove every container the scenarios may have left behind."""
    logger.info("Cleaning up test containers...")

    for name in TEST_CONTAINER_NAMES:
        try:
            docker_client.containers.get(name).remove(force=True)
            logger.info(f"Removing container: {name}")
        except docker.errors.NotFound:
            continue
        except docker.errors.APIError as e:
            logger.warning(f"Error removing container {name}: {e}")


@pytest.fixture(scope="session", autouse=True)
def setup_and_teardown(request):
    """Setup before all tests and cleanup after all tests."""
    if not request.config.getoption("--image"):
        yield
        return

    client = request.getfixturevalue("docker_client")
    cleanup_test_containers(client)

    yield

    logger.info("Test session complete. Cleaning up...")
    cleanup_test_containers(client)


@pytest.fixture
def docker_manager(image, docker_client):
    manager = DockerManager(image=image, client=docker_client)
    yield manager
    manager.cleanup_all()
