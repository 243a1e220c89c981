import argparse
import logging
import sys
from typing import List, Optional

import docker

from mongotest.config import settings
from mongotest.errors import HarnessError
from mongotest.scenarios.replication import ReplicationScenario
from mongotest.scenarios.restart import RestartScenario
from mongotest.scenarios.smoke import SmokeScenario
from mongotest.services.docker_manager import DockerManager

logger = logging.getLogger(__name__)

SCENARIOS = ["smoke", "restart", "replication"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=settings.app_name,
        description="Integration tests for a containerized MongoDB image"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {settings.app_version}")
    parser.add_argument("--debug", action="store_true", help="Verbose logging, keep containers around")

    subparsers = parser.add_subparsers(dest="scenario", required=True)
    for name in SCENARIOS + ["all"]:
        subparser = subparsers.add_parser(name, help=f"Run the {name} scenario")
        subparser.add_argument("image", help="Image under test")
        if name in ("smoke", "all"):
            subparser.add_argument("--expect-version", default=None, help="Version string the image must report")

    return parser


def run(argv: Optional[List[str]] = None) -> int:
    """
    Run the requested scenario(s)

    Returns:
        int: 0 when every scenario passed, 1 otherwise
    """
    args = build_parser().parse_args(argv)

    if args.debug:
        settings.enable_debug = True
    settings.image = args.image

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if settings.enable_debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    names = SCENARIOS if args.scenario == "all" else [args.scenario]

    try:
        docker_manager = DockerManager(image=args.image)
    except Exception as e:
        logger.error(f"Docker is not available: {e}")
        return 1

    try:
        for name in names:
            if name == "smoke":
                scenario = SmokeScenario(docker_manager, expected_version=args.expect_version)
            elif name == "restart":
                scenario = RestartScenario(docker_manager)
            else:
                scenario = ReplicationScenario(docker_manager)

            result = scenario.run()
            if not result.success:
                return result.exit_code
    except (HarnessError, docker.errors.DockerException) as e:
        logger.error(f"FAIL: {e}")
        return 1
    finally:
        docker_manager.close()

    return 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
