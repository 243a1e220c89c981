import logging
import math
import time
from typing import Callable, Optional

from mongotest.errors import WaitTimeout
from mongotest.services.log_inspector import LogInspector, WAITING_FOR_CONNECTIONS

logger = logging.getLogger(__name__)


def wait_for(
    condition: Callable[[], bool],
    interval: float = 2,
    attempts: Optional[int] = None,
    description: str = "condition"
) -> int:
    """
    Poll `condition` until it returns a truthy value

    Args:
        condition: Callable checked on every attempt
        interval: Seconds to sleep between attempts
        attempts: Maximum number of attempts, None to poll forever
        description: Used in log lines and the timeout message

    Returns:
        int: Number of attempts it took
    """
    attempt = 0
    while attempts is None or attempt < attempts:
        attempt += 1
        try:
            if condition():
                logger.debug(f"{description} reached after {attempt} attempt(s)")
                return attempt
        except Exception as e:
            logger.debug(f"Waiting for {description}: {e}")
        if attempts is None or attempt < attempts:
            time.sleep(interval)
    raise WaitTimeout(f"Timeout waiting for {description} after {attempts} attempts")


def countdown(delay: int, step: int):
    """Sleep `delay` seconds in `step` increments, logging the time left"""
    for time_left in range(delay, 0, -step):
        logger.info(f"{time_left} seconds left...")
        time.sleep(step)


def wait_for_mongo(
    log_inspector: LogInspector,
    container: str,
    seen: int = 0,
    interval: float = 2,
    timeout: float = 120
) -> int:
    """
    Wait until mongod in `container` accepts connections again

    A restarted container keeps the log of its previous runs, so readiness
    means more "waiting for connections" lines than the `seen` count taken
    before the (re)start.

    Returns:
        int: The new number of readiness lines
    """
    state = {"count": seen}

    def ready() -> bool:
        state["count"] = log_inspector.count(container, WAITING_FOR_CONNECTIONS)
        return state["count"] > seen

    attempts = max(1, math.ceil(timeout / interval))
    wait_for(ready, interval=interval, attempts=attempts, description=f"{container} to accept connections")
    return state["count"]
