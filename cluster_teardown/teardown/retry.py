"""Retry and polling policies shared by the deletion procedures."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], None]


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-delay retry bound for a primary delete call.

    Delays are fixed rather than exponential: the usual failure is an
    eventual-consistency window of bounded length, not load.
    """

    max_attempts: int = 3
    delay_seconds: float = 15.0


@dataclass(frozen=True)
class WaitPolicy:
    """Bounded status polling after an asynchronous delete."""

    interval_seconds: float = 10.0
    max_polls: int = 30


def poll_until(
    check: Callable[[], bool],
    policy: WaitPolicy,
    description: str,
    sleep: Optional[Sleeper] = None,
) -> bool:
    """Poll a condition at a fixed interval until it holds or polls run out.

    AWS errors raised by the check count as "not yet".

    Args:
        check: Callable returning True once the awaited state is reached
        policy: Interval and poll bound
        description: What is being waited for (used in log messages)
        sleep: Sleep function (default: time.sleep)

    Returns:
        True if the condition held within the bound, False on timeout
    """
    sleep = sleep or time.sleep

    for poll in range(1, policy.max_polls + 1):
        try:
            if check():
                return True
        except (ClientError, BotoCoreError) as e:
            logger.debug(f"Status check failed while waiting for {description}: {e}")

        if poll < policy.max_polls:
            logger.info(
                f"Still waiting for {description}, next check in {policy.interval_seconds:g}s "
                f"({poll}/{policy.max_polls})"
            )
            sleep(policy.interval_seconds)

    logger.warning(f"Gave up waiting for {description} after {policy.max_polls} checks")
    return False
