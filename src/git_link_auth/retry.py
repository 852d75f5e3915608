"""Bounded retries for git operations that talk to a remote."""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MIN_SECONDS = 10
DEFAULT_MAX_SECONDS = 20


class RetryHelper:
    """Run an action up to ``max_attempts`` times, sleeping between attempts."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        min_seconds: int = DEFAULT_MIN_SECONDS,
        max_seconds: int = DEFAULT_MAX_SECONDS,
        *,
        retry_on: Tuple[Type[Exception], ...] = (Exception,),
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if min_seconds > max_seconds:
            raise ValueError("min_seconds must not exceed max_seconds")

        self.max_attempts = max_attempts
        self.min_seconds = int(min_seconds)
        self.max_seconds = int(max_seconds)
        self._retry_on = retry_on
        self._sleep = sleep

    def execute(self, action: Callable[[], T]) -> T:
        """Return the result of ``action``, re-raising the last attempt's failure."""

        attempt = 1
        while attempt < self.max_attempts:
            try:
                return action()
            except self._retry_on as exc:
                logger.warning("%s", exc)

            seconds = self._random_seconds()
            logger.info("Waiting %s seconds before trying again", seconds)
            self._sleep(seconds)
            attempt += 1

        return action()

    def _random_seconds(self) -> int:
        return random.randint(self.min_seconds, self.max_seconds)
