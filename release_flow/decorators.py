"""
Decorators for release-flow.

Provides the bounded retry used around pushes to shared branches.
"""

import logging
import random
import time
from functools import wraps

from git.exc import GitCommandError

from release_flow.constants import RETRY_DELAY_MAX, RETRY_DELAY_MIN, RETRY_MAX_ATTEMPTS

logger = logging.getLogger(__name__)


def retry_with_backoff(before_retry=None, max_attempts: int = RETRY_MAX_ATTEMPTS,
                       min_delay: float = RETRY_DELAY_MIN, max_delay: float = RETRY_DELAY_MAX,
                       retry_on=(GitCommandError,)):
    """
    Decorator retrying a method a bounded number of times with a random delay.

    The randomized delay desynchronizes concurrent runs racing for the same
    branch. The last error is re-raised once ``max_attempts`` is reached.

    Args:
        before_retry: Optional callable taking (self, *args, **kwargs), run
            before every attempt but the first (e.g. fetch and rebase onto
            the remote branch)
        max_attempts: Total number of attempts (default: 3)
        min_delay: Lower bound of the delay in seconds (default: 1.0)
        max_delay: Upper bound of the delay in seconds (default: 3.0)
        retry_on: Exception types that trigger a retry

    Usage:
        def _refresh(self, branch, tag):
            self.fetch(branch)
            self.rebase(f"origin/{branch}")

        @retry_with_backoff(_refresh)
        def push_version(self, branch, tag):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            for attempt in range(1, max_attempts + 1):
                try:
                    if attempt > 1:
                        logger.info("Retrying %s (attempt %d/%d)", func.__name__, attempt, max_attempts)
                        if before_retry is not None:
                            before_retry(self, *args, **kwargs)
                    result = func(self, *args, **kwargs)
                    if attempt > 1:
                        logger.info("%s succeeded on attempt %d", func.__name__, attempt)
                    return result
                except retry_on as err:
                    if attempt == max_attempts:
                        logger.error("%s failed after %d attempts: %s", func.__name__, max_attempts, err)
                        raise
                    delay = random.uniform(min_delay, max_delay)
                    logger.warning(
                        "%s failed (attempt %d/%d), possibly a concurrent update: %s. Waiting %.1fs",
                        func.__name__, attempt, max_attempts, err, delay)
                    time.sleep(delay)
            return None

        return wrapper
    return decorator
