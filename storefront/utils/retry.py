# storefront/utils/retry.py
import logging
from dataclasses import dataclass
from typing import Any, Callable, Tuple, Type

import redis
import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

from storefront.domain.errors import RemoteOperationError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.RequestException),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry around a single write.

    backoff == 1 waits a fixed `delay` between attempts, anything larger
    grows the wait exponentially starting from `delay`.
    """

    max_attempts: int = 3
    delay: float = 1.0
    backoff: float = 1.0
    retry_on: Tuple[Type[BaseException], ...] = (RemoteOperationError,)

    def _wait(self):
        if self.backoff == 1:
            return wait_fixed(self.delay)
        return wait_exponential(multiplier=self.delay, exp_base=self.backoff)

    def call(self, fn: Callable[..., Any], *args, **kwargs) -> Any:
        retrying = Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait(),
            retry=retry_if_exception_type(self.retry_on),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        return retrying(fn, *args, **kwargs)
