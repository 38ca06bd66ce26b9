"""Bounded fixed-delay retry for classified-transient failures."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from .errors import StoreError, TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry an operation up to `max_retries` extra times with a fixed delay.

    Only exceptions accepted by `is_transient` are retried; everything else
    propagates immediately. After the budget is spent the last exception
    propagates.
    """

    max_retries: int
    delay_seconds: float
    is_transient: Callable[[BaseException], bool]
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def with_sleep(self, sleep: Callable[[float], None]) -> RetryPolicy:
        return RetryPolicy(self.max_retries, self.delay_seconds, self.is_transient, sleep)

    def call(self, operation: Callable[[], T], *, describe: str = "operation") -> T:
        attempt = 0
        while True:
            try:
                return operation()
            except Exception as e:
                if attempt >= self.max_retries or not self.is_transient(e):
                    raise
                attempt += 1
                logger.error(
                    "%s failed: %s, attempt %d of %d, will retry...",
                    describe,
                    e,
                    attempt,
                    self.max_retries,
                )
                self.sleep(self.delay_seconds)


def is_connection_reset(error: BaseException) -> bool:
    return isinstance(error, (ConnectionResetError, TransientStoreError))


def is_upload_failure(error: BaseException) -> bool:
    return isinstance(error, (StoreError, OSError))


DOWNLOAD_RETRY = RetryPolicy(max_retries=10, delay_seconds=1.0, is_transient=is_connection_reset)
UPLOAD_RETRY = RetryPolicy(max_retries=10, delay_seconds=2.0, is_transient=is_upload_failure)
