"""
Bounded retry policy applied to every outbound request.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from .errors import TransientFetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-delay retry for :class:`TransientFetchError` only.

    Any other exception escapes on the first attempt. When attempts are
    exhausted the last ``TransientFetchError`` is re-raised so callers can
    decide how to degrade.
    """

    attempts: int = 3
    delay: float = 2.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def call(self, func: Callable[..., T], *args, **kwargs) -> T:
        retrying = Retrying(
            stop=stop_after_attempt(max(self.attempts, 1)),
            wait=wait_fixed(self.delay),
            retry=retry_if_exception_type(TransientFetchError),
            sleep=self.sleep,
            before_sleep=_log_retry,
            reraise=True,
        )
        return retrying(func, *args, **kwargs)


def _log_retry(retry_state) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Transient failure (attempt %d): %s url=%s status=%s",
        retry_state.attempt_number,
        exc,
        getattr(exc, "url", None),
        getattr(exc, "status", None),
    )
