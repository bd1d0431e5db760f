from __future__ import annotations
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from loguru import logger as log

T = TypeVar("T")

@dataclass(frozen=True)
class RetryPolicy:
    attempts: int = 3
    base_delay_s: float = 0.05
    max_delay_s: float = 0.25
    retry_on: tuple[type[BaseException], ...] = (TimeoutError,)

def with_retries(fn: Callable[[], T], policy: RetryPolicy) -> T:
    if policy.attempts < 1:
        raise ValueError("attempts must be >= 1")
    last_exc: BaseException | None = None
    delay = policy.base_delay_s
    for attempt in range(1, policy.attempts + 1):
        try:
            return fn()
        except policy.retry_on as e:
            last_exc = e
            log.debug("attempt {}/{} failed: {}", attempt, policy.attempts, e)
            if attempt < policy.attempts:
                time.sleep(delay)
                delay = min(policy.max_delay_s, delay * 2)
    assert last_exc is not None
    raise last_exc
