"""
Retry utilities for batch delivery.

A failed batch write is retried forever with a growing delay; the pipeline
blocks until the batch is stored.
"""

import logging
import random
import time
from typing import Callable, Optional, Sequence, TypeVar

from pydantic import BaseModel, Field, ConfigDict

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BackoffConfig(BaseModel):
    """Configuration for the delay between write attempts."""
    model_config = ConfigDict(extra='forbid')

    min_delay: float = Field(default=0.1, gt=0.0, le=60.0)
    max_delay: float = Field(default=10.0, gt=0.0, le=3600.0)
    factor: float = Field(default=2.0, ge=1.0, le=10.0)
    jitter: bool = Field(default=False, description="Randomize delays between min and the computed delay")

    def calculate_delay(self, attempt_number: int) -> float:
        """Delay before retry ``attempt_number`` (0-based), capped at ``max_delay``."""
        delay = min(self.min_delay * (self.factor ** attempt_number), self.max_delay)
        if self.jitter:
            delay = self.min_delay + random.random() * (delay - self.min_delay)
        return delay


class Backoff:
    """Stateful delay sequence built from a ``BackoffConfig``."""

    def __init__(self, config: BackoffConfig = None):
        self.config = config or BackoffConfig()
        self.attempt = 0

    def duration(self) -> float:
        """Return the next delay and advance the sequence."""
        delay = self.config.calculate_delay(self.attempt)
        self.attempt += 1
        return delay


def write_with_retry(
    write: Callable[[Sequence[T]], object],
    batch: Sequence[T],
    backoff_config: BackoffConfig = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> int:
    """Deliver ``batch`` with ``write``, retrying until it succeeds.

    Returns:
        Number of write attempts made
    """
    sleep = sleep or time.sleep
    backoff = Backoff(backoff_config)
    attempts = 0
    while True:
        attempts += 1
        try:
            write(batch)
        except Exception as e:
            delay = backoff.duration()
            logger.warning("Write failed: %s (retrying in %.2fs)", e, delay)
            sleep(delay)
            continue
        logger.debug("Wrote batch of %d points in %d attempt(s)", len(batch), attempts)
        return attempts
