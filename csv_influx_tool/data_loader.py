"""Batch accumulation and flushing of converted points."""

from __future__ import annotations
import logging
from typing import Callable, List, Sequence

from .converter import DataPoint

logger = logging.getLogger(__name__)


class BatchWriter:
    """Buffer points and hand full batches to ``write_batch``.

    ``write_batch`` must only return once the batch is stored; the writer
    starts a new, empty batch after every flush.
    """

    def __init__(self, write_batch: Callable[[Sequence[DataPoint]], object], batch_size: int):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.write_batch = write_batch
        self.batch_size = batch_size
        self._batch: List[DataPoint] = []
        self.total = 0
        self.flushes = 0

    def append(self, point: DataPoint) -> None:
        self._batch.append(point)
        self.total += 1
        if len(self._batch) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        """Send the current batch, if any."""
        if not self._batch:
            return
        batch = self._batch
        self.write_batch(batch)
        self._batch = []
        self.flushes += 1
        logger.info("Flushed batch of %d points (%d total)", len(batch), self.total)
