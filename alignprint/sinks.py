"""Delivery of subfingerprints to subscribers.

The generator never calls subscribers directly. It hands every batch to a
``FingerprintSink`` through a ``BatchEmitter``; the sink decides what to do
with it:

- ``NullSink``: nobody is listening, batches are dropped
- ``CallbackSink``: synchronous callbacks on the producer thread
- ``CollectingSink``: keeps the whole fingerprint in memory
- ``QueueSink``: bounded queue for a consumer running on another thread

Delivery is synchronous: a slow sink stalls generation, and a full
``QueueSink`` blocks the producer until the consumer catches up.
"""

from __future__ import annotations

import logging
import queue
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .audio import Track
from .constants import BATCH_SIZE
from .hashing import SubFingerprint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubFingerprintBatch:
    """One delivery of consecutive subfingerprints.

    Attributes:
        track: Track being fingerprinted
        sub_fingerprints: Subfingerprints in increasing index order (may be empty)
        processed: Number of subfingerprints generated so far
        total: Expected number of chroma frames for the whole track
    """

    track: Track
    sub_fingerprints: tuple[SubFingerprint, ...]
    processed: int
    total: int

    def __len__(self) -> int:
        return len(self.sub_fingerprints)


@runtime_checkable
class FingerprintSink(Protocol):
    """Receiver of subfingerprint batches."""

    def on_batch(self, batch: SubFingerprintBatch) -> None: ...

    def on_completed(self) -> None: ...


class NullSink:
    """Sink for runs without subscribers: everything is dropped."""

    def on_batch(self, batch: SubFingerprintBatch) -> None:
        logger.debug("[NullSink] Dropping %d subfingerprints", len(batch))

    def on_completed(self) -> None:
        pass


class CallbackSink:
    """Fan batches out to registered callbacks.

    Callbacks run synchronously, in registration order. An exception raised
    by a callback propagates to the generator and aborts the run.
    """

    def __init__(
        self,
        on_batch: Callable[[SubFingerprintBatch], None] | None = None,
        on_completed: Callable[[], None] | None = None,
    ) -> None:
        self.batch_subscribers: list[Callable[[SubFingerprintBatch], None]] = []
        self.completed_subscribers: list[Callable[[], None]] = []
        if on_batch is not None:
            self.subscribe_batches(on_batch)
        if on_completed is not None:
            self.subscribe_completed(on_completed)

    def subscribe_batches(self, callback: Callable[[SubFingerprintBatch], None]) -> None:
        self.batch_subscribers.append(callback)

    def subscribe_completed(self, callback: Callable[[], None]) -> None:
        self.completed_subscribers.append(callback)

    def unsubscribe_batches(self, callback: Callable[[SubFingerprintBatch], None]) -> bool:
        """Remove a batch callback.

        Returns:
            True if unsubscribed, False if not found
        """
        try:
            self.batch_subscribers.remove(callback)
            return True
        except ValueError:
            return False

    def unsubscribe_completed(self, callback: Callable[[], None]) -> bool:
        try:
            self.completed_subscribers.remove(callback)
            return True
        except ValueError:
            return False

    def on_batch(self, batch: SubFingerprintBatch) -> None:
        # Copy list to allow safe modification during iteration
        for callback in list(self.batch_subscribers):
            callback(batch)

    def on_completed(self) -> None:
        for callback in list(self.completed_subscribers):
            callback()


class CollectingSink:
    """Keep every delivered batch, e.g. to obtain the full fingerprint."""

    def __init__(self) -> None:
        self.batches: list[SubFingerprintBatch] = []
        self.completed = False

    @property
    def sub_fingerprints(self) -> list[SubFingerprint]:
        return [sf for batch in self.batches for sf in batch.sub_fingerprints]

    @property
    def hashes(self) -> list[int]:
        return [sf.hash for sf in self.sub_fingerprints]

    def on_batch(self, batch: SubFingerprintBatch) -> None:
        self.batches.append(batch)

    def on_completed(self) -> None:
        self.completed = True


class QueueSink:
    """Hand batches to a consumer thread through a bounded queue.

    Usage:
        sink = QueueSink(maxsize=8)
        threading.Thread(target=generator.generate, args=(track,)).start()
        for batch in sink.iter_batches():
            store(batch)
    """

    _DONE = object()

    def __init__(self, maxsize: int = 16) -> None:
        self.queue: queue.Queue = queue.Queue(maxsize=maxsize)

    def on_batch(self, batch: SubFingerprintBatch) -> None:
        self.queue.put(batch)

    def on_completed(self) -> None:
        self.queue.put(self._DONE)

    def iter_batches(self, timeout: float | None = None) -> Iterator[SubFingerprintBatch]:
        """Yield batches until the completion marker arrives.

        Raises:
            queue.Empty: If ``timeout`` expires while waiting for the producer
        """
        while True:
            item = self.queue.get(timeout=timeout)
            if item is self._DONE:
                return
            yield item


class BatchEmitter:
    """Group subfingerprints into fixed-size batches for a sink.

    A batch goes out after every ``batch_size`` subfingerprints. ``finish()``
    sends whatever is left (possibly nothing) and then signals completion,
    exactly once.
    """

    def __init__(
        self,
        track: Track,
        sink: FingerprintSink,
        total: int,
        batch_size: int = BATCH_SIZE,
    ) -> None:
        self.track = track
        self.sink = sink
        self.total = total
        self.batch_size = batch_size
        self.processed = 0
        self.batches_sent = 0
        self._pending: list[SubFingerprint] = []
        self._finished = False

    def add(self, sub_fingerprint: SubFingerprint) -> None:
        if self._finished:
            raise RuntimeError("Cannot add subfingerprints after finish()")
        self._pending.append(sub_fingerprint)
        self.processed += 1
        if self.processed % self.batch_size == 0:
            self._deliver()

    def finish(self) -> None:
        """Deliver the final batch and signal completion."""
        if self._finished:
            raise RuntimeError("Batch emitter already finished")
        self._finished = True
        self._deliver()
        self.sink.on_completed()

    def _deliver(self) -> None:
        batch = SubFingerprintBatch(
            track=self.track,
            sub_fingerprints=tuple(self._pending),
            processed=self.processed,
            total=self.total,
        )
        self._pending.clear()
        self.batches_sent += 1
        logger.debug(
            "[BatchEmitter] %s: batch %d with %d subfingerprints (%d/%d)",
            self.track.label, self.batches_sent, len(batch), self.processed, self.total,
        )
        self.sink.on_batch(batch)
