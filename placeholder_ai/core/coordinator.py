"""Background generation coordinator.

Architectural role:
    Sits between the HTTP placeholder endpoints and the image service. Endpoints
    enqueue work and return immediately; a single worker task drains the queue and
    calls the image generator one record at a time.

Control-flow model:
    1. `request_generation` fingerprints the request and coalesces it onto an
       existing cached/queued record when possible.
    2. Otherwise a `pending` record is stored in the live map and appended to the
       FIFO queue, and the worker task is started if it is not running.
    3. The worker marks each record `generating`, awaits the generator, and moves
       the record to `completed` or `failed`. Records discarded by `cleanup`, or
       whose id already has a completed cached result, are dropped unprocessed.
    4. Terminal records are copied into the `ResultCache` (long TTL on success,
       short TTL on failure). The live copy stays until `cleanup` drops it or its
       cache entry expires.

Concurrency:
    All state lives on one asyncio event loop. Handlers and the worker only yield
    at `await` points, and no `await` sits between a check and the mutation it
    guards, so concurrent requests for one fingerprint coalesce without locks.
    Only the generator call itself may run off-loop (see `image.service`).

Error handling strategy:
    Any `Exception` from the generator, and any non-URL result, fails the record
    with the exception message. Nothing is retried; a client re-requests after the
    failure TTL elapses.
"""

import asyncio
import logging
import time
from collections import deque
from dataclasses import replace
from typing import Awaitable, Callable

from placeholder_ai.core.fingerprint import fingerprint
from placeholder_ai.core.records import GenerationRecord, GenerationStatus
from placeholder_ai.core.result_cache import ResultCache
from placeholder_ai.core.scheduling import Clock
from placeholder_ai.image.service import generate_image_async, is_absolute_url


logger = logging.getLogger(__name__)

ImageGenerator = Callable[[str, int, int], Awaitable[str]]

DEFAULT_SUCCESS_TTL = 24 * 60 * 60
DEFAULT_FAILURE_TTL = 5 * 60
DEFAULT_MAX_RECORD_AGE = 60 * 60


class GenerationCoordinator:
    """Owns the work queue, the live record map and the single worker task."""

    def __init__(
        self,
        cache: ResultCache,
        generator: ImageGenerator = generate_image_async,
        clock: Clock = time.time,
        success_ttl: float = DEFAULT_SUCCESS_TTL,
        failure_ttl: float = DEFAULT_FAILURE_TTL,
        max_record_age: float = DEFAULT_MAX_RECORD_AGE,
    ):
        self._cache = cache
        self._generator = generator
        self._clock = clock
        self._success_ttl = success_ttl
        self._failure_ttl = failure_ttl
        self._max_record_age = max_record_age

        self._records: dict[str, GenerationRecord] = {}
        self._queue: deque[GenerationRecord] = deque()
        self._worker: asyncio.Task | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    # =========================================================
    # Public API
    # =========================================================

    def request_generation(self, width: int, height: int, text: str) -> str:
        """Enqueue a generation for (width, height, text) and return its id.

        Repeat calls are side-effect free while the result is cached as completed
        or a record for the id is still tracked. Must be called on the running
        event loop; never waits for the generation itself.
        """
        image_id = fingerprint(width, height, text)

        cached = self._cache.get(image_id)
        if cached is not None and cached.status is GenerationStatus.COMPLETED:
            return image_id

        if self._live_record(image_id) is not None:
            return image_id

        loop = asyncio.get_running_loop()
        record = GenerationRecord(
            id=image_id,
            width=width,
            height=height,
            text=text,
            created_at=self._clock(),
        )
        self._records[image_id] = record
        self._queue.append(record)
        self._idle.clear()
        logger.info("Queued generation %s (%dx%d)", image_id, width, height)

        self._ensure_worker(loop)
        return image_id

    def get_status(self, image_id: str) -> GenerationRecord | None:
        """Return the live record for `image_id`, else the cached one, else None."""
        record = self._live_record(image_id)
        if record is not None:
            return record
        return self._cache.get(image_id)

    async def wait_idle(self) -> None:
        """Wait until the queue is drained and no generation is in flight."""
        await self._idle.wait()

    def cleanup(self) -> int:
        """Drop live records older than the max age, whatever their status."""
        now = self._clock()
        stale = [
            image_id
            for image_id, record in self._records.items()
            if now - record.created_at > self._max_record_age
        ]
        for image_id in stale:
            del self._records[image_id]

        if stale:
            logger.debug("Discarded %d stale generation records", len(stale))
        return len(stale)

    def stats(self) -> dict:
        return {
            "records": len(self._records),
            "queued": len(self._queue),
            "worker_running": self._worker is not None and not self._worker.done(),
        }

    async def close(self) -> None:
        """Cancel the worker task, abandoning any in-flight generation."""
        worker, self._worker = self._worker, None
        if worker is None or worker.done():
            return
        worker.cancel()
        try:
            await worker
        except asyncio.CancelledError:
            pass

    # =========================================================
    # Internals
    # =========================================================

    def _live_record(self, image_id: str) -> GenerationRecord | None:
        # A terminal record is only visible while its cache entry is alive.
        record = self._records.get(image_id)
        if record is None:
            return None
        if record.is_terminal and not self._cache.has(image_id):
            del self._records[image_id]
            return None
        return record

    def _ensure_worker(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._worker is not None and not self._worker.done():
            return
        self._worker = loop.create_task(self._drain_queue(), name="generation-worker")

    async def _drain_queue(self) -> None:
        try:
            while self._queue:
                record = self._queue.popleft()
                # Skip records discarded by cleanup or superseded by a newer one.
                if self._records.get(record.id) is not record:
                    continue
                # An older generation for the same id finished while this one waited.
                cached = self._cache.get(record.id)
                if cached is not None and cached.status is GenerationStatus.COMPLETED:
                    del self._records[record.id]
                    logger.debug("Skipping %s, completed result already cached", record.id)
                    continue
                await self._generate(record)
        finally:
            self._idle.set()

    async def _generate(self, record: GenerationRecord) -> None:
        record.mark_generating()
        logger.info(
            "Generating image %s for %r (%dx%d)",
            record.id, record.text, record.width, record.height,
        )

        try:
            image_url = await self._generator(record.text, record.width, record.height)
            if not is_absolute_url(image_url):
                raise ValueError(f"Generator returned an invalid image URL: {image_url!r}")
        except Exception as e:
            record.mark_failed(str(e) or type(e).__name__, self._clock())
            self._cache.set(record.id, replace(record), self._failure_ttl)
            logger.warning("Image generation failed for %s: %s", record.id, record.error)
            return

        record.mark_completed(image_url, self._clock())
        self._cache.set(record.id, replace(record), self._success_ttl)
        logger.info("Image generation completed for %s", record.id)
