"""Tests for the background generation coordinator."""

import pytest

from placeholder_ai.core.coordinator import GenerationCoordinator
from placeholder_ai.core.fingerprint import fingerprint
from placeholder_ai.core.records import GenerationStatus

from conftest import EXAMPLE_IMAGE_URL, settle


@pytest.mark.asyncio
async def test_request_returns_fingerprint_and_creates_pending_record(coordinator, generator):
    generator.hold()

    image_id = coordinator.request_generation(800, 600, "sunset")

    assert image_id == fingerprint(800, 600, "sunset")
    record = coordinator.get_status(image_id)
    assert record.status is GenerationStatus.PENDING
    assert (record.width, record.height, record.text) == (800, 600, "sunset")

    generator.release.set()
    await coordinator.wait_idle()


@pytest.mark.asyncio
async def test_identical_requests_coalesce_into_one_call(coordinator, generator):
    generator.hold()

    first = coordinator.request_generation(800, 600, "sunset")
    second = coordinator.request_generation(800, 600, "sunset")
    await settle(lambda: generator.calls)
    third = coordinator.request_generation(800, 600, "sunset")

    assert first == second == third
    assert coordinator.stats()["records"] == 1

    generator.release.set()
    await coordinator.wait_idle()
    assert generator.calls == [("sunset", 800, 600)]


@pytest.mark.asyncio
async def test_status_sequence_never_skips_states(cache, clock):
    seen = []

    async def observing_generator(prompt, width, height):
        seen.append(coordinator.get_status(image_id).status)
        clock.advance(3)
        return EXAMPLE_IMAGE_URL

    coordinator = GenerationCoordinator(cache, generator=observing_generator, clock=clock)
    image_id = coordinator.request_generation(800, 600, "sunset")
    seen.append(coordinator.get_status(image_id).status)

    await coordinator.wait_idle()
    record = coordinator.get_status(image_id)
    seen.append(record.status)

    assert seen == [
        GenerationStatus.PENDING,
        GenerationStatus.GENERATING,
        GenerationStatus.COMPLETED,
    ]
    assert record.image_url == EXAMPLE_IMAGE_URL
    assert record.processing_time == pytest.approx(3)


@pytest.mark.asyncio
async def test_completed_result_is_cached_with_long_ttl(coordinator, generator, cache, clock):
    image_id = coordinator.request_generation(800, 600, "sunset")
    await coordinator.wait_idle()

    cached = cache.get(image_id)
    assert cached.status is GenerationStatus.COMPLETED
    assert cached.image_url == EXAMPLE_IMAGE_URL

    clock.advance(24 * 60 * 60 - 1)
    assert cache.has(image_id)
    clock.advance(2)
    assert not cache.has(image_id)


@pytest.mark.asyncio
async def test_cached_completion_is_reused_without_new_work(coordinator, generator, clock):
    image_id = coordinator.request_generation(800, 600, "sunset")
    await coordinator.wait_idle()
    clock.advance(60 * 60 + 1)
    assert coordinator.cleanup() == 1

    assert coordinator.request_generation(800, 600, "sunset") == image_id
    await coordinator.wait_idle()
    assert len(generator.calls) == 1


@pytest.mark.asyncio
async def test_failure_is_recorded_and_expires_after_five_minutes(coordinator, generator, cache, clock):
    generator.error = RuntimeError("AI image generation failed: 503 Service Unavailable")

    image_id = coordinator.request_generation(800, 600, "sunset")
    await coordinator.wait_idle()

    record = coordinator.get_status(image_id)
    assert record.status is GenerationStatus.FAILED
    assert "503" in record.error
    assert record.completed_at is not None
    assert record.image_url is None

    clock.advance(5 * 60 - 1)
    assert cache.has(image_id)
    clock.advance(2)
    assert not cache.has(image_id)
    assert coordinator.get_status(image_id) is None


@pytest.mark.asyncio
async def test_failed_request_is_not_retried_until_failure_expires(coordinator, generator, clock):
    generator.error = RuntimeError("boom")

    coordinator.request_generation(800, 600, "sunset")
    await coordinator.wait_idle()
    coordinator.request_generation(800, 600, "sunset")
    await coordinator.wait_idle()
    assert len(generator.calls) == 1

    clock.advance(5 * 60 + 1)
    generator.error = None
    image_id = coordinator.request_generation(800, 600, "sunset")
    await coordinator.wait_idle()

    assert len(generator.calls) == 2
    assert coordinator.get_status(image_id).status is GenerationStatus.COMPLETED


@pytest.mark.asyncio
async def test_exception_without_message_still_produces_error_text(coordinator, generator):
    generator.error = ConnectionError()

    image_id = coordinator.request_generation(10, 10, "x")
    await coordinator.wait_idle()

    assert coordinator.get_status(image_id).error == "ConnectionError"


@pytest.mark.asyncio
async def test_non_url_result_fails_the_record(coordinator, generator):
    generator.result = "sorry, I cannot draw that"

    image_id = coordinator.request_generation(800, 600, "sunset")
    await coordinator.wait_idle()

    record = coordinator.get_status(image_id)
    assert record.status is GenerationStatus.FAILED
    assert "invalid image URL" in record.error


@pytest.mark.asyncio
async def test_queue_is_drained_in_fifo_order_one_at_a_time(coordinator, generator):
    generator.hold()

    coordinator.request_generation(100, 100, "first")
    coordinator.request_generation(100, 100, "second")
    coordinator.request_generation(100, 100, "third")
    await settle(lambda: generator.calls)
    assert coordinator.stats()["queued"] == 2

    generator.release.set()
    await coordinator.wait_idle()

    assert [call[0] for call in generator.calls] == ["first", "second", "third"]
    assert generator.max_active == 1
    assert coordinator.stats()["worker_running"] is False


@pytest.mark.asyncio
async def test_worker_restarts_after_queue_drains(coordinator, generator):
    coordinator.request_generation(100, 100, "first")
    await coordinator.wait_idle()
    assert coordinator.stats()["worker_running"] is False

    image_id = coordinator.request_generation(100, 100, "second")
    await coordinator.wait_idle()

    assert coordinator.get_status(image_id).status is GenerationStatus.COMPLETED
    assert len(generator.calls) == 2


@pytest.mark.asyncio
async def test_cleanup_discards_stale_records_and_skips_their_queue_slot(coordinator, generator, clock):
    generator.hold()

    coordinator.request_generation(100, 100, "in flight")
    queued_id = coordinator.request_generation(100, 100, "queued")
    await settle(lambda: generator.calls)

    clock.advance(60 * 60 - 1)
    assert coordinator.cleanup() == 0
    clock.advance(2)
    assert coordinator.cleanup() == 2
    assert coordinator.get_status(queued_id) is None

    generator.release.set()
    await coordinator.wait_idle()
    assert [call[0] for call in generator.calls] == ["in flight"]


@pytest.mark.asyncio
async def test_requeued_record_is_skipped_when_slow_generation_completes(coordinator, generator, clock):
    generator.hold()

    image_id = coordinator.request_generation(100, 100, "slow")
    await settle(lambda: generator.calls)
    clock.advance(60 * 60 + 1)
    assert coordinator.cleanup() == 1

    assert coordinator.request_generation(100, 100, "slow") == image_id
    assert coordinator.stats()["queued"] == 1

    generator.release.set()
    await coordinator.wait_idle()

    assert generator.calls == [("slow", 100, 100)]
    assert coordinator.stats()["records"] == 0
    record = coordinator.get_status(image_id)
    assert record.status is GenerationStatus.COMPLETED
    assert record.image_url == EXAMPLE_IMAGE_URL


@pytest.mark.asyncio
async def test_get_status_unknown_id_returns_none(coordinator):
    assert coordinator.get_status("does-not-exist") is None


@pytest.mark.asyncio
async def test_close_cancels_in_flight_worker(coordinator, generator):
    generator.hold()
    coordinator.request_generation(100, 100, "never finishes")
    await settle(lambda: generator.calls)

    await coordinator.close()

    assert coordinator.stats()["worker_running"] is False
    await coordinator.wait_idle()


def test_request_outside_event_loop_is_rejected(cache, generator):
    coordinator = GenerationCoordinator(cache, generator=generator)
    with pytest.raises(RuntimeError):
        coordinator.request_generation(100, 100, "no loop")
