"""
Property-based tests for WatchService.

**Feature: file-watcher-service, Property: Path Validation**
**Feature: file-watcher-service, Property: Generation Triggering**
**Feature: file-watcher-service, Property: Serialized Generation**
**Feature: file-watcher-service, Property: Error Recovery**
**Feature: file-watcher-service, Property: Graceful Shutdown**
"""

import asyncio
import tempfile
import time
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from stubwatch.core.classifier import ChangeClassifier
from stubwatch.core.config import WatchSettings
from stubwatch.core.errors import GenerationError
from stubwatch.core.file_events import ChangeBatch, FileEvent, FileEventType
from stubwatch.core.path_filter import PathFilter
from stubwatch.infrastructure.fakes import (
    CountingReloader,
    FakeFileWatcher,
    RecordingGenerationRunner,
)
from stubwatch.services.generation_pass import GenerationPass
from stubwatch.services.watch_service import (
    PathValidationError,
    WatchService,
    WatchServiceError,
    WatchStats,
)
from tests.strategies import build_registries, ignored_path, run_async, source_path


class SlowGenerationRunner(RecordingGenerationRunner):
    """Runner that blocks its worker thread for a while."""

    def __init__(self, delay: float):
        super().__init__()
        self.delay = delay

    def run(self, plan) -> None:
        time.sleep(self.delay)
        super().run(plan)


def make_service(
    watch_path: Path,
    reloader: CountingReloader | None = None,
    runner: RecordingGenerationRunner | None = None,
    debounce_ms: int = 50,
    exit_on_failure: bool = False,
) -> tuple[WatchService, FakeFileWatcher, CountingReloader, RecordingGenerationRunner]:
    """Build a WatchService over fakes and static registries."""
    reloader = reloader or CountingReloader()
    runner = runner or RecordingGenerationRunner()
    entity_registry, generator_registry = build_registries(["User", "Order"])
    generation_pass = GenerationPass(
        path_filter=PathFilter(),
        reloader=reloader,
        classifier=ChangeClassifier(entity_registry, generator_registry),
        runner=runner,
    )
    file_watcher = FakeFileWatcher()
    watch_settings = WatchSettings(
        debounce_ms=debounce_ms,
        exit_on_failure=exit_on_failure,
    )
    service = WatchService(generation_pass, file_watcher, watch_path, watch_settings)
    return service, file_watcher, reloader, runner


# ============================================================================
# Path Validation
# ============================================================================


def test_path_validation_nonexistent_path():
    """start() on a missing path raises PathValidationError without starting."""
    service, _, _, _ = make_service(Path("/nonexistent/path/that/does/not/exist"))

    with pytest.raises(PathValidationError, match="does not exist"):
        run_async(service.start())
    assert not service.is_running()


def test_path_validation_file_not_directory(tmp_path: Path):
    file_path = tmp_path / "schema.rb"
    file_path.write_text("ActiveRecord::Schema.define {}\n")
    service, _, _, _ = make_service(file_path)

    with pytest.raises(PathValidationError, match="not a directory"):
        run_async(service.start())
    assert not service.is_running()


def test_start_twice_raises(tmp_path: Path):
    service, watcher, _, _ = make_service(tmp_path)

    async def scenario():
        await service.start()
        try:
            assert service.is_running()
            assert watcher.is_running()
            with pytest.raises(WatchServiceError, match="already running"):
                await service.start()
        finally:
            await service.stop()

    run_async(scenario())
    assert not service.is_running()
    assert not watcher.is_running()


# ============================================================================
# Generation Triggering
# ============================================================================


@given(paths=st.lists(source_path, min_size=1, max_size=8, unique=True))
@settings(max_examples=20, deadline=None)
def test_relevant_burst_triggers_one_generation(paths: list[str]):
    """A burst of relevant events yields one reload and one generation."""
    with tempfile.TemporaryDirectory() as tmpdir:
        service, watcher, reloader, runner = make_service(Path(tmpdir), debounce_ms=20)

        async def scenario():
            await service.start()
            try:
                for path in paths:
                    watcher.trigger_event(
                        FileEvent(event_type=FileEventType.MODIFIED, file_path=path)
                    )
                await asyncio.sleep(0.3)
            finally:
                await service.stop()

        run_async(scenario())

        assert reloader.calls == 1
        assert len(runner.plans) == 1
        assert runner.plans[0].requested_paths == paths
        stats = service.get_stats()
        assert stats.events_received == len(paths)
        assert stats.generations_triggered == 1
        assert stats.last_generation_at is not None


@given(paths=st.lists(ignored_path, min_size=1, max_size=8))
@settings(max_examples=20, deadline=None)
def test_irrelevant_batch_is_ignored(paths: list[str]):
    """Batches of tooling or non-source paths never reload or generate."""
    with tempfile.TemporaryDirectory() as tmpdir:
        service, _, reloader, runner = make_service(Path(tmpdir))

        async def scenario():
            await service.start()
            try:
                await service.process_batch(ChangeBatch(modified=list(paths)))
            finally:
                await service.stop()

        run_async(scenario())

        assert reloader.calls == 0
        assert runner.plans == []
        assert service.get_stats().batches_ignored == 1
        assert service.get_stats().generations_triggered == 0


def test_schema_change_runs_entity_scoped_plan(tmp_path: Path):
    service, watcher, _, runner = make_service(tmp_path, debounce_ms=20)

    async def scenario():
        await service.start()
        try:
            watcher.trigger_event(
                FileEvent(event_type=FileEventType.MODIFIED, file_path="db/schema.rb")
            )
            await asyncio.sleep(0.3)
        finally:
            await service.stop()

    run_async(scenario())

    assert len(runner.plans) == 1
    assert runner.plans[0].requested_entities == ["User", "Order"]
    assert runner.plans[0].requested_paths == []


def test_empty_batch_does_nothing(tmp_path: Path):
    service, _, reloader, runner = make_service(tmp_path)

    async def scenario():
        await service.start()
        try:
            await service._on_batch_ready(ChangeBatch())
        finally:
            await service.stop()

    run_async(scenario())

    assert reloader.calls == 0
    assert service.get_stats().batches_received == 0


# ============================================================================
# Serialized Generation
# ============================================================================


def test_batches_during_generation_are_coalesced(tmp_path: Path):
    """
    Batches arriving while a generation runs are merged and processed in a
    single follow-up run, never concurrently.
    """
    runner = SlowGenerationRunner(delay=0.3)
    service, _, reloader, _ = make_service(tmp_path, runner=runner)

    async def scenario():
        await service.start()
        try:
            first = asyncio.create_task(
                service._on_batch_ready(ChangeBatch(modified=["app/models/user.rb"]))
            )
            await asyncio.sleep(0.1)
            await service._on_batch_ready(ChangeBatch(modified=["app/models/order.rb"]))
            await service._on_batch_ready(
                ChangeBatch(modified=["app/models/order.rb"], added=["lib/tax.rb"])
            )
            await first
        finally:
            await service.stop()

    run_async(scenario())

    assert reloader.calls == 2
    assert [p.requested_paths for p in runner.plans] == [
        ["app/models/user.rb"],
        ["app/models/order.rb", "lib/tax.rb"],
    ]
    assert service.get_stats().generations_triggered == 2


def test_stop_flushes_pending_events(tmp_path: Path):
    service, watcher, _, runner = make_service(tmp_path, debounce_ms=10_000)

    async def scenario():
        await service.start()
        watcher.trigger_event(
            FileEvent(event_type=FileEventType.CREATED, file_path="app/models/user.rb")
        )
        await asyncio.sleep(0.05)
        assert service.get_pending_count() == 1
        await service.stop()

    run_async(scenario())

    assert [p.requested_paths for p in runner.plans] == [["app/models/user.rb"]]
    assert service.get_pending_count() == 0


# ============================================================================
# Error Recovery
# ============================================================================


@given(num_failures=st.integers(min_value=1, max_value=4))
@settings(max_examples=10, deadline=None)
def test_failures_are_counted_and_watching_continues(num_failures: int):
    """With the default policy, failures are logged and the service keeps running."""
    with tempfile.TemporaryDirectory() as tmpdir:
        reloader = CountingReloader(error=RuntimeError("NameError: uninitialized constant"))
        service, _, _, runner = make_service(Path(tmpdir), reloader=reloader)

        async def scenario():
            await service.start()
            try:
                for _ in range(num_failures):
                    await service.process_batch(ChangeBatch(modified=["app/models/user.rb"]))
                assert service.is_running()

                reloader.error = None
                await service.process_batch(ChangeBatch(modified=["app/models/user.rb"]))
            finally:
                await service.stop()

        run_async(scenario())

        stats = service.get_stats()
        assert stats.errors == num_failures
        assert stats.generations_triggered == 1
        assert len(runner.plans) == 1


def test_exit_on_failure_reraises_from_run_forever(tmp_path: Path):
    error = GenerationError("Generation command exited with status 1", returncode=1)
    runner = RecordingGenerationRunner(error=error)
    service, watcher, _, _ = make_service(
        tmp_path, runner=runner, debounce_ms=20, exit_on_failure=True
    )

    async def scenario():
        task = asyncio.create_task(service.run_forever())
        await asyncio.sleep(0.05)
        watcher.trigger_event(
            FileEvent(event_type=FileEventType.MODIFIED, file_path="app/models/user.rb")
        )
        await asyncio.wait_for(task, timeout=5)

    with pytest.raises(GenerationError) as exc_info:
        run_async(scenario())

    assert exc_info.value is error
    assert exc_info.value.returncode == 1
    assert not service.is_running()
    assert service.get_stats().errors == 1


# ============================================================================
# Graceful Shutdown
# ============================================================================


def test_request_shutdown_ends_run_forever(tmp_path: Path):
    service, watcher, _, _ = make_service(tmp_path)

    async def scenario():
        task = asyncio.create_task(service.run_forever())
        await asyncio.sleep(0.05)
        assert service.is_running()
        service.request_shutdown()
        await asyncio.wait_for(task, timeout=5)

    run_async(scenario())

    assert not service.is_running()
    assert not watcher.is_running()


def test_stop_when_not_running_is_a_no_op(tmp_path: Path):
    service, _, _, _ = make_service(tmp_path)

    run_async(service.stop())

    assert not service.is_running()


def test_events_after_stop_are_dropped(tmp_path: Path):
    service, _, reloader, _ = make_service(tmp_path, debounce_ms=10)

    async def scenario():
        await service.start()
        await service.stop()
        service._on_file_event_sync(
            FileEvent(event_type=FileEventType.MODIFIED, file_path="app/models/user.rb")
        )
        await asyncio.sleep(0.05)

    run_async(scenario())

    assert reloader.calls == 0
    assert service.get_stats().events_received == 0


def test_watch_stats_to_dict():
    stats = WatchStats(events_received=3, batches_received=2, errors=1)

    data = stats.to_dict()

    assert data["events_received"] == 3
    assert data["batches_received"] == 2
    assert data["errors"] == 1
    assert data["last_generation_at"] is None
    assert "started_at" in data
