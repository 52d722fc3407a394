"""
Watch Service for automatic interface-file regeneration.

Coordinates file system watching with debounced generation passes.
Provides lifecycle management, statistics tracking, and error recovery.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path

from stubwatch.core.config import WatchSettings
from stubwatch.core.debouncer import Debouncer
from stubwatch.core.errors import StubwatchError
from stubwatch.core.file_events import ChangeBatch, FileEvent
from stubwatch.core.interfaces import FileWatcherInterface
from stubwatch.services.generation_pass import GenerationPass

logger = logging.getLogger(__name__)


@dataclass
class WatchStats:
    """
    Statistics for the watch service.

    Tracks events and batches received, generations triggered, timing
    information, and error counts for monitoring and debugging.
    """

    started_at: datetime = field(default_factory=datetime.now)
    events_received: int = 0
    batches_received: int = 0
    batches_ignored: int = 0
    generations_triggered: int = 0
    last_generation_at: datetime | None = None
    last_generation_duration_ms: float = 0.0
    errors: int = 0

    def to_dict(self) -> dict:
        """Serialize stats to dictionary for JSON reporting."""
        return {
            "started_at": self.started_at.isoformat(),
            "events_received": self.events_received,
            "batches_received": self.batches_received,
            "batches_ignored": self.batches_ignored,
            "generations_triggered": self.generations_triggered,
            "last_generation_at": (
                self.last_generation_at.isoformat() if self.last_generation_at else None
            ),
            "last_generation_duration_ms": self.last_generation_duration_ms,
            "errors": self.errors,
        }


class WatchServiceError(StubwatchError):
    """Base exception for watch service errors."""

    pass


class PathValidationError(WatchServiceError):
    """Raised when path validation fails."""

    pass


class WatchService:
    """
    File watching service that regenerates interface files on relevant changes.

    Coordinates between FileWatcher (infrastructure) and GenerationPass
    (filter, reload, classify, run) with debouncing so a burst of edits
    becomes a single generation. Batches never run concurrently: a batch
    arriving during a run is coalesced and processed right after it.

    Attributes:
        watch_path: Project root being watched
        settings: Debounce delay and failure policy
    """

    def __init__(
        self,
        generation_pass: GenerationPass,
        file_watcher: FileWatcherInterface,
        watch_path: Path | str,
        settings: WatchSettings | None = None,
    ):
        """
        Initialize the watch service.

        Args:
            generation_pass: Filter/reload/classify/run pipeline for one batch
            file_watcher: File system watcher implementation; applies the
                ignore patterns itself
            watch_path: Project root to watch
            settings: The ``watch`` config section (defaults when None)
        """
        self._generation_pass = generation_pass
        self._file_watcher = file_watcher
        self._watch_path = Path(watch_path)
        self._settings = settings or WatchSettings()
        self._debouncer: Debouncer | None = None
        self._stats = WatchStats()
        self._running = False
        self._update_lock = asyncio.Lock()
        self._update_in_progress = False
        self._pending_during_update: ChangeBatch | None = None
        self._shutdown_event: asyncio.Event | None = None
        self._event_loop: asyncio.AbstractEventLoop | None = None
        self._fatal_error: BaseException | None = None

    @property
    def watch_path(self) -> Path:
        return self._watch_path

    @property
    def settings(self) -> WatchSettings:
        """Get the watch settings."""
        return self._settings

    async def start(self) -> None:
        """
        Start the watch service.

        Raises:
            PathValidationError: If the path doesn't exist or isn't a directory
            WatchServiceError: If the service is already running
        """
        if self._running:
            raise WatchServiceError("Watch service is already running")

        watch_path = self._watch_path.resolve()
        self._validate_path(watch_path)

        logger.info(
            f"Starting watch service for: {watch_path}",
            extra={
                "watch_path": str(watch_path),
                "debounce_ms": self._settings.debounce_ms,
            },
        )

        # Store event loop reference for thread-safe callback
        self._event_loop = asyncio.get_running_loop()
        self._shutdown_event = asyncio.Event()
        self._fatal_error = None

        self._debouncer = Debouncer(
            delay_ms=self._settings.debounce_ms,
            on_batch_ready=self._on_batch_ready,
        )

        self._file_watcher.start(watch_path, self._on_file_event_sync)
        self._running = True
        self._stats = WatchStats()

        logger.info(
            "Listening for changes",
            extra={
                "watch_path": str(watch_path),
                "settings": asdict(self._settings),
            },
        )

    async def stop(self) -> None:
        """
        Stop the watch service gracefully.

        Completes any in-progress generation, flushes pending events,
        and releases file system watchers.
        """
        if not self._running:
            logger.debug("Watch service is not running, nothing to stop")
            return

        logger.info("Stopping watch service...")

        if self._shutdown_event:
            self._shutdown_event.set()

        # Wait for any in-progress generation to complete
        async with self._update_lock:
            pass

        if self._debouncer and self._debouncer.has_pending() and self._fatal_error is None:
            logger.debug("Flushing pending events before shutdown")
            await self._debouncer.flush()

        self._file_watcher.stop()
        self._running = False
        self._debouncer = None
        self._event_loop = None

        logger.info(
            "Watch service stopped",
            extra={"stats": self._stats.to_dict()},
        )

    async def run_forever(self) -> None:
        """
        Start the service and block until it is stopped.

        Raises:
            BaseException: The downstream failure that stopped the service
                when ``exit_on_failure`` is enabled
        """
        await self.start()
        try:
            assert self._shutdown_event is not None
            await self._shutdown_event.wait()
        finally:
            await self.stop()

        if self._fatal_error is not None:
            raise self._fatal_error

    def request_shutdown(self) -> None:
        """Ask ``run_forever`` to return; safe to call from any thread."""
        if self._event_loop is not None and self._shutdown_event is not None:
            self._event_loop.call_soon_threadsafe(self._shutdown_event.set)

    def is_running(self) -> bool:
        """Check if the watch service is currently running."""
        return self._running

    def get_stats(self) -> WatchStats:
        """Get current watch statistics."""
        return self._stats

    def get_pending_count(self) -> int:
        """Get the number of pending paths waiting to be processed."""
        if self._debouncer:
            return self._debouncer.get_pending_count()
        return 0

    def _validate_path(self, path: Path) -> None:
        """
        Validate that the path exists and is a directory.

        Args:
            path: Path to validate

        Raises:
            PathValidationError: If validation fails
        """
        if not path.exists():
            raise PathValidationError(f"Path does not exist: {path}")

        if not path.is_dir():
            raise PathValidationError(f"Path is not a directory: {path}")

    def _on_file_event_sync(self, event: FileEvent) -> None:
        """
        Synchronous callback for file events from the watchdog thread.

        Schedules the async handler on the event loop.

        Args:
            event: The file event from the watcher
        """
        if self._event_loop is None or not self._running:
            return

        asyncio.run_coroutine_threadsafe(
            self._on_file_event(event),
            self._event_loop,
        )

    async def _on_file_event(self, event: FileEvent) -> None:
        """
        Handle a file event from the watcher.

        Args:
            event: The file event to handle
        """
        if not self._running:
            return

        self._stats.events_received += 1

        logger.debug(
            "File change detected: %s - %s",
            event.event_type.value,
            event.file_path,
            extra={
                "event_type": event.event_type.value,
                "file_path": str(event.file_path),
                "timestamp": event.timestamp,
                "watch_path": str(self._watch_path),
            },
        )

        if self._debouncer:
            await self._debouncer.add_event(event)

    async def _on_batch_ready(self, batch: ChangeBatch) -> None:
        """
        Handle a debounced batch of changes.

        If a generation is already in progress, the batch is coalesced into
        the pending batch and processed once the current run finishes.

        Args:
            batch: The batch of debounced changes
        """
        if not self._running or batch.is_empty():
            return

        if self._update_in_progress:
            logger.debug(
                "Generation in progress, queueing batch for next cycle",
                extra={"batch_size": batch.total_count()},
            )
            if self._pending_during_update is None:
                self._pending_during_update = batch.copy()
            else:
                self._pending_during_update.extend(batch)
            return

        await self.process_batch(batch)

        # Process any batches that accumulated during the run
        while (
            self._pending_during_update
            and not self._pending_during_update.is_empty()
            and self._fatal_error is None
        ):
            pending = self._pending_during_update
            self._pending_during_update = None
            await self.process_batch(pending)

    async def process_batch(self, batch: ChangeBatch) -> None:
        """
        Run one generation pass for a batch.

        Reload and generation are blocking, so they run in a worker thread
        while the update lock is held. Failures are logged with full context
        and counted; with ``exit_on_failure`` the service then shuts down and
        ``run_forever`` re-raises the failure.

        Args:
            batch: The batch to process
        """
        async with self._update_lock:
            self._update_in_progress = True
            self._stats.batches_received += 1
            total_changes = batch.total_count()
            loop = asyncio.get_running_loop()
            start_time = loop.time()

            try:
                result = await asyncio.to_thread(self._generation_pass.execute, batch)

                if not result.relevant:
                    self._stats.batches_ignored += 1
                    return

                if result.ran:
                    self._stats.generations_triggered += 1
                    self._stats.last_generation_at = datetime.now()
                    self._stats.last_generation_duration_ms = result.duration_ms

                    logger.info(
                        "Generation completed in %.2fms",
                        result.duration_ms,
                        extra={
                            "duration_ms": result.duration_ms,
                            "scope": result.plan.scope if result.plan else None,
                            "watch_path": str(self._watch_path),
                            "generations_triggered_total": self._stats.generations_triggered,
                        },
                    )

            except Exception as e:
                self._stats.errors += 1
                duration_ms = (loop.time() - start_time) * 1000

                logger.error(
                    "Error during generation: %s",
                    str(e),
                    extra={
                        "error": str(e),
                        "error_type": type(e).__name__,
                        "duration_ms": duration_ms,
                        "watch_path": str(self._watch_path),
                        "pending_changes": total_changes,
                        "batch": batch.to_dict(),
                        "errors_total": self._stats.errors,
                    },
                    exc_info=True,
                )

                if self._settings.exit_on_failure:
                    self._fatal_error = e
                    if self._shutdown_event is not None:
                        self._shutdown_event.set()

            finally:
                self._update_in_progress = False
