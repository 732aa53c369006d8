"""Job dispatch loop: poll, decode, execute, back off when the queue is empty."""

import logging
import signal
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import Any, assert_never

from .client import MapantClient
from .config import WorkerConfig
from .errors import (
    DecodeError,
    TransportError,
    WorkerError,
    clear_cycle_id,
    generate_cycle_id,
    set_cycle_id,
)
from .models import Job, JobType, LidarJob, NoJobLeft, PyramidJob, RenderJob, decode
from .registry import HandlerRegistry

logger = logging.getLogger(__name__)

PRODUCING_JOB_TYPES = (JobType.LIDAR, JobType.RENDER, JobType.PYRAMID)

TimerFactory = Callable[[float, Callable[[], None]], Any]


class CycleOutcome(str, Enum):
    """How a dispatch cycle ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    NO_JOB = "no_job"
    TRANSPORT_FAILED = "transport_failed"
    DECODE_FAILED = "decode_failed"

    @property
    def stops_worker(self) -> bool:
        """Outcomes after which the worker does not poll again on its own."""
        return self in (CycleOutcome.TRANSPORT_FAILED, CycleOutcome.DECODE_FAILED)


class Worker:
    """Single-job worker for the mapant map generation.

    Cycles run strictly one after another. The only automatic re-poll after
    a failure-free empty queue is a single deferred timer; transport and
    decode failures end the loop and leave restarting to the supervisor.
    """

    def __init__(
        self,
        config: WorkerConfig,
        registry: HandlerRegistry,
        *,
        client: MapantClient | None = None,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        """
        Initialize worker.

        Args:
            config: Worker configuration
            registry: Handlers for every producing job type
            client: Dispatch endpoint client; built from ``config`` when omitted
            timer_factory: ``threading.Timer``-compatible factory for the no-job backoff

        Raises:
            ValueError: If a producing job type has no handler
        """
        missing = registry.missing(PRODUCING_JOB_TYPES)
        if missing:
            raise ValueError(
                f"No handler registered for job types: {[t.value for t in missing]}"
            )

        self.config = config
        self.registry = registry
        self._owns_client = client is None
        self.client = client or MapantClient(config)
        self._timer_factory = timer_factory

        self._lock = threading.Lock()
        self._retry_timer: Any = None
        self._wakeup = threading.Event()
        self.shutdown_requested = False

        logger.info(
            f"Worker initialized: {config.api_worker_id} "
            f"(api={config.api_base_url}, handlers={registry.list_types()})"
        )

    @property
    def retry_pending(self) -> bool:
        """Whether a no-job backoff timer is armed."""
        with self._lock:
            return self._retry_timer is not None

    def schedule_retry(self) -> bool:
        """Arm the no-job backoff timer.

        Returns:
            False if a timer was already pending; no second one is armed
        """
        with self._lock:
            if self._retry_timer is not None:
                logger.debug("Retry already pending, not scheduling another")
                return False

            timer = self._timer_factory(self.config.no_job_retry_seconds, self._on_retry_due)
            timer.daemon = True
            self._retry_timer = timer

        # Started outside the lock, _on_retry_due takes it
        timer.start()
        return True

    def cancel_retry(self) -> None:
        """Disarm the pending backoff timer, if any."""
        with self._lock:
            if self._retry_timer is not None:
                self._retry_timer.cancel()
                self._retry_timer = None

    def _on_retry_due(self) -> None:
        with self._lock:
            self._retry_timer = None
        self._wakeup.set()

    def run_cycle(self) -> CycleOutcome:
        """Run one poll-decode-execute cycle.

        Never raises for a failed step: every failure is logged and turned
        into an outcome.
        """
        cycle_id = generate_cycle_id()
        set_cycle_id(cycle_id)

        try:
            try:
                raw = self.client.next_job()
            except TransportError as e:
                logger.error(f"Polling next job failed: {e} cycle_id={cycle_id}")
                return CycleOutcome.TRANSPORT_FAILED
            except DecodeError as e:
                logger.error(f"Not expected next-job endpoint response: {e} cycle_id={cycle_id}")
                return CycleOutcome.DECODE_FAILED
            except Exception:
                logger.exception(f"Polling next job failed with unexpected error cycle_id={cycle_id}")
                return CycleOutcome.TRANSPORT_FAILED

            try:
                job = decode(raw)
            except DecodeError as e:
                logger.error(f"Not expected next-job endpoint response: {e} cycle_id={cycle_id}")
                return CycleOutcome.DECODE_FAILED

            return self._dispatch(job, cycle_id)

        finally:
            clear_cycle_id()

    def _dispatch(self, job: Job, cycle_id: str) -> CycleOutcome:
        match job:
            case NoJobLeft():
                logger.warning(
                    f"No job left, retrying in {self.config.no_job_retry_seconds:g}s "
                    f"cycle_id={cycle_id}"
                )
                self.schedule_retry()
                return CycleOutcome.NO_JOB
            case LidarJob() | RenderJob() | PyramidJob():
                return self._execute_job(job, cycle_id)
            case _:
                assert_never(job)

    def _execute_job(self, job: LidarJob | RenderJob | PyramidJob, cycle_id: str) -> CycleOutcome:
        """Execute a single job with error handling."""
        handler = self.registry.get(job.type)
        if handler is None:
            logger.error(f"No handler registered for job type: {job.type} cycle_id={cycle_id}")
            return CycleOutcome.FAILED

        start_time = time.monotonic()
        logger.info(f"Handle {job.type} job for tile {job.tile_name} cycle_id={cycle_id}")

        try:
            handler.execute(job, {"cycle_id": cycle_id})

        except WorkerError as e:
            logger.error(
                f"{job.type} job for tile {job.tile_name} failed: {e} cycle_id={cycle_id}"
            )
            return CycleOutcome.FAILED

        except Exception:
            logger.exception(
                f"{job.type} job for tile {job.tile_name} failed with unexpected error "
                f"cycle_id={cycle_id}"
            )
            return CycleOutcome.FAILED

        duration = time.monotonic() - start_time
        logger.info(
            f"{job.type} job for tile {job.tile_name} done in {duration:.1f}s cycle_id={cycle_id}"
        )
        return CycleOutcome.COMPLETED

    def run_once(self) -> CycleOutcome:
        """Run a single cycle and release resources; no backoff is kept armed."""
        try:
            return self.run_cycle()
        finally:
            self.cancel_retry()
            self.close()

    def run(self) -> CycleOutcome:
        """Run the worker loop until a cycle stops it or a signal arrives.

        Returns:
            Outcome of the last cycle
        """
        previous_handlers = self._setup_signal_handlers()
        outcome = CycleOutcome.COMPLETED
        logger.info("Worker ready, polling for jobs...")

        try:
            while not self.shutdown_requested:
                outcome = self.run_cycle()

                if outcome.stops_worker:
                    break

                if outcome is CycleOutcome.NO_JOB:
                    self._wakeup.wait()
                    self._wakeup.clear()
                elif outcome is CycleOutcome.FAILED:
                    # Pause before the next poll; a shutdown request cuts it short
                    self._wakeup.wait(self.config.failed_job_delay_seconds)

        finally:
            logger.info("Shutting down worker...")
            self.cancel_retry()
            self.close()
            for sig, handler in previous_handlers.items():
                signal.signal(sig, handler)
            logger.info("Worker shutdown complete")

        return outcome

    def request_shutdown(self) -> None:
        """Stop after the current cycle and wake a pending backoff wait."""
        self.shutdown_requested = True
        self.cancel_retry()
        self._wakeup.set()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def _handle_shutdown(self, signum: int, frame: Any) -> None:
        """Handle shutdown signals gracefully.

        Runs on the main thread between bytecodes, possibly while it holds
        ``_lock``, so it must not take the lock. The pending timer is
        cancelled by the ``finally`` in ``run()``.
        """
        logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
        self.shutdown_requested = True
        self._wakeup.set()

    def _setup_signal_handlers(self) -> dict[int, Any]:
        previous: dict[int, Any] = {}
        if threading.current_thread() is not threading.main_thread():
            return previous
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.getsignal(sig)
            signal.signal(sig, self._handle_shutdown)
        return previous
