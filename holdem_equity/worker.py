"""Background equity runs with progress streaming and stale-result suppression.

An :class:`EquityWorker` owns at most one live run.  ``start()`` validates the
request synchronously, cancels whatever was running, and hands the
simulation to a thread pool so the event loop stays responsive.  Progress
and results hop back onto the loop and are dropped unless they belong to
the most recent run.  Without a running loop, or with an executor that no
longer accepts work, the same simulation runs inline.
"""

from __future__ import annotations

import asyncio
import logging
import random
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from enum import Enum
from typing import Callable, Optional, Sequence

from holdem_equity import config
from holdem_equity.cards import Card
from holdem_equity.errors import ComputationFailure, SimulationCancelled
from holdem_equity.models import EquityRequest, EquityResult
from holdem_equity.simulator import simulate, validate_request

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class EquityRun:
    """One started calculation and its outcome."""

    __slots__ = (
        "run_id",
        "request",
        "cancel_event",
        "state",
        "result",
        "error",
        "task",
    )

    def __init__(self, run_id: int, request: EquityRequest) -> None:
        self.run_id = run_id
        self.request = request
        self.cancel_event = threading.Event()
        self.state = RunState.RUNNING
        self.result: EquityResult | None = None
        self.error: ComputationFailure | None = None
        self.task: asyncio.Future | None = None

    def __repr__(self) -> str:
        return f"EquityRun(#{self.run_id}, {self.state.value})"


class SimulationPool:
    """Shared thread pool for background simulations.

    Runs submitted to the pool register their cancel events, so ``stop()``
    can halt work that is already executing as well as work still queued.
    """

    def __init__(self, max_workers: int = config.MAX_WORKERS) -> None:
        self._max_workers = max_workers
        self._executor: ThreadPoolExecutor | None = None
        self._live: set[threading.Event] = set()
        self._lock = threading.Lock()

    @property
    def executor(self) -> ThreadPoolExecutor | None:
        return self._executor

    def start(self) -> None:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="equity"
            )
            logger.info("Simulation pool started (workers=%d)", self._max_workers)

    def track(self, event: threading.Event) -> None:
        with self._lock:
            self._live.add(event)

    def untrack(self, event: threading.Event) -> None:
        with self._lock:
            self._live.discard(event)

    def stop(self) -> None:
        if self._executor is not None:
            with self._lock:
                live = list(self._live)
                self._live.clear()
            # Executing runs stop at their next trial; queued ones never start
            for event in live:
                event.set()
            self._executor.shutdown(wait=False, cancel_futures=True)
            if live:
                logger.info("Cancelled %d running simulation(s)", len(live))
            self._executor = None
            logger.info("Simulation pool stopped")


class EquityWorker:
    """Runs one equity calculation at a time off the caller's thread.

    Callbacks are invoked on the event loop thread (or inline, in fallback
    mode) and only for the run started most recently.
    """

    def __init__(
        self,
        on_progress: Optional[Callable[[float], None]] = None,
        on_result: Optional[Callable[[EquityResult], None]] = None,
        on_error: Optional[Callable[[ComputationFailure], None]] = None,
        executor: Optional[Executor] = None,
        progress_interval: int = config.PROGRESS_INTERVAL,
    ) -> None:
        self._on_progress = on_progress
        self._on_result = on_result
        self._on_error = on_error
        self._executor = executor
        self._progress_interval = progress_interval
        self._current: EquityRun | None = None
        self._state = RunState.IDLE
        self._next_id = 1

    @property
    def current(self) -> EquityRun | None:
        return self._current

    @property
    def state(self) -> RunState:
        """RUNNING while a run is live, otherwise IDLE.

        A finished run's outcome stays on ``current.state``.  The worker itself
        reports COMPLETED or FAILED only while that outcome is being delivered
        to the callbacks, then returns to IDLE.
        """
        return self._state

    def start(self, request: EquityRequest) -> EquityRun:
        """Begin a new run, cancelling any run still in progress.

        Raises InvalidInput (or ExhaustedDeck) before anything is cancelled
        or scheduled when the request cannot be simulated.
        """
        hole, board = request.hole, request.board
        validate_request(
            hole, board, request.num_opponents, request.trials, request.opponents
        )

        self.cancel()
        run = EquityRun(self._next_id, request)
        self._next_id += 1
        self._current = run
        self._state = RunState.RUNNING
        logger.debug(
            "Run #%d started: hole=%s board=%s opponents=%d trials=%d",
            run.run_id,
            request.hole_cards,
            request.community_cards,
            request.num_opponents,
            request.trials,
        )

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            self._run_inline(run, hole, board)
            return run

        pooled = self._executor is None
        executor = self._executor or simulation_pool.executor
        if pooled:
            simulation_pool.track(run.cancel_event)
        try:
            future = loop.run_in_executor(
                executor, self._compute, run, hole, board, loop
            )
        except RuntimeError:
            simulation_pool.untrack(run.cancel_event)
            logger.warning(
                "Executor unavailable, running #%d inline", run.run_id, exc_info=True
            )
            self._run_inline(run, hole, board)
            return run

        run.task = asyncio.ensure_future(self._finish(run, future))
        return run

    def cancel(self) -> None:
        """Stop the live run; none of its callbacks will fire afterwards."""
        run = self._current
        if run is not None and run.state == RunState.RUNNING:
            run.cancel_event.set()
            run.state = RunState.CANCELLED
            self._state = RunState.IDLE
            logger.info("Run #%d cancelled", run.run_id)

    async def wait(self) -> EquityResult | None:
        """Wait for the current run; returns its result, or None if it was cancelled.

        Raises the run's ComputationFailure if it failed.
        """
        run = self._current
        if run is None:
            return None
        if run.task is not None:
            await asyncio.shield(run.task)
        if run.state == RunState.FAILED:
            raise run.error
        return run.result if run.state == RunState.COMPLETED else None

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _compute(
        self,
        run: EquityRun,
        hole: Sequence[Card],
        board: Sequence[Card],
        loop: asyncio.AbstractEventLoop | None,
    ) -> EquityResult:
        def report(fraction: float) -> None:
            if loop is None:
                self._deliver_progress(run, fraction)
            elif not loop.is_closed():
                loop.call_soon_threadsafe(self._deliver_progress, run, fraction)

        request = run.request
        return simulate(
            hole,
            board,
            request.num_opponents,
            request.trials,
            rng=random.Random(request.seed),
            on_progress=report,
            progress_interval=self._progress_interval,
            cancel_event=run.cancel_event,
            opponent_hands=request.opponents,
        )

    def _run_inline(
        self, run: EquityRun, hole: Sequence[Card], board: Sequence[Card]
    ) -> None:
        try:
            result = self._compute(run, hole, board, None)
        except SimulationCancelled:
            logger.debug("Run #%d stopped after cancellation", run.run_id)
            return
        except Exception as exc:
            logger.exception("Run #%d failed", run.run_id)
            self._fail(run, exc)
            return
        self._complete(run, result)

    async def _finish(self, run: EquityRun, future: asyncio.Future) -> None:
        try:
            result = await future
        except (SimulationCancelled, asyncio.CancelledError):
            # Either superseded, or the pool shut down under the run
            logger.debug("Run #%d stopped after cancellation", run.run_id)
            if run is self._current:
                self.cancel()
            return
        except Exception as exc:
            logger.exception("Run #%d failed", run.run_id)
            self._fail(run, exc)
            return
        finally:
            simulation_pool.untrack(run.cancel_event)
        self._complete(run, result)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def _is_live(self, run: EquityRun) -> bool:
        return (
            run is self._current
            and run.state == RunState.RUNNING
            and not run.cancel_event.is_set()
        )

    def _deliver_progress(self, run: EquityRun, fraction: float) -> None:
        if self._is_live(run) and self._on_progress is not None:
            self._on_progress(fraction)

    def _complete(self, run: EquityRun, result: EquityResult) -> None:
        if not self._is_live(run):
            logger.debug("Dropping stale result of run #%d", run.run_id)
            return
        run.result = result
        run.state = RunState.COMPLETED
        logger.info(
            "Run #%d completed: win=%.4f tie=%.4f loss=%.4f (%d trials)",
            run.run_id,
            result.win_probability,
            result.tie_probability,
            result.loss_probability,
            result.simulations,
        )
        self._state = RunState.COMPLETED
        try:
            if self._on_result is not None:
                self._on_result(result)
        finally:
            self._state = RunState.IDLE

    def _fail(self, run: EquityRun, exc: Exception) -> None:
        if not self._is_live(run):
            return
        if isinstance(exc, ComputationFailure):
            error = exc
        else:
            error = ComputationFailure(f"Equity calculation failed: {exc}")
            error.__cause__ = exc
        run.error = error
        run.state = RunState.FAILED
        self._state = RunState.FAILED
        try:
            if self._on_error is not None:
                self._on_error(error)
        finally:
            self._state = RunState.IDLE


# Singleton
simulation_pool = SimulationPool()
