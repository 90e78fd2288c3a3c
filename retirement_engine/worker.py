"""Run projections off the caller's thread.

User input can change faster than a projection completes, so interactive
callers debounce their requests and only trust the most recent one.  The
engine itself has no notion of request identity; :class:`ProjectionRunner`
adds it on top.

* :func:`run_calculation` is the single-shot request/response call.  It never
  raises for bad input: it returns either a :class:`CalculationSuccess` or a
  :class:`CalculationFailure`.
* :class:`ProjectionRunner` waits for a quiet period after the last
  :meth:`~ProjectionRunner.submit`, dispatches the request to a thread pool and
  hands the result to a callback only if no newer request was dispatched in
  the meantime.

Example
-------

>>> runner = ProjectionRunner(on_result=print, quiet_period=0.25)  # doctest: +SKIP
>>> runner.submit({"current_age": 35, "retirement_age": 65, ...})  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple, Union

from .calculators import projections as proj_calc
from .calculators import statistics as stats_calc
from .calculators.tax_tables import TaxTables
from .models import PlanInput, Statistics, YearSnapshot

logger = logging.getLogger(__name__)

DEFAULT_QUIET_PERIOD = 0.3  # seconds


@dataclass(frozen=True)
class CalculationSuccess:
    sequence: int
    statistics: Statistics
    projections: Tuple[YearSnapshot, ...]
    impact_summary: Optional[Dict[str, float]] = None
    truncated: bool = False
    elapsed_ms: float = 0.0

    ok = True


@dataclass(frozen=True)
class CalculationFailure:
    sequence: int
    error_type: str
    message: str

    ok = False


CalculationResult = Union[CalculationSuccess, CalculationFailure]
PlanLike = Union[PlanInput, Mapping]


def _as_plan(plan: PlanLike) -> PlanInput:
    if isinstance(plan, PlanInput):
        return plan
    return PlanInput.from_dict(plan)


def run_calculation(
    plan: PlanLike,
    adjustments: Optional[Mapping] = None,
    baseline: Optional[PlanLike] = None,
    base_year: Optional[int] = None,
    tables: Optional[TaxTables] = None,
    sequence: int = 0,
) -> CalculationResult:
    """Project ``plan`` with ``adjustments`` applied and summarise it.

    When ``baseline`` is given (typically the recommended plan) the result
    also carries the nest-egg and monthly-drawdown deltas against it.
    """
    started = time.perf_counter()
    try:
        adjusted = _as_plan(plan).with_adjustments(adjustments)
        result = proj_calc.generate_full_projection(adjusted, base_year=base_year, tables=tables)
        statistics = stats_calc.generate_statistics(adjusted, result.years)
        impact = None
        if baseline is not None:
            impact = stats_calc.impact_summary(
                _as_plan(baseline), adjusted, base_year=base_year, tables=tables
            )
    except (ValueError, KeyError, ArithmeticError) as exc:
        logger.debug("calculation %d failed: %s", sequence, exc)
        return CalculationFailure(sequence=sequence, error_type=type(exc).__name__, message=str(exc))

    elapsed = (time.perf_counter() - started) * 1000
    logger.debug("calculation %d completed in %.2f ms", sequence, elapsed)
    return CalculationSuccess(
        sequence=sequence,
        statistics=statistics,
        projections=result.years,
        impact_summary=impact,
        truncated=result.truncated,
        elapsed_ms=elapsed,
    )


class ProjectionRunner:
    """Debounced, superseding projection requests on a background pool.

    Parameters
    ----------
    on_result : callable
        Called with each :class:`CalculationSuccess` or
        :class:`CalculationFailure` that is still current when it completes.
        It runs on a pool thread.
    quiet_period : float, optional
        Seconds without a new submission before a request is dispatched.
    executor : Executor, optional
        Pool to run calculations on.  A single-thread pool is created (and
        owned) when omitted.
    """

    def __init__(
        self,
        on_result: Callable[[CalculationResult], None],
        quiet_period: float = DEFAULT_QUIET_PERIOD,
        executor: Optional[Executor] = None,
        base_year: Optional[int] = None,
        tables: Optional[TaxTables] = None,
    ):
        self._on_result = on_result
        self._quiet_period = quiet_period
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="projection")
        self._base_year = base_year
        self._tables = tables

        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[Tuple[int, PlanLike, Optional[Mapping], Optional[PlanLike]]] = None
        self._submitted = 0
        self._latest_dispatched = 0
        self._closed = False
        self.latest_result: Optional[CalculationResult] = None

    def submit(
        self,
        plan: PlanLike,
        adjustments: Optional[Mapping] = None,
        baseline: Optional[PlanLike] = None,
    ) -> int:
        """Queue a request, restarting the quiet period.  Returns its sequence number."""
        with self._lock:
            if self._closed:
                raise RuntimeError("runner is closed")
            self._submitted += 1
            sequence = self._submitted
            self._pending = (sequence, plan, adjustments, baseline)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._quiet_period, self._dispatch_pending, args=(sequence,))
            self._timer.daemon = True
            self._timer.start()
        return sequence

    def flush(self) -> Optional[Future]:
        """Dispatch the pending request now instead of waiting for the timer."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        return self._dispatch_pending()

    def _dispatch_pending(self, expected: Optional[int] = None) -> Optional[Future]:
        with self._lock:
            if self._pending is None or self._closed:
                return None
            # a timer that fired just before a newer submit belongs to an older request
            if expected is not None and self._pending[0] != expected:
                return None
            sequence, plan, adjustments, baseline = self._pending
            self._pending = None
            self._timer = None
            self._latest_dispatched = sequence
            future = self._executor.submit(
                run_calculation,
                plan,
                adjustments,
                baseline,
                self._base_year,
                self._tables,
                sequence,
            )
        logger.debug("dispatched calculation %d", sequence)
        future.add_done_callback(lambda f, seq=sequence: self._complete(seq, f))
        return future

    def _complete(self, sequence: int, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("calculation %d raised %r", sequence, exc)
            result: CalculationResult = CalculationFailure(
                sequence=sequence, error_type=type(exc).__name__, message=str(exc)
            )
        else:
            result = future.result()

        with self._lock:
            if sequence != self._latest_dispatched:
                logger.debug(
                    "discarding stale calculation %d (latest is %d)", sequence, self._latest_dispatched
                )
                return
            self.latest_result = result
        self._on_result(result)

    def close(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ProjectionRunner":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = [
    "DEFAULT_QUIET_PERIOD",
    "CalculationSuccess",
    "CalculationFailure",
    "run_calculation",
    "ProjectionRunner",
]
