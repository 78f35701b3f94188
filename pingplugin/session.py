"""Stateful execution session accumulating iteration history."""

import copy
import logging
import threading
import time
from collections import deque
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta
from typing import Any

from pingplugin.models import EnrichedResult, HistoryEntry, IterationSummary, MeasurementResult
from pingplugin.probe import Probe
from pingplugin.schemas import ExecuteRequest, parse_request

logger = logging.getLogger(__name__)


def format_elapsed(seconds: float) -> str:
    """Format a duration as H:MM:SS.ffffff."""
    return str(timedelta(seconds=max(0.0, seconds)))


class Session:
    """Executes probe calls and keeps iteration state between them.

    Single-shot calls pass straight through to the probe. Iteration-mode
    calls bump ``iteration_count``, store a deep copy of the result in
    ``history`` and return the result enriched with iteration metadata.
    From the second iteration on, the enriched result also lists the
    earlier iterations.

    Thread-safe: iteration-mode calls are serialized by one lock held from
    reading the counter to appending the history entry. A call that fails
    leaves the counter and history untouched.
    """

    def __init__(
        self,
        probe: Probe,
        history_limit: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize session.

        Args:
            probe: Probe used for every measurement
            history_limit: Keep only the most recent N results; None keeps all
            clock: Monotonic clock used for elapsed time
        """
        if history_limit is not None and history_limit < 1:
            raise ValueError("history_limit must be positive")

        self.probe = probe
        self.history_limit = history_limit
        self._clock = clock

        self.start_time = datetime.now().astimezone()
        self._started = clock()
        self._iteration_count = 0
        # (iteration number, stored copy) pairs
        self._history: deque[tuple[int, MeasurementResult]] = deque(maxlen=history_limit)
        self._lock = threading.Lock()

        logger.debug("Session created: start_time=%s, history_limit=%s", self.start_time, history_limit)

    @property
    def iteration_count(self) -> int:
        return self._iteration_count

    @property
    def history(self) -> list[MeasurementResult]:
        """Stored results, earliest first. Returns copies."""
        with self._lock:
            return [copy.deepcopy(result) for _, result in self._history]

    def elapsed_time(self) -> str:
        return format_elapsed(self._clock() - self._started)

    def execute(
        self,
        parameters: Mapping[str, Any] | ExecuteRequest,
        cancel: threading.Event | None = None,
    ) -> MeasurementResult | EnrichedResult:
        """Run one measurement.

        Args:
            parameters: Mapping with ``host``, optional ``count`` and
                        ``continueToIterate``, or a validated ExecuteRequest
            cancel: Optional event used to abandon a pending host lookup

        Returns:
            The probe's MeasurementResult in single-shot mode, an
            EnrichedResult in iteration mode

        Raises:
            MissingField: host is absent
            InvalidArgument: a parameter is unusable
            ExecutionCancelled: cancel was set before the probe finished
        """
        request = parse_request(parameters)

        if not request.continue_to_iterate:
            logger.debug("Single-shot execute: host=%s, count=%d", request.host, request.count)
            return self.probe.measure(request.host, request.count, 0, cancel)

        return self._execute_iteration(request, cancel)

    def _execute_iteration(
        self, request: ExecuteRequest, cancel: threading.Event | None
    ) -> EnrichedResult:
        with self._lock:
            result = self.probe.measure(
                request.host, request.count, self._iteration_count, cancel
            )

            self._iteration_count += 1
            iteration = self._iteration_count
            self._history.append((iteration, copy.deepcopy(result)))

            # past iterations only, earliest first
            history = None
            if len(self._history) > 1:
                history = [
                    HistoryEntry.from_result(n, stored)
                    for n, stored in list(self._history)[:-1]
                ]

            enriched = EnrichedResult(
                result=result,
                iteration_count=iteration,
                elapsed_time=self.elapsed_time(),
                iteration_summary=IterationSummary.for_result(iteration, result),
                history=history,
            )

        logger.debug(
            "Iteration recorded: iteration=%d, host=%s, past_entries=%d",
            iteration,
            request.host,
            len(history) if history else 0,
        )
        return enriched
