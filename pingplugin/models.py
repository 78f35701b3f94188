"""Data models for ping measurements and iteration results."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def loss_percent(transmitted: int, received: int) -> float:
    """Percentage of packets lost, 0.0 when nothing was transmitted."""
    if transmitted <= 0:
        return 0.0
    return 100.0 * (transmitted - received) / transmitted


def format_timestamp(ts: datetime) -> str:
    """Render a timestamp as RFC3339 with second precision."""
    if ts.tzinfo is None:
        ts = ts.astimezone()
    return ts.isoformat(timespec="seconds")


@dataclass
class MeasurementResult:
    """Outcome of one probe run against a single host."""

    host: str
    transmitted: int
    received: int
    packet_loss: float
    time_min: float
    time_avg: float
    time_max: float
    time_stddev: float
    timestamp: datetime
    raw_output: str
    method: str
    note: str | None = None
    warning: str | None = None  # set when the host could not be resolved

    def __post_init__(self):
        """Reject results that break the measurement invariants."""
        if not self.host:
            raise ValueError("host must be non-empty")
        if self.transmitted < 0 or self.received < 0:
            raise ValueError("packet counts must be non-negative")
        if self.received > self.transmitted:
            raise ValueError(
                f"received ({self.received}) exceeds transmitted ({self.transmitted})"
            )
        if not 0.0 <= self.packet_loss <= 100.0:
            raise ValueError(f"packet_loss out of range: {self.packet_loss}")
        if not self.time_min <= self.time_avg <= self.time_max:
            raise ValueError(
                "expected time_min <= time_avg <= time_max, got "
                f"{self.time_min}/{self.time_avg}/{self.time_max}"
            )
        if self.time_stddev < 0:
            raise ValueError("time_stddev must be non-negative")

    def to_dict(self) -> dict[str, Any]:
        data = {
            "host": self.host,
            "transmitted": self.transmitted,
            "received": self.received,
            "packetLoss": self.packet_loss,
            "timeMin": self.time_min,
            "timeAvg": self.time_avg,
            "timeMax": self.time_max,
            "timeStdDev": self.time_stddev,
            "timestamp": format_timestamp(self.timestamp),
            "rawOutput": self.raw_output,
            "method": self.method,
        }
        if self.note is not None:
            data["note"] = self.note
        if self.warning is not None:
            data["warning"] = self.warning
        return data


@dataclass(frozen=True)
class HistoryEntry:
    """Reduced record of a past iteration kept for summary display."""

    iteration: int
    timestamp: datetime
    host: str
    packet_loss: float
    time_avg: float

    @classmethod
    def from_result(cls, iteration: int, result: MeasurementResult) -> "HistoryEntry":
        return cls(
            iteration=iteration,
            timestamp=result.timestamp,
            host=result.host,
            packet_loss=result.packet_loss,
            time_avg=result.time_avg,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "iteration": self.iteration,
            "timestamp": format_timestamp(self.timestamp),
            "host": self.host,
            "packetLoss": self.packet_loss,
            "timeAvg": self.time_avg,
        }


@dataclass(frozen=True)
class IterationSummary:
    """One-line description of an iteration plus UI capability flags."""

    summary: str
    can_iterate: bool = True
    supports_iteration: bool = True

    @classmethod
    def for_result(cls, iteration: int, result: MeasurementResult) -> "IterationSummary":
        return cls(
            summary=(
                f"Iteration {iteration}: {result.host} - "
                f"{result.packet_loss:.1f}% loss, avg {result.time_avg:.1f} ms"
            )
        )

    def __str__(self) -> str:
        return self.summary

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "canIterate": self.can_iterate,
            "supportsIteration": self.supports_iteration,
        }


@dataclass
class EnrichedResult:
    """A measurement taken in iteration mode, with session metadata attached."""

    result: MeasurementResult
    iteration_count: int
    elapsed_time: str
    iteration_summary: IterationSummary
    history: list[HistoryEntry] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        data = self.result.to_dict()
        data["iterationCount"] = self.iteration_count
        data["elapsedTime"] = self.elapsed_time
        data["iterationSummary"] = self.iteration_summary.to_dict()
        if self.history is not None:
            data["history"] = [entry.to_dict() for entry in self.history]
        return data
