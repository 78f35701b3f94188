"""Deterministic simulated probe producing ping-like results."""

import logging
import threading
from datetime import datetime

from pingplugin.errors import ResolutionFailure
from pingplugin.models import MeasurementResult, loss_percent
from pingplugin.probe import (
    DEFAULT_RESOLVE_TIMEOUT,
    PLACEHOLDER_ADDRESS,
    Resolver,
    resolve_host,
    validate_target,
)

logger = logging.getLogger(__name__)

SIMULATION_METHOD = "simulation (fallback)"
SIMULATION_NOTE = "This is a simulated result because real ping is not available"

# Baseline round-trip times in ms; each iteration index adds 1 ms
BASE_TIME_MIN = 15.123
BASE_TIME_AVG = 16.345
BASE_TIME_MAX = 17.678
TIME_STDDEV = 0.789


def format_transcript(
    host: str,
    address: str,
    transmitted: int,
    received: int,
    packet_loss: float,
    time_min: float,
    time_avg: float,
    time_max: float,
    time_stddev: float,
) -> str:
    """Build a Linux ping style transcript from already computed numbers (pure function).

    One reply line is written per received packet, numbered from 1. Reply
    times are spread linearly between time_min and time_max.
    """
    lines = [f"PING {host} ({address}) 56(84) bytes of data."]
    for seq in range(1, received + 1):
        ping_time = time_min + seq / transmitted * (time_max - time_min)
        lines.append(f"64 bytes from {address}: icmp_seq={seq} ttl=64 time={ping_time:.1f} ms")

    lines.append("")
    lines.append(f"--- {host} ping statistics ---")
    lines.append(
        f"{transmitted} packets transmitted, {received} received, "
        f"{packet_loss:.1f}% packet loss, time {int(time_avg * transmitted)}ms"
    )
    lines.append(
        f"rtt min/avg/max/mdev = {time_min:.3f}/{time_avg:.3f}/{time_max:.3f}/{time_stddev:.3f} ms"
    )
    return "\n".join(lines) + "\n"


class SimulatedProbe:
    """Probe that fabricates reproducible ping statistics.

    No echo requests are sent. The host is still resolved as a best-effort
    validity check; a failed lookup falls back to PLACEHOLDER_ADDRESS and is
    reported through the result's ``warning`` field.

    Exactly one packet is dropped per run, except for ``count == 1`` where
    nothing is dropped. Times drift upward by 1 ms per iteration index so
    repeated calls within a session are distinguishable but deterministic.
    """

    def __init__(
        self,
        resolver: Resolver | None = None,
        resolve_timeout: float = DEFAULT_RESOLVE_TIMEOUT,
    ):
        """Initialize simulated probe.

        Args:
            resolver: Callable ``(host, cancel) -> address``. Defaults to
                      resolve_host bounded by resolve_timeout.
            resolve_timeout: Seconds allowed for the default resolver.
        """
        if resolve_timeout <= 0:
            raise ValueError("resolve_timeout must be positive")

        self.resolve_timeout = resolve_timeout
        self._resolver = resolver or self._default_resolver

    def _default_resolver(self, host: str, cancel: threading.Event | None) -> str:
        return resolve_host(host, timeout=self.resolve_timeout, cancel=cancel)

    def measure(
        self,
        host: str,
        count: int,
        iteration_index: int = 0,
        cancel: threading.Event | None = None,
    ) -> MeasurementResult:
        validate_target(host, count)

        warning = None
        try:
            address = self._resolver(host, cancel)
        except ResolutionFailure as e:
            logger.warning("Resolution failed, using placeholder: host=%s, error=%s", host, e)
            address = PLACEHOLDER_ADDRESS
            warning = f"{e}; using placeholder address {PLACEHOLDER_ADDRESS}"

        transmitted = count
        received = count - 1 if count > 1 else count
        packet_loss = loss_percent(transmitted, received)

        offset = float(iteration_index)
        time_min = BASE_TIME_MIN + offset
        time_avg = BASE_TIME_AVG + offset
        time_max = BASE_TIME_MAX + offset

        logger.debug(
            "Simulated ping: host=%s, address=%s, count=%d, iteration_index=%d",
            host,
            address,
            count,
            iteration_index,
        )

        return MeasurementResult(
            host=host,
            transmitted=transmitted,
            received=received,
            packet_loss=packet_loss,
            time_min=time_min,
            time_avg=time_avg,
            time_max=time_max,
            time_stddev=TIME_STDDEV,
            timestamp=datetime.now().astimezone(),
            raw_output=format_transcript(
                host,
                address,
                transmitted,
                received,
                packet_loss,
                time_min,
                time_avg,
                time_max,
                TIME_STDDEV,
            ),
            method=SIMULATION_METHOD,
            note=SIMULATION_NOTE,
            warning=warning,
        )
