"""Real ICMP probe for the ping plugin, built on icmplib."""

import logging
import statistics
import threading
from datetime import datetime

from icmplib import ICMPLibError, NameLookupError, SocketPermissionError, ping

from pingplugin.errors import ExecutionCancelled, ResolutionFailure
from pingplugin.models import MeasurementResult, loss_percent
from pingplugin.probe import DEFAULT_RESOLVE_TIMEOUT, Resolver, resolve_host, validate_target

logger = logging.getLogger(__name__)

ICMP_METHOD = "icmp"


def summarize_host(host, target: str) -> str:
    """Render an icmplib Host as a short ping-style transcript (pure function)."""
    lines = [f"PING {target} ({host.address})"]
    for seq, rtt in enumerate(host.rtts, start=1):
        lines.append(f"reply from {host.address}: icmp_seq={seq} time={rtt:.1f} ms")

    lines.append("")
    lines.append(f"--- {target} ping statistics ---")
    lines.append(
        f"{host.packets_sent} packets transmitted, {host.packets_received} received, "
        f"{loss_percent(host.packets_sent, host.packets_received):.1f}% packet loss"
    )
    if host.packets_received:
        lines.append(
            f"rtt min/avg/max = {host.min_rtt:.3f}/{host.avg_rtt:.3f}/{host.max_rtt:.3f} ms"
        )
    return "\n".join(lines) + "\n"


class IcmpProbe:
    """Probe that sends real ICMP echo requests through icmplib.

    Unprivileged sockets are used by default, which works on Linux when
    ``net.ipv4.ping_group_range`` covers the current user and on macOS.

    The host is resolved first through the same bounded lookup the
    simulation uses, and icmplib is handed the resulting address.

    Failures (unresolvable host, missing socket permission, other socket
    errors) do not raise. They produce a result with every packet lost and
    a ``warning`` describing the cause.
    """

    def __init__(
        self,
        interval: float = 0.2,
        timeout: float = 1.0,
        privileged: bool = False,
        resolver: Resolver | None = None,
        resolve_timeout: float = DEFAULT_RESOLVE_TIMEOUT,
    ):
        """Initialize ICMP probe.

        Args:
            interval: Seconds between echo requests
            timeout: Seconds to wait for each reply
            privileged: Use raw sockets (requires root or CAP_NET_RAW)
            resolver: Callable ``(host, cancel) -> address``. Defaults to
                      resolve_host bounded by resolve_timeout.
            resolve_timeout: Seconds allowed for the default resolver
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if resolve_timeout <= 0:
            raise ValueError("resolve_timeout must be positive")

        self.interval = interval
        self.timeout = timeout
        self.privileged = privileged
        self.resolve_timeout = resolve_timeout
        self._resolver = resolver or self._default_resolver

        logger.debug(
            "IcmpProbe initialized: interval=%.2fs, timeout=%.2fs, privileged=%s",
            interval,
            timeout,
            privileged,
        )

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
        if cancel is not None and cancel.is_set():
            raise ExecutionCancelled(f"ping of {host} cancelled")

        timestamp = datetime.now().astimezone()

        try:
            address = self._resolver(host, cancel)
        except ResolutionFailure as e:
            logger.warning("Resolution failed: host=%s, error=%s", host, e)
            return self._failed(host, count, timestamp, str(e))

        if cancel is not None and cancel.is_set():
            raise ExecutionCancelled(f"ping of {host} cancelled")

        try:
            logger.debug("Executing icmp ping: host=%s, address=%s, count=%d", host, address, count)
            result = ping(
                address,
                count=count,
                interval=self.interval,
                timeout=self.timeout,
                privileged=self.privileged,
            )
        except NameLookupError as e:
            logger.warning("Name lookup failed: host=%s, error=%s", host, e)
            return self._failed(host, count, timestamp, f"could not resolve {host}: {e}")
        except SocketPermissionError as e:
            logger.warning("Insufficient permissions for icmp: host=%s, error=%s", host, e)
            return self._failed(host, count, timestamp, f"socket permission denied: {e}")
        except ICMPLibError as e:
            logger.warning("Ping error: host=%s, error=%s", host, e, exc_info=True)
            return self._failed(host, count, timestamp, f"ping failed: {e}")

        stddev = statistics.pstdev(result.rtts) if result.rtts else 0.0
        logger.debug(
            "Ping completed: host=%s, sent=%d, received=%d",
            host,
            result.packets_sent,
            result.packets_received,
        )

        return MeasurementResult(
            host=host,
            transmitted=result.packets_sent,
            received=result.packets_received,
            packet_loss=loss_percent(result.packets_sent, result.packets_received),
            time_min=result.min_rtt,
            time_avg=result.avg_rtt,
            time_max=result.max_rtt,
            time_stddev=stddev,
            timestamp=timestamp,
            raw_output=summarize_host(result, host),
            method=ICMP_METHOD,
        )

    def _failed(self, host: str, count: int, timestamp: datetime, warning: str) -> MeasurementResult:
        return MeasurementResult(
            host=host,
            transmitted=count,
            received=0,
            packet_loss=100.0,
            time_min=0.0,
            time_avg=0.0,
            time_max=0.0,
            time_stddev=0.0,
            timestamp=timestamp,
            raw_output=f"PING {host}\n{warning}\n",
            method=ICMP_METHOD,
            warning=warning,
        )
