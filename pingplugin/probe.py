"""Probe abstraction and shared helpers for measurement sources."""

import logging
import socket
import threading
import time
from collections.abc import Callable
from concurrent import futures
from typing import Protocol

from pingplugin.errors import ExecutionCancelled, InvalidArgument, ResolutionFailure
from pingplugin.models import MeasurementResult

logger = logging.getLogger(__name__)

# Address reported when the host name cannot be resolved
PLACEHOLDER_ADDRESS = "192.168.1.1"

DEFAULT_RESOLVE_TIMEOUT = 2.0

# Upper bound on echo requests per measurement
MAX_COUNT = 1000

# How often a pending lookup checks its cancellation token
_POLL_INTERVAL = 0.05

# (host, cancel) -> address
Resolver = Callable[[str, threading.Event | None], str]


class Probe(Protocol):
    """Protocol defining the interface for measurement probes."""

    def measure(
        self,
        host: str,
        count: int,
        iteration_index: int = 0,
        cancel: threading.Event | None = None,
    ) -> MeasurementResult:
        """Produce one measurement for the given host and packet count."""
        ...


def validate_target(host: str, count: int) -> None:
    """Raise InvalidArgument unless host is non-empty and count a positive int."""
    if not isinstance(host, str) or not host.strip():
        raise InvalidArgument("host parameter is required")
    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise InvalidArgument(f"count must be a positive integer, got {count!r}")
    if count > MAX_COUNT:
        raise InvalidArgument(f"count must not exceed {MAX_COUNT}, got {count}")


def _start_lookup(host: str) -> futures.Future:
    """Run getaddrinfo on a daemon thread and return a future for its answer.

    An abandoned lookup must not keep the interpreter alive at exit.
    """
    future: futures.Future = futures.Future()
    future.set_running_or_notify_cancel()

    def lookup():
        try:
            infos = socket.getaddrinfo(host, None)
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(infos)

    threading.Thread(target=lookup, name=f"resolver-{host}", daemon=True).start()
    return future


def resolve_host(
    host: str,
    timeout: float = DEFAULT_RESOLVE_TIMEOUT,
    cancel: threading.Event | None = None,
) -> str:
    """Resolve host to its first address.

    The lookup runs on a daemon thread so it can be bounded by ``timeout``
    and abandoned through ``cancel``.

    Args:
        host: Host name or literal IP address
        timeout: Maximum seconds to wait for the lookup
        cancel: Optional event; when set, the wait is abandoned

    Returns:
        The first address reported by the resolver

    Raises:
        ResolutionFailure: lookup failed, returned nothing, or timed out
        ExecutionCancelled: cancel was set while waiting
    """
    if cancel is not None and cancel.is_set():
        raise ExecutionCancelled(f"resolution of {host} cancelled")

    future = _start_lookup(host)
    deadline = time.monotonic() + timeout

    while not future.done():
        if cancel is not None and cancel.is_set():
            raise ExecutionCancelled(f"resolution of {host} cancelled")
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ResolutionFailure(f"timed out resolving {host} after {timeout}s")
        futures.wait([future], timeout=min(remaining, _POLL_INTERVAL))

    try:
        infos = future.result()
    except (OSError, UnicodeError) as e:
        raise ResolutionFailure(f"could not resolve {host}: {e}") from e

    if not infos:
        raise ResolutionFailure(f"no addresses found for {host}")

    address = infos[0][4][0]
    logger.debug("Resolved host: host=%s, address=%s", host, address)
    return address
