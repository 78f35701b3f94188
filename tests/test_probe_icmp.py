"""Unit tests for IcmpProbe with icmplib patched out."""

import logging
import threading
from types import SimpleNamespace

import pytest
from icmplib import ICMPLibError, NameLookupError, SocketPermissionError

from pingplugin import probe_icmp
from pingplugin.errors import ExecutionCancelled, InvalidArgument, ResolutionFailure
from pingplugin.probe_icmp import ICMP_METHOD, IcmpProbe, summarize_host


RESOLVED = "93.184.216.34"


def static_resolver(host, cancel=None):
    return RESOLVED


def make_probe(**kwargs):
    kwargs.setdefault("resolver", static_resolver)
    return IcmpProbe(**kwargs)


def fake_host(rtts, sent=4, address=RESOLVED):
    return SimpleNamespace(
        address=address,
        packets_sent=sent,
        packets_received=len(rtts),
        rtts=list(rtts),
        min_rtt=min(rtts) if rtts else 0.0,
        avg_rtt=round(sum(rtts) / len(rtts), 3) if rtts else 0.0,
        max_rtt=max(rtts) if rtts else 0.0,
    )


@pytest.fixture
def ping_calls(monkeypatch):
    """Patch icmplib.ping to return a canned host and record its arguments."""
    calls = []
    host = fake_host([10.0, 12.0, 14.0])

    def fake_ping(address, **kwargs):
        calls.append((address, kwargs))
        return host

    monkeypatch.setattr(probe_icmp, "ping", fake_ping)
    return calls


class TestIcmpProbeInitialization:
    """Test IcmpProbe configuration."""

    def test_defaults(self):
        probe = IcmpProbe()
        assert probe.interval == 0.2
        assert probe.timeout == 1.0
        assert probe.privileged is False

    def test_invalid_interval(self):
        with pytest.raises(ValueError, match="interval must be positive"):
            IcmpProbe(interval=0)

    def test_invalid_timeout(self):
        with pytest.raises(ValueError, match="timeout must be positive"):
            IcmpProbe(timeout=-1)

    def test_invalid_resolve_timeout(self):
        with pytest.raises(ValueError, match="resolve_timeout must be positive"):
            IcmpProbe(resolve_timeout=0)


class TestIcmpProbeMeasure:
    """Test measurement conversion from icmplib results."""

    def test_statistics_from_host(self, ping_calls):
        result = make_probe().measure("example.com", 4)

        assert result.method == ICMP_METHOD
        assert result.transmitted == 4
        assert result.received == 3
        assert result.packet_loss == 25.0
        assert result.time_min == 10.0
        assert result.time_avg == 12.0
        assert result.time_max == 14.0
        assert result.time_stddev == pytest.approx(1.63299, rel=1e-4)
        assert result.warning is None

    def test_passes_probe_settings(self, ping_calls):
        make_probe(interval=0.5, timeout=2.0, privileged=True).measure("example.com", 3)

        assert ping_calls == [
            (RESOLVED, {"count": 3, "interval": 0.5, "timeout": 2.0, "privileged": True})
        ]

    def test_iteration_index_ignored(self, ping_calls):
        first = make_probe().measure("example.com", 4, iteration_index=0)
        later = make_probe().measure("example.com", 4, iteration_index=9)

        assert first.time_avg == later.time_avg

    def test_all_lost(self, monkeypatch):
        monkeypatch.setattr(probe_icmp, "ping", lambda address, **kwargs: fake_host([]))

        result = make_probe().measure("example.com", 4)
        assert result.received == 0
        assert result.packet_loss == 100.0
        assert result.time_stddev == 0.0

    @pytest.mark.parametrize(
        "error, fragment",
        [
            (NameLookupError("bad.invalid"), "could not resolve bad.invalid"),
            (SocketPermissionError(False), "socket permission denied"),
            (ICMPLibError("boom"), "ping failed: boom"),
        ],
    )
    def test_library_errors_are_not_fatal(self, monkeypatch, error, fragment):
        def failing_ping(address, **kwargs):
            raise error

        monkeypatch.setattr(probe_icmp, "ping", failing_ping)

        result = make_probe().measure("bad.invalid", 4)
        assert result.transmitted == 4
        assert result.received == 0
        assert result.packet_loss == 100.0
        assert fragment in result.warning
        assert fragment in result.raw_output

    def test_empty_host_rejected(self, ping_calls):
        with pytest.raises(InvalidArgument):
            make_probe().measure("", 4)
        assert ping_calls == []

    def test_cancelled_before_send(self, ping_calls):
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(ExecutionCancelled):
            make_probe().measure("example.com", 4, cancel=cancel)
        assert ping_calls == []

    def test_cancelled_during_resolution(self, ping_calls):
        cancel = threading.Event()

        def cancelling_resolver(host, token):
            token.set()
            return RESOLVED

        with pytest.raises(ExecutionCancelled):
            make_probe(resolver=cancelling_resolver).measure("example.com", 4, cancel=cancel)
        assert ping_calls == []


class TestIcmpResolution:
    """Test that the host is resolved before icmplib sees it."""

    def test_ping_receives_resolved_address(self, ping_calls):
        seen = []

        def recording_resolver(host, cancel):
            seen.append(host)
            return "10.9.8.7"

        result = make_probe(resolver=recording_resolver).measure("example.com", 2)

        assert seen == ["example.com"]
        assert ping_calls[0][0] == "10.9.8.7"
        assert result.host == "example.com"

    def test_resolver_receives_cancel_token(self, ping_calls):
        tokens = []
        cancel = threading.Event()

        def recording_resolver(host, token):
            tokens.append(token)
            return RESOLVED

        make_probe(resolver=recording_resolver).measure("example.com", 2, cancel=cancel)

        assert tokens == [cancel]

    def test_resolution_failure_skips_send(self, ping_calls, caplog):
        def failing_resolver(host, cancel):
            raise ResolutionFailure(f"timed out resolving {host} after 2.0s")

        with caplog.at_level(logging.WARNING, logger="pingplugin.probe_icmp"):
            result = make_probe(resolver=failing_resolver).measure("slow.example", 4)

        assert ping_calls == []
        assert result.transmitted == 4
        assert result.received == 0
        assert result.packet_loss == 100.0
        assert "timed out resolving slow.example" in result.warning
        assert "Resolution failed" in caplog.text

    def test_default_resolver_is_bounded(self, monkeypatch, ping_calls):
        calls = []

        def fake_resolve(host, timeout, cancel):
            calls.append((host, timeout, cancel))
            return RESOLVED

        monkeypatch.setattr(probe_icmp, "resolve_host", fake_resolve)

        IcmpProbe(resolve_timeout=0.3).measure("example.com", 1)

        assert calls == [("example.com", 0.3, None)]
        assert ping_calls[0][0] == RESOLVED

class TestSummarizeHost:
    def test_transcript(self):
        text = summarize_host(fake_host([10.0, 12.0, 14.0]), "example.com")

        assert text.startswith("PING example.com (93.184.216.34)")
        assert text.count("icmp_seq=") == 3
        assert "4 packets transmitted, 3 received, 25.0% packet loss" in text
        assert "rtt min/avg/max = 10.000/12.000/14.000 ms" in text

    def test_no_rtt_line_without_replies(self):
        text = summarize_host(fake_host([]), "example.com")
        assert "rtt" not in text
