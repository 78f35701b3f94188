"""Runtime settings for the ping plugin, read from the environment."""

import logging
import os
from dataclasses import dataclass

from pingplugin.probe import DEFAULT_RESOLVE_TIMEOUT, Probe

logger = logging.getLogger(__name__)

PROBE_SIMULATION = "simulation"
PROBE_ICMP = "icmp"


@dataclass
class Settings:
    probe: str = PROBE_SIMULATION
    resolve_timeout: float = DEFAULT_RESOLVE_TIMEOUT
    history_limit: int | None = None  # None keeps every iteration
    definition_path: str | None = None  # None uses the bundled plugin.json

    # icmp probe tuning
    icmp_interval: float = 0.2
    icmp_timeout: float = 1.0
    icmp_privileged: bool = False

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        """Build settings from PINGPLUGIN_* variables.

        Malformed values are logged and replaced by the defaults.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        probe = env.get("PINGPLUGIN_PROBE", defaults.probe).strip().lower()
        if probe not in (PROBE_SIMULATION, PROBE_ICMP):
            logger.warning("Unknown PINGPLUGIN_PROBE=%r, using %s", probe, defaults.probe)
            probe = defaults.probe

        return cls(
            probe=probe,
            resolve_timeout=_positive_float(
                env, "PINGPLUGIN_RESOLVE_TIMEOUT", defaults.resolve_timeout
            ),
            history_limit=_optional_positive_int(env, "PINGPLUGIN_HISTORY_LIMIT"),
            definition_path=env.get("PINGPLUGIN_DEFINITION") or None,
            icmp_interval=_positive_float(env, "PINGPLUGIN_ICMP_INTERVAL", defaults.icmp_interval),
            icmp_timeout=_positive_float(env, "PINGPLUGIN_ICMP_TIMEOUT", defaults.icmp_timeout),
            icmp_privileged=env.get("PINGPLUGIN_ICMP_PRIVILEGED", "").strip().lower()
            in ("1", "true", "yes"),
        )


def _positive_float(env, name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Non-positive %s=%r, using %s", name, raw, default)
        return default
    return value


def _optional_positive_int(env, name: str) -> int | None:
    raw = env.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, keeping history unbounded", name, raw)
        return None
    if value < 1:
        logger.warning("Non-positive %s=%r, keeping history unbounded", name, raw)
        return None
    return value


def select_probe(settings: Settings) -> Probe:
    """Create the configured probe, falling back to the simulation.

    The icmp probe is only attempted when explicitly requested; a
    configuration error there degrades to the simulated probe.
    """
    from pingplugin.simulated_probe import SimulatedProbe

    if settings.probe == PROBE_ICMP:
        try:
            from pingplugin.probe_icmp import IcmpProbe

            probe = IcmpProbe(
                interval=settings.icmp_interval,
                timeout=settings.icmp_timeout,
                privileged=settings.icmp_privileged,
                resolve_timeout=settings.resolve_timeout,
            )
            logger.info("IcmpProbe initialized successfully")
            return probe
        except ImportError as e:
            logger.warning("IcmpProbe unavailable: %s", e)
        except ValueError as e:
            logger.error("IcmpProbe configuration invalid: %s", e)

    logger.info("Using SimulatedProbe")
    return SimulatedProbe(resolve_timeout=settings.resolve_timeout)
