"""Shared fixtures for pingplugin tests."""

import logging

import pytest

from pingplugin.errors import ResolutionFailure
from pingplugin.session import Session
from pingplugin.simulated_probe import SimulatedProbe

RESOLVED_ADDRESS = "93.184.216.34"


def static_resolver(host, cancel=None):
    """Resolver that never touches the network."""
    return RESOLVED_ADDRESS


def failing_resolver(host, cancel=None):
    raise ResolutionFailure(f"could not resolve {host}: Name or service not known")


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo configure_logging so caplog keeps seeing pingplugin records."""
    package_logger = logging.getLogger("pingplugin")
    saved = package_logger.handlers[:], package_logger.level, package_logger.propagate
    yield package_logger
    for handler in package_logger.handlers[:]:
        if handler not in saved[0]:
            handler.close()
    package_logger.handlers[:] = saved[0]
    package_logger.setLevel(saved[1])
    package_logger.propagate = saved[2]


@pytest.fixture
def probe():
    return SimulatedProbe(resolver=static_resolver)


@pytest.fixture
def unresolvable_probe():
    return SimulatedProbe(resolver=failing_resolver)


@pytest.fixture
def session(probe):
    return Session(probe)
