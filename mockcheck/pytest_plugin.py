"""
mockcheck — pytest plugin

Enable in a conftest.py:

    pytest_plugins = ["mockcheck.pytest_plugin"]

Provides a function-scoped ``constraint_verifier`` fixture. Each test gets
its own verifier, so call histories and extraction caches never leak
between tests.

    def test_checkout(constraint_verifier):
        gateway = create_autospec(PaymentGateway, instance=True)
        checkout(gateway)
        assert_constraints_satisfied(gateway, constraint_verifier)

Set ``MOCKCHECK_CONFIG`` to a YAML file to configure the fixture's verifier.
The ``logging`` section of the same configuration is applied once per test
session through setup_logging(), and undone when the session ends.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import pytest
import structlog

from mockcheck.config import MockcheckConfig, load_config
from mockcheck.telemetry.logging import setup_logging
from mockcheck.verification.verifier import ConstraintVerifier

_saved_logging_key = pytest.StashKey[tuple[dict[str, Any], list[logging.Handler], int]]()


def pytest_configure(config: pytest.Config) -> None:
    mockcheck_logger = logging.getLogger("mockcheck")
    config.stash[_saved_logging_key] = (
        structlog.get_config(),
        list(mockcheck_logger.handlers),
        mockcheck_logger.level,
    )
    setup_logging(load_config(os.environ.get("MOCKCHECK_CONFIG")).logging)


def pytest_unconfigure(config: pytest.Config) -> None:
    saved = config.stash.get(_saved_logging_key, None)
    if saved is None:
        return
    structlog_config, handlers, level = saved
    structlog.configure(**structlog_config)
    mockcheck_logger = logging.getLogger("mockcheck")
    mockcheck_logger.handlers[:] = handlers
    mockcheck_logger.setLevel(level)


@pytest.fixture
def mockcheck_config() -> MockcheckConfig:
    return load_config(os.environ.get("MOCKCHECK_CONFIG"))


@pytest.fixture
def constraint_verifier(mockcheck_config: MockcheckConfig) -> ConstraintVerifier:
    return ConstraintVerifier(config=mockcheck_config.verifier)
