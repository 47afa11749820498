"""pytest plugin for shmock.

Fixtures:
    shmock: a fresh Shmock session per test, verified at teardown
    shmock_config: ShmockConfig built from ini options
    shmock_policies: policies applied to every session (override in conftest.py)

Configuration (pytest.ini or pyproject.toml):
    shmock_strict_method_checks: reject methods the target does not declare (default: true)
    shmock_strict_equality: literal arguments must also agree on type (default: false)
    shmock_diff_threshold: render a diff for values longer than this (default: 100)
"""

from __future__ import annotations

from collections.abc import Generator, Iterator

import pytest

from shmock._config import ShmockConfig
from shmock._policy import Policy
from shmock._session import Shmock

_CALL_FAILED = pytest.StashKey[bool]()


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addini(
        "shmock_strict_method_checks",
        "Reject expectations on methods the mocked class does not declare",
        type="bool",
        default=True,
    )
    parser.addini(
        "shmock_strict_equality",
        "Literal expected arguments must have the same type as the actual ones",
        type="bool",
        default=False,
    )
    parser.addini(
        "shmock_diff_threshold",
        "Failure messages include a diff when a value renders longer than this",
        default="100",
    )


@pytest.hookimpl(wrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[None]
) -> Generator[None, pytest.TestReport, pytest.TestReport]:
    report = yield
    if report.when == "call":
        item.stash[_CALL_FAILED] = report.failed
    return report


@pytest.fixture
def shmock_config(request: pytest.FixtureRequest) -> ShmockConfig:
    """Session configuration from ini options; override in conftest.py."""
    config = request.config
    return ShmockConfig(
        strict_method_checks=bool(config.getini("shmock_strict_method_checks")),
        strict_equality=bool(config.getini("shmock_strict_equality")),
        diff_threshold=int(config.getini("shmock_diff_threshold") or 100),
    )


@pytest.fixture
def shmock_policies() -> list[Policy]:
    return []


@pytest.fixture
def shmock(
    request: pytest.FixtureRequest,
    shmock_config: ShmockConfig,
    shmock_policies: list[Policy],
) -> Iterator[Shmock]:
    """A Shmock session whose mocks are verified when the test passes."""
    session = Shmock(shmock_config, shmock_policies)
    yield session
    if request.node.stash.get(_CALL_FAILED, False):
        # the test already failed, verification would only add noise
        session.discard()
    else:
        session.verify()
