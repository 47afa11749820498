from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from types import TracebackType
from typing import Any, Self, final

from shmock._config import ShmockConfig
from shmock._controller import MockClass, MockInstance
from shmock._errors import VerificationError
from shmock._policy import Policy

logger = logging.getLogger(__name__)


@final
class Shmock:
    """Session holding configuration, policies and mocks awaiting verification.

    Example:
        with Shmock() as shmock:
            calculator = shmock.create(Calculator, lambda c: c.add(1, 2).return_value(3))
            assert calculator.add(1, 2) == 3
        # leaving the block verifies every mock created in it
    """

    def __init__(
        self, config: ShmockConfig | None = None, policies: Iterable[Policy] = ()
    ) -> None:
        self._config = config or ShmockConfig()
        self._policies: list[Policy] = list(policies)
        self._outstanding: list[MockClass | MockInstance] = []

    @property
    def config(self) -> ShmockConfig:
        return self._config

    @property
    def policies(self) -> tuple[Policy, ...]:
        return tuple(self._policies)

    @property
    def outstanding(self) -> tuple[MockClass | MockInstance, ...]:
        return tuple(self._outstanding)

    def add_policy(self, policy: Policy) -> None:
        self._policies.append(policy)

    def clear_policies(self) -> None:
        self._policies.clear()

    def mock(self, target: type | str) -> MockInstance:
        """Start building an instance mock; call ``replay()`` when done."""
        controller = MockInstance(self, target)
        self._outstanding.append(controller)
        return controller

    def mock_class(self, target: type | str) -> MockClass:
        """Start building a class mock; call ``replay()`` when done."""
        controller = MockClass(self, target)
        self._outstanding.append(controller)
        return controller

    def create(
        self, target: type | str, build: Callable[[MockInstance], Any] | None = None
    ) -> Any:
        controller = self.mock(target)
        if build is not None:
            build(controller)
        return controller.replay()

    def create_class(
        self, target: type | str, build: Callable[[MockClass], Any] | None = None
    ) -> type:
        controller = self.mock_class(target)
        if build is not None:
            build(controller)
        return controller.replay()

    def verify(self) -> None:
        mocks, self._outstanding = self._outstanding, []
        logger.debug("Verifying %d outstanding mock(s)", len(mocks))

        failures: list[AssertionError] = []
        for mock in mocks:
            try:
                mock.verify()
            except AssertionError as exc:
                failures.append(exc)

        if failures:
            details = "\n".join(f"  {mock_failure}" for mock_failure in failures)
            raise VerificationError(
                f"{len(failures)} mock expectation(s) were not met:\n{details}",
                tuple(failures),
            ) from failures[0]

    def discard(self) -> int:
        """Forget outstanding mocks without verifying them."""
        count = len(self._outstanding)
        self._outstanding.clear()
        return count

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        try:
            if exc_type is None:
                self.verify()
            else:
                self.discard()
        finally:
            self.clear_policies()

    async def __aenter__(self) -> Self:
        return self.__enter__()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.__exit__(exc_type, exc_value, traceback)


def create_mock(
    session: Shmock, target: type | str, build: Callable[[MockInstance], Any] | None = None
) -> Any:
    return session.create(target, build)


def create_mock_class(
    session: Shmock, target: type | str, build: Callable[[MockClass], Any] | None = None
) -> type:
    return session.create_class(target, build)
