from __future__ import annotations

from typing import Protocol, final

from shmock._errors import FrequencyOverflow, FrequencyShortfall


class Frequency(Protocol):
    """A call-count contract.

    Overflow fails immediately in ``record_call``; shortfall can only be
    detected in ``verify``.
    """

    @property
    def calls(self) -> int: ...

    def record_call(self) -> None: ...

    def verify(self) -> None: ...

    def has_capacity(self) -> bool: ...

    def requires_call(self) -> bool: ...


@final
class ExactCount:
    def __init__(self, count: int, method_name: str) -> None:
        if count < 0:
            raise ValueError(f"Call count for {method_name} cannot be negative: {count}")
        self._expected = count
        self._actual = 0
        self._method_name = method_name

    @property
    def calls(self) -> int:
        return self._actual

    @property
    def expected(self) -> int:
        return self._expected

    def record_call(self) -> None:
        self._actual += 1
        if self._actual > self._expected:
            raise FrequencyOverflow(
                f"Didn't expect {self._method_name} to be called more than "
                f"{self._expected} times"
            )

    def verify(self) -> None:
        if self._actual != self._expected:
            raise FrequencyShortfall(
                f"Expected {self._method_name} to be called exactly "
                f"{self._expected} times, called {self._actual} times"
            )

    def has_capacity(self) -> bool:
        return self._actual < self._expected

    def requires_call(self) -> bool:
        return self._expected > 0

    def __repr__(self) -> str:
        return f"ExactCount({self._expected}, calls={self._actual})"


@final
class Unbounded:
    def __init__(self) -> None:
        self._actual = 0

    @property
    def calls(self) -> int:
        return self._actual

    def record_call(self) -> None:
        self._actual += 1

    def verify(self) -> None:
        pass

    def has_capacity(self) -> bool:
        return True

    def requires_call(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"Unbounded(calls={self._actual})"


@final
class AtLeastOnce:
    def __init__(self, method_name: str) -> None:
        self._actual = 0
        self._method_name = method_name

    @property
    def calls(self) -> int:
        return self._actual

    def record_call(self) -> None:
        self._actual += 1

    def verify(self) -> None:
        if self._actual == 0:
            raise FrequencyShortfall(
                f"Expected {self._method_name} to be called at least once"
            )

    def has_capacity(self) -> bool:
        return True

    def requires_call(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"AtLeastOnce(calls={self._actual})"


def frequency_for(times: int | None, method_name: str) -> Frequency:
    if times is None:
        return Unbounded()
    return ExactCount(times, method_name)
