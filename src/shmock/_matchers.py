from __future__ import annotations

import difflib
import pprint
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, final


class Constraint(ABC):
    """An opaque predicate usable in place of a literal expected argument."""

    @abstractmethod
    def evaluate(self, actual: Any) -> bool: ...

    @abstractmethod
    def describe(self) -> str: ...

    def __repr__(self) -> str:
        return f"<{self.describe()}>"


@final
class _Anything(Constraint):
    def evaluate(self, actual: Any) -> bool:
        return True

    def describe(self) -> str:
        return "anything"


@final
class _EqualTo(Constraint):
    def __init__(self, expected: Any) -> None:
        self._expected = expected

    def evaluate(self, actual: Any) -> bool:
        return bool(actual == self._expected)

    def describe(self) -> str:
        return f"equal to {self._expected!r}"


@final
class _IdenticalTo(Constraint):
    def __init__(self, expected: Any) -> None:
        self._expected = expected

    def evaluate(self, actual: Any) -> bool:
        return actual is self._expected

    def describe(self) -> str:
        return f"identical to {self._expected!r}"


@final
class _InstanceOf(Constraint):
    def __init__(self, kind: type | tuple[type, ...]) -> None:
        self._kind = kind

    def evaluate(self, actual: Any) -> bool:
        return isinstance(actual, self._kind)

    def describe(self) -> str:
        return f"instance of {self._kind!r}"


@final
class _Compare(Constraint):
    def __init__(self, bound: Any, op: Callable[[Any, Any], bool], label: str) -> None:
        self._bound = bound
        self._op = op
        self._label = label

    def evaluate(self, actual: Any) -> bool:
        try:
            return bool(self._op(actual, self._bound))
        except TypeError:
            return False

    def describe(self) -> str:
        return f"{self._label} {self._bound!r}"


@final
class _MatchesRegex(Constraint):
    def __init__(self, pattern: str | re.Pattern[str]) -> None:
        self._pattern = re.compile(pattern)

    def evaluate(self, actual: Any) -> bool:
        return isinstance(actual, str) and self._pattern.search(actual) is not None

    def describe(self) -> str:
        return f"matching /{self._pattern.pattern}/"


@final
class _Contains(Constraint):
    def __init__(self, item: Any) -> None:
        self._item = item

    def evaluate(self, actual: Any) -> bool:
        try:
            return self._item in actual
        except TypeError:
            return False

    def describe(self) -> str:
        return f"containing {self._item!r}"


@final
class _Callback(Constraint):
    def __init__(self, predicate: Callable[[Any], bool]) -> None:
        self._predicate = predicate

    def evaluate(self, actual: Any) -> bool:
        return bool(self._predicate(actual))

    def describe(self) -> str:
        name = getattr(self._predicate, "__name__", repr(self._predicate))
        return f"accepted by {name}"


@final
class _Not(Constraint):
    def __init__(self, inner: Constraint) -> None:
        self._inner = inner

    def evaluate(self, actual: Any) -> bool:
        return not self._inner.evaluate(actual)

    def describe(self) -> str:
        return f"not {self._inner.describe()}"


@final
class _AnyOf(Constraint):
    def __init__(self, members: Sequence[Any]) -> None:
        self._members = tuple(members)

    def evaluate(self, actual: Any) -> bool:
        return any(_evaluate_loose(m, actual) for m in self._members)

    def describe(self) -> str:
        return " or ".join(_describe(m) for m in self._members)


@final
class _AllOf(Constraint):
    def __init__(self, members: Sequence[Any]) -> None:
        self._members = tuple(members)

    def evaluate(self, actual: Any) -> bool:
        return all(_evaluate_loose(m, actual) for m in self._members)

    def describe(self) -> str:
        return " and ".join(_describe(m) for m in self._members)


def _evaluate_loose(expected: Any, actual: Any) -> bool:
    if isinstance(expected, Constraint):
        return expected.evaluate(actual)
    return bool(expected == actual)


def _describe(expected: Any) -> str:
    if isinstance(expected, Constraint):
        return expected.describe()
    return repr(expected)


def anything() -> Constraint:
    return _Anything()


def equal_to(expected: Any) -> Constraint:
    return _EqualTo(expected)


def identical_to(expected: Any) -> Constraint:
    return _IdenticalTo(expected)


def instance_of(kind: type | tuple[type, ...]) -> Constraint:
    return _InstanceOf(kind)


def greater_than(bound: Any) -> Constraint:
    return _Compare(bound, lambda a, b: a > b, "greater than")


def less_than(bound: Any) -> Constraint:
    return _Compare(bound, lambda a, b: a < b, "less than")


def matches_regex(pattern: str | re.Pattern[str]) -> Constraint:
    return _MatchesRegex(pattern)


def contains(item: Any) -> Constraint:
    return _Contains(item)


def callback(predicate: Callable[[Any], bool]) -> Constraint:
    return _Callback(predicate)


def not_(inner: Constraint) -> Constraint:
    return _Not(inner)


def any_of(*members: Any) -> Constraint:
    return _AnyOf(members)


def all_of(*members: Any) -> Constraint:
    return _AllOf(members)


@final
class ArgumentMatcher:
    """Compares expected arguments with actual values.

    Literals compare with ``==``; in strict mode their types must also be
    identical. Constraints are evaluated against the actual value.
    """

    def __init__(self, *, strict: bool = False, diff_threshold: int = 100) -> None:
        self._strict = strict
        self._diff_threshold = diff_threshold

    def matches(self, expected: Any, actual: Any) -> bool:
        if isinstance(expected, Constraint):
            return expected.evaluate(actual)
        if self._strict and type(expected) is not type(actual):
            return False
        return bool(expected == actual)

    def matches_all(
        self, expected: Mapping[int | str, Any], actual: Mapping[int | str, Any]
    ) -> bool:
        if self.extra_arguments(expected, actual):
            return False
        return self.first_mismatch(expected, actual) is None

    @staticmethod
    def extra_arguments(
        expected: Mapping[int | str, Any], actual: Mapping[int | str, Any]
    ) -> list[int | str]:
        """Actual argument keys the expectation does not name.

        An empty expectation accepts any arguments.
        """
        if not expected:
            return []
        return [key for key in actual if key not in expected]

    def first_mismatch(
        self, expected: Mapping[int | str, Any], actual: Mapping[int | str, Any]
    ) -> tuple[int, int | str, Any, Any] | None:
        # arguments absent from the actual call are compared as None
        for position, (key, expected_value) in enumerate(expected.items()):
            actual_value = actual.get(key)
            if not self.matches(expected_value, actual_value):
                return position, key, expected_value, actual_value
        return None

    def render(self, value: Any) -> str:
        if isinstance(value, Constraint):
            return f"<{value.describe()}>"
        return pprint.pformat(value, width=80, sort_dicts=True)

    def explain(self, expected: Any, actual: Any) -> str:
        expected_str = self.render(expected)
        actual_str = self.render(actual)
        message = (
            f"expected {expected_str} ({type(expected).__name__}), "
            f"got {actual_str} ({type(actual).__name__})"
        )
        if len(expected_str) > self._diff_threshold:
            message += "\nDiff:\n" + self.diff(expected_str, actual_str)
        return message

    @staticmethod
    def diff(expected: str, actual: str) -> str:
        lines = difflib.unified_diff(
            expected.splitlines(),
            actual.splitlines(),
            fromfile="expected",
            tofile="actual",
            lineterm="",
        )
        return "\n".join(lines)

    def closest_diff(self, candidates: Iterable[Any], actual: Any) -> str | None:
        actual_str = self.render(actual)
        closest: str | None = None
        for candidate in candidates:
            candidate_diff = self.diff(self.render(candidate), actual_str)
            if closest is None or len(candidate_diff) < len(closest):
                closest = candidate_diff
        return closest
