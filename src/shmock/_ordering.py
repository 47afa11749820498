from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, final

from shmock._errors import ConfigurationError, OrderingShortfall, UnexpectedInvocation

if TYPE_CHECKING:
    from shmock._joinpoint import Invocation

logger = logging.getLogger(__name__)


class OrderedSpec(Protocol):
    def accepts(self, invocation: Invocation) -> bool: ...

    def has_capacity(self) -> bool: ...

    def requires_call(self) -> bool: ...

    def verify(self) -> None: ...

    def do_invocation(self, invocation: Invocation) -> Any: ...


class Ordering(Protocol):
    """Resolves which spec governs an incoming call."""

    def add_spec(self, method_name: str, spec: OrderedSpec) -> None: ...

    def next_spec(
        self, method_name: str, invocation: Invocation | None = None
    ) -> OrderedSpec: ...

    def specs(self) -> list[OrderedSpec]: ...

    def reset(self) -> None: ...

    def verify(self) -> None: ...


@final
class Unordered:
    def __init__(self) -> None:
        self._registered: list[tuple[str, OrderedSpec]] = []
        self._by_name: dict[str, list[OrderedSpec]] = {}
        self._converted = False

    def add_spec(self, method_name: str, spec: OrderedSpec) -> None:
        self._registered.append((method_name, spec))
        self._by_name.setdefault(method_name, []).append(spec)

    def next_spec(
        self, method_name: str, invocation: Invocation | None = None
    ) -> OrderedSpec:
        candidates = self._by_name.get(method_name)
        if not candidates:
            raise UnexpectedInvocation(f"Did not expect invocation of {method_name}")

        if len(candidates) == 1 or invocation is None:
            return candidates[-1]

        accepting = [spec for spec in candidates if spec.accepts(invocation)]
        for spec in accepting:
            if spec.has_capacity():
                return spec
        # an exhausted spec with matching arguments reports its own overflow
        if accepting:
            return accepting[0]
        return candidates[-1]

    def specs(self) -> list[OrderedSpec]:
        return [spec for _, spec in self._registered]

    def reset(self) -> None:
        pass

    def verify(self) -> None:
        for spec in self.specs():
            spec.verify()

    def convert_to_sequential(self) -> SequentialByName:
        if self._converted:
            raise ConfigurationError("This ordering was already converted to sequential")
        self._converted = True

        sequential = SequentialByName()
        for method_name, spec in self._registered:
            sequential.add_spec(method_name, spec)
        return sequential


@final
class SequentialByName:
    def __init__(self) -> None:
        self._chain: list[tuple[str, OrderedSpec]] = []
        self._pointer = -1

    def add_spec(self, method_name: str, spec: OrderedSpec) -> None:
        self._chain.append((method_name, spec))

    def next_spec(
        self, method_name: str, invocation: Invocation | None = None
    ) -> OrderedSpec:
        _ = invocation
        if self._pointer + 1 < len(self._chain):
            next_name, next_spec = self._chain[self._pointer + 1]
            if next_name == method_name:
                self._pointer += 1
                return next_spec

        if self._pointer == -1:
            raise UnexpectedInvocation(
                f"Unexpected method invocation {method_name} at call index "
                f"{self._pointer}, haven't seen any method calls yet"
            )

        current_name, current_spec = self._chain[self._pointer]
        if current_name != method_name:
            seen = "\n".join(self.methods_so_far())
            raise UnexpectedInvocation(
                f"Unexpected method invocation {method_name} at call index "
                f"{self._pointer}, seen method calls so far:\n{seen}"
            )

        return current_spec

    def methods_so_far(self) -> list[str]:
        return [name for name, _ in self._chain[: self._pointer + 1]]

    def specs(self) -> list[OrderedSpec]:
        return [spec for _, spec in self._chain]

    def reset(self) -> None:
        self._pointer = -1

    def verify(self) -> None:
        for index in range(self._pointer + 1, len(self._chain)):
            method_name, spec = self._chain[index]
            if spec.requires_call():
                raise OrderingShortfall(
                    f"Expected {method_name} at call index {index}, but the call "
                    f"sequence stopped after: {', '.join(self.methods_so_far()) or 'nothing'}"
                )
        for spec in self.specs():
            spec.verify()


@final
class OrderingSelector:
    """Owns the one-time choice of ordering strategy for a mock.

    The first registered spec implicitly selects ``Unordered``. An explicit
    directive may follow an implicit choice once; a second explicit directive
    is a configuration error.
    """

    def __init__(self) -> None:
        self._ordering: Unordered | SequentialByName | None = None
        self._explicit = False

    @property
    def ordering(self) -> Unordered | SequentialByName:
        if self._ordering is None:
            self._ordering = Unordered()
        return self._ordering

    @property
    def is_sequential(self) -> bool:
        return isinstance(self._ordering, SequentialByName)

    def register(self, method_name: str, spec: OrderedSpec) -> None:
        self.ordering.add_spec(method_name, spec)

    def order_matters(self) -> None:
        self._claim("order_matters")
        if self._ordering is None:
            self._ordering = SequentialByName()
        elif isinstance(self._ordering, Unordered):
            logger.debug("Converting unordered specs to a sequential ordering")
            self._ordering = self._ordering.convert_to_sequential()

    def order_doesnt_matter(self) -> None:
        self._claim("order_doesnt_matter")
        if self._ordering is None:
            self._ordering = Unordered()
        elif isinstance(self._ordering, SequentialByName):
            raise ConfigurationError(
                "Ordering is already sequential and cannot be made unordered"
            )

    def _claim(self, directive: str) -> None:
        if self._explicit:
            raise ConfigurationError(
                f"Cannot call {directive}(): the ordering strategy was already set"
            )
        self._explicit = True
