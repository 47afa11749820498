from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, final, runtime_checkable


@dataclass(frozen=True, kw_only=True, slots=True)
class Invocation:
    """One call that reached a mocked method's underlying behavior."""

    target: Any
    method_name: str
    args: tuple[Any, ...] = field(default_factory=tuple)
    kwargs: dict[str, Any] = field(default_factory=dict)

    @property
    def parameters(self) -> list[Any]:
        return list(self.args)

    def call_with(self, fn: Callable[..., Any]) -> Any:
        return fn(*self.args, **self.kwargs)


@runtime_checkable
class Decorator(Protocol):
    def decorate(self, join_point: JoinPoint) -> Any: ...


@final
class CallableDecorator:
    def __init__(self, fn: Callable[[JoinPoint], Any]) -> None:
        self._fn = fn

    def decorate(self, join_point: JoinPoint) -> Any:
        return self._fn(join_point)


def as_decorator(decorator: Decorator | Callable[[JoinPoint], Any]) -> Decorator:
    if isinstance(decorator, Decorator):
        return decorator
    return CallableDecorator(decorator)


@final
class JoinPoint:
    """An in-flight invocation threaded through a chain of decorators.

    ``execute`` enters the next unvisited decorator, or calls the underlying
    behavior once the chain is exhausted. The cursor is restored after each
    decorator returns, so a decorator may call ``execute`` repeatedly and
    every deeper decorator runs again each time.
    """

    def __init__(
        self,
        target: Any,
        method_name: str,
        fn: Callable[[Invocation], Any] | None = None,
    ) -> None:
        self._target = target
        self._method_name = method_name
        self._decorators: list[Decorator] = []
        self._index = 0
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}

        if fn is None:
            bound = getattr(target, method_name, None)
            if not callable(bound):
                raise ValueError(f"{method_name} is not a method on the given target")
            self._fn: Callable[[Invocation], Any] = lambda inv: inv.call_with(bound)
        else:
            self._fn = fn

    def execute(self) -> Any:
        if self._index >= len(self._decorators):
            invocation = Invocation(
                target=self._target,
                method_name=self._method_name,
                args=self._args,
                kwargs=dict(self._kwargs),
            )
            return self._fn(invocation)

        decorator = self._decorators[self._index]
        self._index += 1
        try:
            return decorator.decorate(self)
        finally:
            self._index -= 1

    def set_arguments(self, /, *args: Any, **kwargs: Any) -> None:
        self._args = args
        self._kwargs = kwargs

    def set_decorators(self, decorators: Sequence[Decorator]) -> None:
        self._decorators = list(decorators)

    @property
    def target(self) -> Any:
        return self._target

    @property
    def method_name(self) -> str:
        return self._method_name

    @property
    def arguments(self) -> tuple[Any, ...]:
        return self._args

    @property
    def keyword_arguments(self) -> dict[str, Any]:
        return dict(self._kwargs)
