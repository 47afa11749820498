from __future__ import annotations

import importlib
import logging
from collections.abc import Callable
from typing import Any, final

from shmock._builder import ClassBuilder, MethodKind
from shmock._errors import ConfigurationError, ShmockFailure
from shmock._joinpoint import Invocation
from shmock._ordering import OrderingSelector
from shmock._spec import INSTANCE, STATIC, CallingConvention, Spec, SpecContext

logger = logging.getLogger(__name__)


def resolve_target(target: type | str) -> type:
    """Accept a class or a dotted path such as ``"package.module.Class"``."""
    if isinstance(target, type):
        return target
    if not isinstance(target, str):
        raise ConfigurationError(f"{target!r} is not a class and cannot be mocked")

    module_path, _, attribute_path = target.partition(":")
    parts = module_path.split(".")
    attributes = attribute_path.split(".") if attribute_path else []
    resolved: Any = None

    for split in range(len(parts), 0, -1):
        try:
            resolved = importlib.import_module(".".join(parts[:split]))
        except ImportError:
            continue
        attributes = parts[split:] + attributes
        break
    else:
        raise ConfigurationError(f"Class {target} not found.")

    for attribute in attributes:
        resolved = getattr(resolved, attribute, None)
        if resolved is None:
            raise ConfigurationError(f"Class {target} not found.")

    if not isinstance(resolved, type):
        raise ConfigurationError(f"{target} is not a class and cannot be mocked")
    return resolved


class _Controller:
    def __init__(self, context: SpecContext, target: type | str) -> None:
        self._context = context
        self._target = resolve_target(target)
        self._ordering = OrderingSelector()
        self._specs: list[Spec] = []
        self._strict = context.config.strict_method_checks
        self._preserve_originals = True
        self._replayed = False

    @property
    def target(self) -> type:
        return self._target

    @property
    def specs(self) -> tuple[Spec, ...]:
        return tuple(self._specs)

    def __getattr__(self, name: str) -> Callable[..., Spec]:
        if name.startswith("_"):
            raise AttributeError(
                f"Cannot set expectations on private attribute: {name}, use expect()"
            )

        def record(*args: Any, **kwargs: Any) -> Spec:
            return self.expect(name, *args, **kwargs)

        return record

    def expect(self, method_name: str, /, *args: Any, **kwargs: Any) -> Spec:
        """Record an expected call; also reaches names the controller itself uses."""
        self._ensure_building()
        spec = Spec(
            self._context,
            self._target,
            method_name,
            args,
            kwargs,
            convention=self._convention(),
            strict=self._strict,
        )
        self._specs.append(spec)
        self._ordering.register(method_name, spec)
        return spec

    def _convention(self) -> CallingConvention:
        return STATIC

    def order_matters(self) -> None:
        self._ensure_building()
        self._ordering.order_matters()

    def order_doesnt_matter(self) -> None:
        self._ensure_building()
        self._ordering.order_doesnt_matter()

    def dont_preserve_original_methods(self) -> None:
        self._ensure_building()
        self._preserve_originals = False

    def disable_strict_method_checking(self) -> None:
        self._ensure_building()
        self._strict = False

    def verify(self) -> None:
        logger.debug("Verifying %r", self)
        self._ordering.ordering.verify()

    def _ensure_building(self) -> None:
        if self._replayed:
            raise ConfigurationError(
                f"The mock of {self._target.__qualname__} was already replayed "
                f"and can no longer be configured"
            )

    def _resolve(self, invocation: Invocation) -> Any:
        spec = self._ordering.ordering.next_spec(invocation.method_name, invocation)
        try:
            return spec.do_invocation(invocation)
        except ShmockFailure as exc:
            logger.debug("%s failed: %s", spec, exc)
            raise

    def _build_class(self) -> type:
        self._ensure_building()
        builder = ClassBuilder()
        builder.set_extends(self._target)
        if not self._preserve_originals:
            builder.dont_preserve_original_methods()

        first_by_name: dict[str, Spec] = {}
        for spec in self._specs:
            first = first_by_name.setdefault(spec.method_name, spec)
            if first.is_static != spec.is_static:
                raise ConfigurationError(
                    f"{spec.method_name} was mocked both as a static and an "
                    f"instance method of {self._target.__qualname__}"
                )

        for method_name, spec in first_by_name.items():
            self._add_trampoline(builder, method_name, spec)

        built = builder.create()
        self._replayed = True
        logger.debug("Replayed %r as %s", self, built.__name__)
        return built

    def _add_trampoline(self, builder: ClassBuilder, method_name: str, spec: Spec) -> None:
        inspector = spec.inspector
        kind: MethodKind = inspector.kind() if inspector.exists() else "instance"
        if spec.is_static and kind == "instance":
            kind = "static"
        elif not spec.is_static:
            kind = "instance"

        add = {
            "instance": builder.add_method,
            "static": builder.add_static_method,
            "class": builder.add_class_method,
        }[kind]
        add(
            method_name,
            self._resolve,
            inspector.call_signature(),
            attribute_name=inspector.attribute_name,
            is_async=inspector.is_async(),
            doc=inspector.doc(),
        )

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} of {self._target.__qualname__}: "
            f"{len(self._specs)} spec(s)>"
        )


@final
class MockClass(_Controller):
    """Build phase of a mocked class: every recorded method is static.

    ``replay()`` returns a synthesized subclass of the target.
    """

    def shmock_class(self, build: Callable[[MockClass], Any]) -> None:
        _ = build
        raise ConfigurationError("You are already mocking the class")

    def replay(self) -> type:
        return self._build_class()


@final
class MockInstance(_Controller):
    """Build phase of a mocked instance.

    ``replay()`` returns an instance of a synthesized subclass of the target.
    Static methods are mocked inside ``shmock_class``.
    """

    def __init__(self, context: SpecContext, target: type | str) -> None:
        super().__init__(context, target)
        self._in_static_context = False
        self._disable_constructor = False
        self._constructor_args: tuple[Any, ...] | None = None
        self._constructor_kwargs: dict[str, Any] = {}

    def _convention(self) -> CallingConvention:
        return STATIC if self._in_static_context else INSTANCE

    def shmock_class(self, build: Callable[[MockInstance], Any]) -> None:
        self._ensure_building()
        self._in_static_context = True
        try:
            build(self)
        finally:
            self._in_static_context = False

    def disable_original_constructor(self) -> None:
        self._ensure_building()
        if self._constructor_args is not None:
            raise ConfigurationError(
                "Cannot disable the original constructor after setting constructor arguments"
            )
        self._disable_constructor = True

    def set_constructor_arguments(self, *args: Any, **kwargs: Any) -> None:
        self._ensure_building()
        if self._disable_constructor:
            raise ConfigurationError(
                "Cannot set constructor arguments once the original constructor is disabled"
            )
        self._constructor_args = args
        self._constructor_kwargs = kwargs

    def replay(self) -> Any:
        built = self._build_class()
        if self._disable_constructor:
            return built.__new__(built)
        return built(*(self._constructor_args or ()), **self._constructor_kwargs)
