from __future__ import annotations

import inspect
import logging
import types
import uuid
import weakref
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Final, Literal, TypeAlias, final

from shmock._errors import ConfigurationError, UnexpectedInvocation
from shmock._joinpoint import Decorator, Invocation, JoinPoint, as_decorator

logger = logging.getLogger(__name__)

MethodKind: TypeAlias = Literal["instance", "static", "class"]
SignatureHint: TypeAlias = inspect.Signature | Sequence[str] | None

ACCESS_LEVELS: Final = ("public", "protected", "private")

# synthesized classes by name; a name frees up once its class is collected
_BUILT_CLASSES: weakref.WeakValueDictionary[str, type] = weakref.WeakValueDictionary()


def _is_private_name(name: str) -> bool:
    return name.startswith("__") and not name.endswith("__")


def _mangle(owner: type, name: str) -> str:
    return f"_{owner.__name__.lstrip('_')}{name}"


def signature_from_names(names: Sequence[str]) -> inspect.Signature:
    """Build a signature from parameter names; ``*args``/``**kw`` are variadic."""
    parameters: list[inspect.Parameter] = []
    for raw in names:
        if raw.startswith("**"):
            kind = inspect.Parameter.VAR_KEYWORD
            name = raw[2:]
        elif raw.startswith("*"):
            kind = inspect.Parameter.VAR_POSITIONAL
            name = raw[1:]
        else:
            kind = inspect.Parameter.POSITIONAL_OR_KEYWORD
            name = raw
        parameters.append(inspect.Parameter(name, kind))
    return inspect.Signature(parameters)


GENERIC_SIGNATURE: Final = signature_from_names(["*args", "**kwargs"])


@final
class MethodInspector:
    """Looks up how a method is declared on a class without invoking it."""

    def __init__(self, owner: type, method_name: str) -> None:
        self._owner = owner
        self._method_name = method_name
        self._attribute, self._raw = self._lookup()

    def _lookup(self) -> tuple[str, Any]:
        candidates = [self._method_name]
        for klass in self._owner.__mro__:
            if _is_private_name(self._method_name):
                candidates = [_mangle(klass, self._method_name), self._method_name]
            for candidate in candidates:
                if candidate in vars(klass):
                    return candidate, vars(klass)[candidate]
        return self._method_name, None

    @property
    def method_name(self) -> str:
        return self._method_name

    @property
    def attribute_name(self) -> str:
        return self._attribute

    def exists(self) -> bool:
        if self._raw is None:
            return False
        return isinstance(self._raw, (staticmethod, classmethod)) or callable(self._raw)

    def kind(self) -> MethodKind:
        if isinstance(self._raw, staticmethod):
            return "static"
        if isinstance(self._raw, classmethod):
            return "class"
        return "instance"

    def is_static(self) -> bool:
        return self.kind() != "instance"

    def is_private(self) -> bool:
        return _is_private_name(self._method_name) or self._attribute != self._method_name

    def is_async(self) -> bool:
        return inspect.iscoroutinefunction(self._function())

    def _function(self) -> Any:
        if isinstance(self._raw, (staticmethod, classmethod)):
            return self._raw.__func__
        return self._raw

    def signature(self) -> inspect.Signature | None:
        if not self.exists():
            return None
        try:
            return inspect.signature(self._function())
        except (TypeError, ValueError):
            return None

    def call_signature(self) -> inspect.Signature | None:
        """The signature as seen by a caller, without ``self`` or ``cls``."""
        declared = self.signature()
        if declared is None or self.kind() == "static":
            return declared
        parameters = list(declared.parameters.values())
        if parameters and parameters[0].kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            parameters = parameters[1:]
        return declared.replace(parameters=parameters)

    def doc(self) -> str | None:
        return inspect.getdoc(self._function()) if self.exists() else None


def has_catch_all(owner: type, *, static: bool) -> bool:
    if static:
        return hasattr(type(owner), "__getattr__")
    return hasattr(owner, "__getattr__")


def public_methods(owner: type) -> Iterator[MethodInspector]:
    seen: set[str] = set()
    for klass in owner.__mro__:
        if klass is object:
            continue
        for name in vars(klass):
            if name.startswith("_") or name in seen:
                continue
            seen.add(name)
            inspector = MethodInspector(owner, name)
            if inspector.exists():
                yield inspector


@dataclass(kw_only=True, slots=True)
class _BuiltState:
    implementations: dict[str, Callable[[Invocation], Any]] = field(default_factory=dict)
    decorators: list[Decorator] = field(default_factory=list)
    owner: type | None = None


def _bind_receiver_signature(
    call_signature: inspect.Signature, kind: MethodKind
) -> inspect.Signature:
    if kind == "static":
        return call_signature
    receiver = inspect.Parameter(
        "self" if kind == "instance" else "cls",
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    )
    return call_signature.replace(parameters=[receiver, *call_signature.parameters.values()])


@final
class Method:
    """A method to be installed on a synthesized class."""

    def __init__(
        self,
        access: str,
        method_name: str,
        fn: Callable[[Invocation], Any],
        signature: SignatureHint = None,
        *,
        kind: MethodKind = "instance",
        attribute_name: str | None = None,
        is_async: bool = False,
        doc: str | None = None,
    ) -> None:
        if access not in ACCESS_LEVELS:
            raise ConfigurationError(f"{access} is not a valid access level")
        if not method_name.isidentifier():
            raise ConfigurationError(f"{method_name!r} is not a valid method name")

        if signature is None or isinstance(signature, inspect.Signature):
            self._explicit_signature = signature
        else:
            self._explicit_signature = signature_from_names(signature)

        self.access = access
        self.method_name = method_name
        self.attribute_name = attribute_name or method_name
        self.fn = fn
        self.kind: MethodKind = kind
        self.is_async = is_async
        self.doc = doc

    @property
    def call_signature(self) -> inspect.Signature:
        return self._explicit_signature or GENERIC_SIGNATURE

    def render(self, state: _BuiltState, class_name: str) -> Any:
        method_name = self.method_name
        call_signature = self._explicit_signature

        def dispatch(receiver: Any, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
            if call_signature is not None:
                try:
                    call_signature.bind(*args, **kwargs)
                except TypeError as exc:
                    raise TypeError(f"{method_name}() {exc}") from None

            join_point = JoinPoint(receiver, method_name, state.implementations[method_name])
            join_point.set_arguments(*args, **kwargs)
            join_point.set_decorators(state.decorators)
            return join_point.execute()

        trampoline = self._trampoline(dispatch, state)
        trampoline.__name__ = self.attribute_name
        trampoline.__qualname__ = f"{class_name}.{self.attribute_name}"
        trampoline.__doc__ = self.doc
        trampoline.__signature__ = _bind_receiver_signature(self.call_signature, self.kind)
        trampoline.__shmock_access__ = self.access

        if self.kind == "static":
            return staticmethod(trampoline)
        if self.kind == "class":
            return classmethod(trampoline)
        return trampoline

    def _trampoline(
        self,
        dispatch: Callable[[Any, tuple[Any, ...], dict[str, Any]], Any],
        state: _BuiltState,
    ) -> Any:
        if self.kind == "static":
            if self.is_async:

                async def async_static(*args: Any, **kwargs: Any) -> Any:
                    return await _settle(dispatch(state.owner, args, kwargs))

                return async_static

            def static(*args: Any, **kwargs: Any) -> Any:
                return dispatch(state.owner, args, kwargs)

            return static

        if self.is_async:

            async def async_bound(receiver: Any, /, *args: Any, **kwargs: Any) -> Any:
                return await _settle(dispatch(receiver, args, kwargs))

            return async_bound

        def bound(receiver: Any, /, *args: Any, **kwargs: Any) -> Any:
            return dispatch(receiver, args, kwargs)

        return bound

    def add_to_built_class(self, state: _BuiltState) -> None:
        state.implementations[self.method_name] = self.fn


async def _settle(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


def _returns_none(invocation: Invocation) -> None:
    _ = invocation


@final
class ClassBuilder:
    """Synthesizes a fresh subclass whose methods route through decorators."""

    def __init__(self) -> None:
        self._class_name: str | None = None
        self._extends: type | None = None
        self._interfaces: list[type] = []
        self._traits: list[type] = []
        self._methods: dict[str, Method] = {}
        self._decorators: list[Decorator] = []
        self._preserve_originals = True

    def set_name(self, class_name: str) -> None:
        if not class_name.isidentifier():
            raise ConfigurationError(f"{class_name!r} is not a valid class name")
        if class_name in _BUILT_CLASSES:
            raise ConfigurationError(
                f"The name {class_name} has already been taken by something else"
            )
        self._class_name = class_name

    def set_extends(self, base: Any) -> None:
        if not isinstance(base, type):
            raise ConfigurationError(f"{base!r} is not a valid class and cannot be extended")
        self._extends = base

    def add_interface(self, interface: type) -> None:
        if not isinstance(interface, type):
            raise ConfigurationError(f"{interface!r} is not a valid interface")
        self._interfaces.append(interface)

    def add_trait(self, trait: type) -> None:
        if not isinstance(trait, type):
            raise ConfigurationError(f"{trait!r} is not a valid mixin class")
        self._traits.append(trait)

    def add_method(
        self,
        method_name: str,
        fn: Callable[[Invocation], Any],
        signature: SignatureHint = None,
        access: str = "public",
        *,
        attribute_name: str | None = None,
        is_async: bool = False,
        doc: str | None = None,
    ) -> None:
        self._add(
            Method(
                access,
                method_name,
                fn,
                signature,
                kind="instance",
                attribute_name=attribute_name,
                is_async=is_async,
                doc=doc,
            )
        )

    def add_static_method(
        self,
        method_name: str,
        fn: Callable[[Invocation], Any],
        signature: SignatureHint = None,
        access: str = "public",
        *,
        attribute_name: str | None = None,
        is_async: bool = False,
        doc: str | None = None,
    ) -> None:
        self._add(
            Method(
                access,
                method_name,
                fn,
                signature,
                kind="static",
                attribute_name=attribute_name,
                is_async=is_async,
                doc=doc,
            )
        )

    def add_class_method(
        self,
        method_name: str,
        fn: Callable[[Invocation], Any],
        signature: SignatureHint = None,
        access: str = "public",
        *,
        attribute_name: str | None = None,
        is_async: bool = False,
        doc: str | None = None,
    ) -> None:
        self._add(
            Method(
                access,
                method_name,
                fn,
                signature,
                kind="class",
                attribute_name=attribute_name,
                is_async=is_async,
                doc=doc,
            )
        )

    def _add(self, method: Method) -> None:
        if method.method_name in self._methods:
            raise ConfigurationError(
                f"The method {method.method_name} was already added to this class"
            )
        self._methods[method.method_name] = method

    def add_decorator(self, decorator: Decorator | Callable[[JoinPoint], Any]) -> None:
        self._decorators.append(as_decorator(decorator))

    def dont_preserve_original_methods(self) -> None:
        self._preserve_originals = False

    def _bases(self) -> tuple[type, ...]:
        bases = [*self._traits]
        if self._extends is not None:
            bases.append(self._extends)
        bases.extend(i for i in self._interfaces if i not in bases)
        return tuple(bases)

    def _fresh_name(self) -> str:
        prefix = self._extends.__name__ if self._extends is not None else "ClassBuilder"
        while True:
            candidate = f"{prefix}Shmock_{uuid.uuid4().hex[:12]}"
            if candidate not in _BUILT_CLASSES:
                return candidate

    def _implicit_methods(self, bases: tuple[type, ...]) -> list[Method]:
        described = {m.attribute_name for m in self._methods.values()}
        implicit: list[Method] = []

        def stub(inspector: MethodInspector, fn: Callable[[Invocation], Any]) -> Method:
            return Method(
                "public",
                inspector.attribute_name,
                fn,
                inspector.call_signature(),
                kind=inspector.kind(),
                is_async=inspector.is_async(),
                doc=inspector.doc(),
            )

        for base in bases:
            if not self._preserve_originals:
                for inspector in public_methods(base):
                    if inspector.attribute_name not in described:
                        described.add(inspector.attribute_name)
                        implicit.append(stub(inspector, _returns_none))

            for name in sorted(getattr(base, "__abstractmethods__", ())):
                if name in described:
                    continue
                described.add(name)
                inspector = MethodInspector(base, name)
                if not inspector.exists():
                    continue
                implicit.append(stub(inspector, _unconfigured(base, name)))

        return implicit

    def create(self) -> type:
        class_name = self._class_name or self._fresh_name()
        bases = self._bases()
        state = _BuiltState(decorators=self._decorators)

        methods = [*self._methods.values(), *self._implicit_methods(bases)]

        def exec_body(namespace: dict[str, Any]) -> None:
            namespace["__module__"] = __name__
            namespace["__shmock_implementations__"] = state.implementations
            namespace["__shmock_decorators__"] = state.decorators
            for method in methods:
                namespace[method.attribute_name] = method.render(state, class_name)

        try:
            built = types.new_class(class_name, bases, exec_body=exec_body)
        except TypeError as exc:
            raise ConfigurationError(
                f"Unable to build {class_name} from bases {bases!r}: {exc}"
            ) from exc

        state.owner = built
        for method in methods:
            method.add_to_built_class(state)

        _BUILT_CLASSES[class_name] = built
        self._class_name = class_name
        logger.debug(
            "Built %s from %s with methods %s",
            class_name,
            [b.__qualname__ for b in bases],
            sorted(state.implementations),
        )
        return built


def _unconfigured(owner: type, method_name: str) -> Callable[[Invocation], Any]:
    def fail(invocation: Invocation) -> Any:
        raise UnexpectedInvocation(
            f"{method_name} is abstract on {owner.__qualname__} and was not mocked; "
            f"called with args={invocation.args}, kwargs={invocation.kwargs}"
        )

    return fail
