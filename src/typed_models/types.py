"""Type definitions and the type registry for the typed_models library.

A descriptor is the raw shape a field declares:

- a class (``str``, ``int``, a user model) for scalars;
- ``[T]`` for an array of ``T`` and ``{K: V}`` for a map of ``K`` to ``V``;
- ``list`` / ``dict`` (or ``[]`` / ``{}``) for untyped arrays and maps;
- a string naming a model that may not exist yet (a forward reference).

``list[T]`` and ``dict[K, V]`` annotations are accepted as spellings of the
container literals.
"""

from __future__ import annotations

import logging
import threading
import typing
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Protocol, runtime_checkable

from typed_models.errors import (
    DuplicateRegistration,
    IncompleteType,
    InvalidModelType,
    UnknownModel,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class Coercible(Protocol):
    """A model class that converts raw input into its own values.

    Implement ``coerce`` as a classmethod or staticmethod on the model.
    """

    def coerce(self, value: Any) -> Any: ...


# Iterables that typed arrays wrap as one element instead of iterating
_SCALAR_ITERABLES = (str, bytes, bytearray, Mapping)

# Models every registry can resolve forward references to
BUILTIN_MODELS: tuple[type, ...] = (str, int, float, bool, bytes, list, dict)


def _normalize(descriptor: Any) -> Any:
    """Rewrite typing spellings into plain descriptors (one level deep)."""
    if isinstance(descriptor, typing.ForwardRef):
        return descriptor.__forward_arg__
    origin = typing.get_origin(descriptor)
    if origin is list:
        args = typing.get_args(descriptor)
        return [args[0]] if args else list
    if origin is dict:
        args = typing.get_args(descriptor)
        return {args[0]: args[1]} if args else dict
    return descriptor


def _descriptor_key(descriptor: Any) -> Hashable:
    """Return a hashable cache key for a descriptor, validating its shape."""
    descriptor = _normalize(descriptor)
    if isinstance(descriptor, str):
        return ("ref", descriptor)
    if isinstance(descriptor, list):
        if len(descriptor) > 1:
            raise InvalidModelType(
                f"array descriptor takes one element type, got {len(descriptor)}: {descriptor!r}"
            )
        return ("list", tuple(_descriptor_key(d) for d in descriptor))
    if isinstance(descriptor, dict):
        if len(descriptor) > 1:
            raise InvalidModelType(
                f"map descriptor takes one key/value pair, got {len(descriptor)}: {descriptor!r}"
            )
        return ("dict", tuple((_descriptor_key(k), _descriptor_key(v)) for k, v in descriptor.items()))
    if isinstance(descriptor, type):
        return ("model", descriptor)
    raise InvalidModelType(f"cannot create Type from {descriptor!r}")


def _names_in(descriptor: Any) -> set[str]:
    """Collect the forward-reference names mentioned anywhere in a descriptor."""
    descriptor = _normalize(descriptor)
    if isinstance(descriptor, str):
        return {descriptor}
    names: set[str] = set()
    if isinstance(descriptor, list):
        for d in descriptor:
            names |= _names_in(d)
    elif isinstance(descriptor, dict):
        for k, v in descriptor.items():
            names |= _names_in(k)
            names |= _names_in(v)
    return names


def describe_descriptor(descriptor: Any) -> str:
    """Render a descriptor the way it would be written as an annotation."""
    descriptor = _normalize(descriptor)
    if isinstance(descriptor, str):
        return repr(descriptor)
    if isinstance(descriptor, list):
        if not descriptor:
            return "list"
        return f"list[{describe_descriptor(descriptor[0])}]"
    if isinstance(descriptor, dict):
        if not descriptor:
            return "dict"
        ((k, v),) = descriptor.items()
        return f"dict[{describe_descriptor(k)}, {describe_descriptor(v)}]"
    return getattr(descriptor, "__qualname__", repr(descriptor))


def model_coercer(model: Any) -> Callable[[Any], Any] | None:
    """Return the model's own ``coerce`` callable, or None if it has none.

    Only classmethods and staticmethods count; an instance method named
    ``coerce`` is not a model-level capability.
    """
    if not isinstance(model, type) or not isinstance(model, Coercible):
        return None
    for klass in model.__mro__:
        attr = klass.__dict__.get("coerce")
        if attr is None:
            continue
        if isinstance(attr, (classmethod, staticmethod)):
            return model.coerce
        return None
    return None


@dataclass(eq=False)
class Type:
    """A resolved type: a model plus optional container content.

    Types are created by a TypeRegistry. Complete types are cached and shared,
    so they compare by identity. An incomplete type only records the name of
    a model that has not been registered yet; it must be finalized before it
    can coerce or validate anything.
    """

    model: Any
    content: tuple[Any, ...] | Mapping[Any, Any] | None = None
    is_array: bool = False
    is_map: bool = False
    is_incomplete: bool = False
    registry: TypeRegistry | None = field(default=None, repr=False)
    _sub_types: tuple[Type, ...] | None = field(default=None, init=False, repr=False)
    _pending: frozenset[str] = field(default=frozenset(), init=False, repr=False)

    def __post_init__(self) -> None:
        if self.is_array and self.is_map:
            raise ValueError("a Type cannot be both an array and a map")
        if not self.content:
            self.content = None
        elif isinstance(self.content, (list, tuple)):
            self.content = tuple(self.content)
        else:
            self.content = MappingProxyType(dict(self.content))
        if self.content is not None:
            self._pending = frozenset(_names_in(self.descriptor))

    @property
    def descriptor(self) -> Any:
        """Return the container content as a fresh list or dict literal."""
        if self.content is None:
            return None
        if self.is_array:
            return list(self.content)
        return dict(self.content)

    @property
    def is_complete(self) -> bool:
        """Return whether the type and all of its content can be coerced."""
        return not self.is_incomplete and not self._pending

    @property
    def pending_names(self) -> frozenset[str]:
        """Return the unresolved model names this type still depends on."""
        if self.is_incomplete:
            return frozenset({self.model})
        return self._pending

    def check_complete(self) -> None:
        """Raise IncompleteType unless the type is complete."""
        if self.is_incomplete:
            raise IncompleteType(f"incomplete type {self.model}")
        if self._pending:
            names = ", ".join(sorted(self._pending))
            raise IncompleteType(f"incomplete type {self.describe()} (unresolved: {names})")

    def finalize(self, registry: TypeRegistry | None = None) -> Type:
        """Exchange forward references for registered models.

        Returns self if the type is already complete, else the registry's
        complete Type for the same shape.
        """
        if registry is None:
            registry = self._registry()
        return registry.finalize(self)

    def _registry(self) -> TypeRegistry:
        return self.registry if self.registry is not None else default_registry

    def _content_types(self) -> tuple[Type, ...]:
        if self._sub_types is None:
            registry = self._registry()
            if self.is_array:
                (element,) = self.content  # type: ignore[misc]
                self._sub_types = (registry.resolve(element),)
            else:
                ((key, value),) = self.content.items()  # type: ignore[union-attr]
                self._sub_types = (registry.resolve(key), registry.resolve(value))
        return self._sub_types

    @property
    def element_type(self) -> Type | None:
        """Return the element type of a typed array."""
        if not self.is_array or self.content is None:
            return None
        return self._content_types()[0]

    @property
    def key_type(self) -> Type | None:
        """Return the key type of a typed map."""
        if not self.is_map or self.content is None:
            return None
        return self._content_types()[0]

    @property
    def value_type(self) -> Type | None:
        """Return the value type of a typed map."""
        if not self.is_map or self.content is None:
            return None
        return self._content_types()[1]

    def _coerce_array(self, value: Any) -> list[Any] | None:
        if value is None:
            return None
        element = self.element_type
        if element is None:
            if isinstance(value, list):
                return value
            return [value]
        # Strings, bytes and mappings are single values, not element sequences
        if isinstance(value, _SCALAR_ITERABLES) or not isinstance(value, Iterable):
            value = [value]
        return [element.coerce(v) for v in value]

    def _coerce_map(self, value: Any) -> dict[Any, Any] | None:
        if value is None:
            return None
        key_type, value_type = self.key_type, self.value_type
        if key_type is None or value_type is None:
            if isinstance(value, dict):
                return value
            return dict(value)
        pairs = value.items() if isinstance(value, Mapping) else value
        result: dict[Any, Any] = {}
        for k, v in pairs:
            result[key_type.coerce(k)] = value_type.coerce(v)
        return result

    def coerce(self, value: Any) -> Any:
        """Convert a raw value to this type's model and content.

        Model-level coercion wins over the generic container rules. Scalars
        without their own ``coerce`` are returned unchanged.
        """
        self.check_complete()
        coercer = model_coercer(self.model)
        if coercer is not None:
            return coercer(value)
        if self.is_array:
            return self._coerce_array(value)
        if self.is_map:
            return self._coerce_map(value)
        return value

    def conforms(self, value: Any) -> bool:
        """Check that a value already has this type's shape.

        None never conforms; whether a field accepts None is up to its
        validators.
        """
        self.check_complete()
        if value is None:
            return False
        if self.is_array:
            if not isinstance(value, list):
                return False
            element = self.element_type
            return element is None or all(element.conforms(v) for v in value)
        if self.is_map:
            if not isinstance(value, dict):
                return False
            key_type, value_type = self.key_type, self.value_type
            if key_type is None or value_type is None:
                return True
            return all(key_type.conforms(k) and value_type.conforms(v) for k, v in value.items())
        return isinstance(value, self.model)

    def describe(self) -> str:
        """Return a readable name for the type, such as ``dict[str, int]``."""
        if self.is_incomplete:
            return repr(self.model)
        if self.content is not None:
            return describe_descriptor(self.descriptor)
        return describe_descriptor(self.model)


class TypeRegistry:
    """Resolver and cache for Types, plus the namespace forward references use."""

    def __init__(self) -> None:
        self._types: dict[Hashable, Type] = {}
        self._models: dict[str, type] = {}
        self._builders: dict[type, Callable[[], Any]] = {}
        self._lock = threading.Lock()
        self._parser: Any = None
        self._parse_lock = threading.Lock()
        self._register_builtins()

    def _register_builtins(self) -> None:
        """Register the builtin models so forward references can name them."""
        for model in BUILTIN_MODELS:
            self._models[model.__name__] = model

    # -- models -------------------------------------------------------------

    def register_model(
        self,
        model: type,
        name: str | None = None,
        *,
        builder: Callable[[], Any] | None = None,
        overwrite: bool = False,
    ) -> type:
        """Make a model resolvable by name.

        Args:
            model: The model class.
            name: Name forward references use; defaults to ``model.__name__``.
            builder: Optional zero-argument callable producing a default
                instance (see ``defaults.registered_builder``).
            overwrite: Replace a different model already registered under
                the same name.

        Returns:
            The model, so this can be used from a decorator.

        Raises:
            InvalidModelType: If ``model`` is not a class.
            DuplicateRegistration: If the name belongs to another model.
        """
        if not isinstance(model, type):
            raise InvalidModelType(f"cannot register {model!r} as a model")
        name = name or model.__name__
        with self._lock:
            existing = self._models.get(name)
            if existing is not None and existing is not model and not overwrite:
                raise DuplicateRegistration(f"Model '{name}' is already registered as {existing!r}")
            self._models[name] = model
            if builder is not None:
                self._builders[model] = builder
        logger.debug("Registered model %s as %r", model.__qualname__, name)
        return model

    def model(
        self,
        name: str | None = None,
        *,
        builder: Callable[[], Any] | None = None,
        overwrite: bool = False,
    ) -> Callable[[type], type]:
        """Class decorator form of register_model."""

        def decorator(model: type) -> type:
            return self.register_model(model, name, builder=builder, overwrite=overwrite)

        return decorator

    def get_model(self, name: str) -> type | None:
        """Get a model by name."""
        return self._models.get(name)

    def get_model_or_raise(self, name: str) -> type:
        """Get a model by name, raising UnknownModel if not found."""
        model = self._models.get(name)
        if model is None:
            raise UnknownModel(f"Model '{name}' not found")
        return model

    def has_model(self, name: str) -> bool:
        return name in self._models

    def list_models(self) -> list[str]:
        """List all registered model names."""
        return list(self._models.keys())

    def register_builder(self, model: type, builder: Callable[[], Any]) -> None:
        """Record the callable that builds a default instance of ``model``."""
        with self._lock:
            self._builders[model] = builder

    def build(self, model: type) -> Any:
        """Build a default instance of ``model`` with its registered builder."""
        builder = self._builders.get(model)
        if builder is None:
            raise UnknownModel(f"No builder registered for {describe_descriptor(model)}")
        return builder()

    # -- types --------------------------------------------------------------

    def _make_type(self, descriptor: Any) -> Type:
        if isinstance(descriptor, list):
            return Type(list, list(descriptor), is_array=True, registry=self)
        if isinstance(descriptor, dict):
            return Type(dict, dict(descriptor), is_map=True, registry=self)
        if descriptor is list:
            return Type(list, None, is_array=True, registry=self)
        if descriptor is dict:
            return Type(dict, None, is_map=True, registry=self)
        return Type(descriptor, registry=self)

    def resolve(self, descriptor: Any) -> Type:
        """Return the Type for a descriptor.

        Strings produce a fresh incomplete Type on every call and are never
        cached. Every other descriptor is cached, so repeating a descriptor
        returns the same instance.

        Raises:
            InvalidModelType: If the descriptor matches no known shape.
        """
        descriptor = _normalize(descriptor)
        if isinstance(descriptor, str):
            return Type(descriptor, is_incomplete=True, registry=self)

        key = _descriptor_key(descriptor)
        created = False
        with self._lock:
            type_ = self._types.get(key)
            if type_ is None:
                type_ = self._make_type(descriptor)
                self._types[key] = type_
                created = True
        if created:
            logger.debug("Created type %s", type_.describe())
        return type_

    def _substitute(self, descriptor: Any) -> Any:
        descriptor = _normalize(descriptor)
        if isinstance(descriptor, str):
            return self.get_model_or_raise(descriptor)
        if isinstance(descriptor, list):
            return [self._substitute(d) for d in descriptor]
        if isinstance(descriptor, dict):
            return {self._substitute(k): self._substitute(v) for k, v in descriptor.items()}
        return descriptor

    def finalize(self, type_: Type) -> Type:
        """Return the complete Type for ``type_``.

        Incomplete types are looked up by name; containers whose content
        still names models have those names substituted. Complete types are
        returned unchanged.

        Raises:
            UnknownModel: If a referenced name is not registered.
        """
        if type_.is_incomplete:
            model = self.get_model_or_raise(type_.model)
            logger.debug("Finalized forward reference %r", type_.model)
            return self.resolve(model)
        if type_.content is not None and type_.pending_names:
            finalized = self.resolve(self._substitute(type_.descriptor))
            logger.debug("Finalized %s as %s", type_.describe(), finalized.describe())
            return finalized
        return type_

    def parse(self, text: str) -> Type:
        """Parse a textual type expression such as ``{str: Post[]}``."""
        with self._parse_lock:
            descriptor = self.parser.parse(text)
        return self.resolve(descriptor)

    @property
    def parser(self) -> Any:
        """Return the DescriptorParser bound to this registry, building it once."""
        if self._parser is None:
            from typed_models.parsing import DescriptorParser

            self._parser = DescriptorParser(self)
        return self._parser

    def clear_cache(self) -> None:
        """Drop every cached Type; registered models are kept."""
        with self._lock:
            self._types.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._models

    def __len__(self) -> int:
        return len(self._types)


default_registry = TypeRegistry()
