"""Default value generators for fields.

A generator is called as ``generator(type, owner)`` where ``type`` is the
field's Type and ``owner`` the model instance being initialized (or None).
"""

from __future__ import annotations

import copy
import numbers
from typing import Any, Callable

from typed_models.types import Type, TypeRegistry, default_registry

DefaultFactory = Callable[[Type, Any], Any]

# Abstract numeric models that cannot be built by calling them
_INTEGRAL_MODELS = (numbers.Number, numbers.Complex, numbers.Integral, numbers.Rational)
_REAL_MODELS = (numbers.Real,)


def nil_default(type_: Type, owner: Any = None) -> None:
    return None


def implicit_default(type_: Type, owner: Any = None) -> Any:
    """Default used by fields that declare none: numeric zero, else None."""
    model = type_.model
    if model is int or model in _INTEGRAL_MODELS:
        return 0
    if model is float or model in _REAL_MODELS:
        return 0.0
    return None


def zero_default(type_: Type, owner: Any = None) -> int:
    return 0


def empty_string_default(type_: Type, owner: Any = None) -> str:
    return ""


def empty_container_default(type_: Type, owner: Any = None) -> list[Any] | dict[Any, Any]:
    """Return an empty list or dict matching the field's container shape."""
    if type_.is_array:
        return []
    if type_.is_map:
        return {}
    raise TypeError(f"{type_.describe()} is not a container type")


def generic_default(type_: Type, owner: Any = None) -> Any:
    """Build a default for any complete type.

    Abstract numbers default to zero, containers to empty containers, and any
    other model is called without arguments. Models that need arguments must
    use another generator.
    """
    type_.check_complete()
    model = type_.model
    if model in _INTEGRAL_MODELS:
        return 0
    if model in _REAL_MODELS:
        return 0.0
    if type_.is_array:
        return []
    if type_.is_map:
        return {}
    return model()


def constant(value: Any) -> DefaultFactory:
    """Generator returning a fresh copy of ``value`` on every call."""

    def factory(type_: Type, owner: Any = None) -> Any:
        return copy.deepcopy(value)

    return factory


def registered_builder(registry: TypeRegistry | None = None) -> DefaultFactory:
    """Generator delegating to the builder registered for the field's model.

    Uses the field type's own registry unless one is given.
    """

    def factory(type_: Type, owner: Any = None) -> Any:
        type_.check_complete()
        target = registry if registry is not None else type_.registry
        if target is None:
            target = default_registry
        return target.build(type_.model)

    return factory
