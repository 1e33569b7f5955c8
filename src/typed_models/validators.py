"""Validators and the validator registry.

Only the type-conformance validator ships with the library. Other validators
(presence, length, custom rules) are registered by callers under a name and
requested by fields through their ``validate`` options.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any, Callable

from typed_models.errors import DuplicateRegistration, UnknownValidator, ValidationError
from typed_models.types import Type

logger = logging.getLogger(__name__)

ValidatorFactory = Callable[..., "Validator"]


class Validator:
    """Base class for validators.

    Subclasses implement ``validate``; ``valid`` reports the same check as a
    boolean and never raises ValidationError.
    """

    def validate(self, value: Any) -> None:
        raise NotImplementedError

    def valid(self, value: Any) -> bool:
        try:
            self.validate(value)
        except ValidationError:
            return False
        return True


class TypeValidator(Validator):
    """Checks that a value conforms to a Type.

    Args:
        type: The Type values must conform to.
        allow_nil: Accept None.
        ctx: Context copied onto raised errors; fields pass ``{"key": name}``.
    """

    def __init__(self, type: Type, allow_nil: bool = False, ctx: dict[str, Any] | None = None) -> None:
        self.type = type
        self.allow_nil = allow_nil
        self.ctx = dict(ctx or {})

    def valid(self, value: Any) -> bool:
        self.type.check_complete()
        if value is None:
            return self.allow_nil
        return self.type.conforms(value)

    def validate(self, value: Any) -> None:
        if self.valid(value):
            return
        key = self.ctx.get("key")
        prefix = f"{key}: " if key is not None else ""
        if value is None:
            message = f"{prefix}expected {self.type.describe()}, got None"
        else:
            message = f"{prefix}expected {self.type.describe()}, got {value!r} ({type(value).__name__})"
        raise ValidationError(message, value=value, ctx=self.ctx)

    def __repr__(self) -> str:
        return f"TypeValidator({self.type.describe()}, allow_nil={self.allow_nil})"


class ValidatorRegistry:
    """Registry of validator factories keyed by name."""

    def __init__(self) -> None:
        self._factories: dict[str, ValidatorFactory] = {}
        self._lock = threading.Lock()

    def register(self, name: str, factory: ValidatorFactory, overwrite: bool = False) -> None:
        """Register a validator factory under ``name``."""
        with self._lock:
            if not overwrite and name in self._factories:
                existing = self._factories[name]
                raise DuplicateRegistration(f"Validator '{name}' is already registered: {existing!r}")
            self._factories[name] = factory
        logger.debug("Registered validator %r", name)

    def get(self, name: str) -> ValidatorFactory | None:
        return self._factories.get(name)

    def get_or_raise(self, name: str) -> ValidatorFactory:
        """Get a validator factory by name, raising UnknownValidator if not found."""
        factory = self._factories.get(name)
        if factory is None:
            raise UnknownValidator(f"Validator '{name}' not found")
        return factory

    def build(self, name: str, options: Any = None) -> Validator:
        """Instantiate the named validator from its declared options.

        A mapping is passed as keyword arguments, ``None`` or ``True`` as no
        arguments, anything else as a single positional argument.
        """
        factory = self.get_or_raise(name)
        if isinstance(options, Mapping):
            return factory(**options)
        if options is None or options is True:
            return factory()
        return factory(options)

    def list_validators(self) -> list[str]:
        return list(self._factories.keys())

    def copy(self) -> ValidatorRegistry:
        """Return an independent registry with the same factories."""
        clone = ValidatorRegistry()
        clone._factories = dict(self._factories)
        return clone

    def __contains__(self, name: str) -> bool:
        return name in self._factories


default_validators = ValidatorRegistry()
default_validators.register("type", TypeValidator)


def register_validator(
    name: str,
    *,
    registry: ValidatorRegistry | None = None,
    overwrite: bool = False,
) -> Callable[[ValidatorFactory], ValidatorFactory]:
    """Decorator registering a validator class or factory function."""

    def decorator(factory: ValidatorFactory) -> ValidatorFactory:
        (registry or default_validators).register(name, factory, overwrite=overwrite)
        return factory

    return decorator
