"""Field: a named, typed attribute with default and validation behavior."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from typed_models.defaults import DefaultFactory, implicit_default
from typed_models.types import Type, TypeRegistry, default_registry
from typed_models.validators import TypeValidator, Validator, ValidatorRegistry, default_validators

# Options accepted by Field.from_options, besides name and type
FIELD_OPTIONS = ("default", "allow_nil", "coerce_values", "is_key", "validate")


class Field:
    """A field declaration bound to a Type and a validator pipeline.

    Args:
        name: Name of the field.
        type: Descriptor resolved through the registry. A string names a
            model that may not be registered yet; call ``finalize`` once it is.
        default: Generator called as ``default(type, owner)``. Fields without
            one default to numeric zero for numeric types and None otherwise.
        allow_nil: Accept None when validating.
        coerce_values: Run values through ``type.coerce`` in ``coerce``.
        is_key: Mark this field as the key field (such as an id).
        validate: Mapping of validator name to options, built in order from
            the validator registry. A type validator is prepended unless one
            is declared under ``"type"``.
        registry: TypeRegistry used to resolve and finalize the type.
        validators: ValidatorRegistry the declared validators come from.

    Raises:
        InvalidModelType: If the descriptor is not a valid type.
        UnknownValidator: If a declared validator is not registered.
        TypeError: If ``default`` is not callable.
    """

    def __init__(
        self,
        name: str,
        type: Any,
        *,
        default: DefaultFactory | None = None,
        allow_nil: bool = False,
        coerce_values: bool = False,
        is_key: bool = False,
        validate: Mapping[str, Any] | None = None,
        registry: TypeRegistry | None = None,
        validators: ValidatorRegistry | None = None,
    ) -> None:
        self.name = name
        self.registry = registry if registry is not None else default_registry
        self.type: Type = self.registry.resolve(type)
        if default is None:
            default = implicit_default
        if not callable(default):
            raise TypeError(f"default for field '{name}' must be callable, got {default!r}")
        self.default = default
        self.allow_nil = allow_nil
        self.coerce_values = coerce_values
        self.is_key = is_key
        self._validator_registry = validators if validators is not None else default_validators
        self.validators: list[Validator] = self._build_validators(validate or {})

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        *,
        registry: TypeRegistry | None = None,
        validators: ValidatorRegistry | None = None,
    ) -> Field:
        """Build a field from a declaration mapping with ``name`` and ``type`` keys."""
        kwargs = {k: options[k] for k in FIELD_OPTIONS if k in options}
        return cls(
            options["name"],
            options["type"],
            registry=registry,
            validators=validators,
            **kwargs,
        )

    def _type_validator_options(self, options: Any) -> dict[str, Any]:
        merged: dict[str, Any] = {
            "type": self.type,
            "allow_nil": self.allow_nil,
            "ctx": {"key": self.name},
        }
        if isinstance(options, Mapping):
            merged.update(options)
        elif options is not None and options is not True:
            merged["type"] = options
        if not isinstance(merged["type"], Type):
            merged["type"] = self.registry.resolve(merged["type"])
        return merged

    def _build_validators(self, options: Mapping[str, Any]) -> list[Validator]:
        validators: list[Validator] = []
        for key, opts in options.items():
            if key == "type":
                opts = self._type_validator_options(opts)
            validators.append(self._validator_registry.build(key, opts))

        if "type" not in options and not any(isinstance(v, TypeValidator) for v in validators):
            type_validator = self._validator_registry.build("type", self._type_validator_options(None))
            validators.insert(0, type_validator)
        return validators

    @property
    def is_complete(self) -> bool:
        return self.type.is_complete

    def finalize(self) -> None:
        """Replace the field's Type with its finalized version.

        Every type validator finalizes its own Type as well, so declared
        type validators with forward references resolve too.
        """
        self.type = self.type.finalize(self.registry)
        for validator in self.validators:
            if isinstance(validator, TypeValidator):
                validator.type = validator.type.finalize(self.registry)

    def coerce(self, value: Any) -> Any:
        """Convert ``value`` to the field's type when ``coerce_values`` is set."""
        if not self.coerce_values:
            return value
        return self.type.coerce(value)

    def make_default(self, owner: Any = None) -> Any:
        """Return the default value, generated for ``owner`` if given."""
        return self.default(self.type, owner)

    def valid(self, value: Any) -> bool:
        """Check ``value`` against every validator without raising ValidationError."""
        return all(validator.valid(value) for validator in self.validators)

    def validate(self, value: Any) -> None:
        """Run every validator in order; the first failure propagates."""
        for validator in self.validators:
            validator.validate(value)

    def __repr__(self) -> str:
        return f"Field({self.name!r}, {self.type.describe()})"
