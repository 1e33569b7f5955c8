"""Exception classes for the typed_models library."""

from __future__ import annotations

from typing import Any


class TypedModelsError(Exception):
    """Base class for all typed_models errors."""


class InvalidModelType(TypedModelsError, TypeError):
    """Raised when a descriptor cannot be turned into a Type."""


class IncompleteType(TypedModelsError):
    """Raised when a Type is used before its forward references are finalized."""


class UnknownModel(TypedModelsError, KeyError):
    """Raised when a forward reference names a model the registry does not know."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class UnknownValidator(TypedModelsError, KeyError):
    """Raised when a field asks for a validator that was never registered."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class DuplicateRegistration(TypedModelsError, ValueError):
    """Raised when a name is registered twice without ``overwrite``."""


class ValidationError(TypedModelsError, ValueError):
    """Raised by a validator when a value violates its rule.

    Attributes:
        value: The rejected value.
        ctx: Extra context supplied by the validator (the type validator
            stores the field name under ``"key"``).
    """

    def __init__(self, message: str, value: Any = None, ctx: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.value = value
        self.ctx = dict(ctx or {})
