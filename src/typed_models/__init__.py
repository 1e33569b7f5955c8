"""Typed Models - Declarative typed fields with coercion and validation."""

from typed_models.defaults import (
    constant,
    empty_container_default,
    empty_string_default,
    generic_default,
    implicit_default,
    nil_default,
    registered_builder,
    zero_default,
)
from typed_models.errors import (
    DuplicateRegistration,
    IncompleteType,
    InvalidModelType,
    TypedModelsError,
    UnknownModel,
    UnknownValidator,
    ValidationError,
)
from typed_models.field import Field
from typed_models.parsing import DescriptorParser
from typed_models.types import Coercible, Type, TypeRegistry, default_registry
from typed_models.validators import (
    TypeValidator,
    Validator,
    ValidatorRegistry,
    default_validators,
    register_validator,
)

__all__ = [
    # Main API
    "Field",
    "Type",
    "TypeRegistry",
    "Coercible",
    "DescriptorParser",
    "default_registry",
    # Validators
    "Validator",
    "TypeValidator",
    "ValidatorRegistry",
    "default_validators",
    "register_validator",
    # Defaults
    "nil_default",
    "implicit_default",
    "generic_default",
    "zero_default",
    "empty_string_default",
    "empty_container_default",
    "constant",
    "registered_builder",
    # Errors
    "TypedModelsError",
    "InvalidModelType",
    "IncompleteType",
    "UnknownModel",
    "UnknownValidator",
    "DuplicateRegistration",
    "ValidationError",
]

__version__ = "0.1.0"
