"""Tests for validators and the validator registry."""

import pytest

from typed_models.errors import (
    DuplicateRegistration,
    IncompleteType,
    UnknownValidator,
    ValidationError,
)
from typed_models.types import TypeRegistry
from typed_models.validators import (
    TypeValidator,
    Validator,
    ValidatorRegistry,
    default_validators,
    register_validator,
)


class Post:
    pass


class Length(Validator):
    def __init__(self, max=None):
        self.max = max

    def validate(self, value):
        if value is not None and len(value) > self.max:
            raise ValidationError(f"longer than {self.max}", value=value)


@pytest.fixture
def registry():
    """Create an isolated type registry."""
    return TypeRegistry()


@pytest.fixture
def validators():
    """Create a validator registry with the built-in validators."""
    return default_validators.copy()


class TestTypeValidator:
    """Tests for the type-conformance validator."""

    def test_scalar(self, registry):
        """Test conformance of scalar values."""
        v = TypeValidator(registry.resolve(str))
        assert v.valid("a") is True
        assert v.valid(1) is False

    def test_subclass_conforms(self, registry):
        """Test that instances of subclasses conform."""

        class Draft(Post):
            pass

        assert TypeValidator(registry.resolve(Post)).valid(Draft()) is True

    def test_nil(self, registry):
        """Test None with and without allow_nil."""
        t = registry.resolve(str)
        assert TypeValidator(t).valid(None) is False
        assert TypeValidator(t, allow_nil=True).valid(None) is True

    def test_array(self, registry):
        """Test conformance of typed arrays."""
        v = TypeValidator(registry.resolve([int]))
        assert v.valid([1, 2]) is True
        assert v.valid([]) is True
        assert v.valid([1, "2"]) is False
        assert v.valid((1, 2)) is False
        assert v.valid(1) is False

    def test_untyped_array(self, registry):
        """Test that any list conforms to an untyped array."""
        v = TypeValidator(registry.resolve(list))
        assert v.valid([1, "a"]) is True
        assert v.valid("a") is False

    def test_map(self, registry):
        """Test conformance of typed maps."""
        v = TypeValidator(registry.resolve({str: [int]}))
        assert v.valid({"a": [1]}) is True
        assert v.valid({"a": ["1"]}) is False
        assert v.valid({1: [1]}) is False
        assert v.valid([("a", [1])]) is False

    def test_validate_raises(self, registry):
        """Test the error raised for a non-conforming value."""
        v = TypeValidator(registry.resolve(str), ctx={"key": "title"})
        with pytest.raises(ValidationError, match="title: expected str") as exc_info:
            v.validate(5)
        assert exc_info.value.value == 5
        assert exc_info.value.ctx == {"key": "title"}

    def test_validate_none(self, registry):
        """Test the error raised for None."""
        v = TypeValidator(registry.resolve([str]))
        with pytest.raises(ValidationError, match="expected list\\[str\\], got None"):
            v.validate(None)

    def test_validate_passes(self, registry):
        """Test that a conforming value passes silently."""
        TypeValidator(registry.resolve(str)).validate("ok")

    def test_validation_error_is_value_error(self, registry):
        """Test that ValidationError can be caught as ValueError."""
        with pytest.raises(ValueError):
            TypeValidator(registry.resolve(str)).validate(1)

    def test_incomplete(self, registry):
        """Test that an incomplete type raises instead of reporting."""
        v = TypeValidator(registry.resolve("Post"))
        with pytest.raises(IncompleteType):
            v.valid("a")
        with pytest.raises(IncompleteType):
            v.validate("a")

    def test_incomplete_with_nil(self, registry):
        """Test that None is not accepted or rejected before finalization."""
        for allow_nil in (True, False):
            v = TypeValidator(registry.resolve("Post"), allow_nil=allow_nil)
            with pytest.raises(IncompleteType):
                v.valid(None)
            with pytest.raises(IncompleteType):
                v.validate(None)


class TestValidatorBase:
    """Tests for the Validator base class."""

    def test_valid_from_validate(self):
        """Test that valid reports validate's outcome."""
        v = Length(max=2)
        assert v.valid("ab") is True
        assert v.valid("abc") is False

    def test_validate_not_implemented(self):
        """Test that the base validate is abstract."""
        with pytest.raises(NotImplementedError):
            Validator().validate(1)


class TestValidatorRegistry:
    """Tests for ValidatorRegistry."""

    def test_type_registered_by_default(self):
        """Test that the type validator is available."""
        assert "type" in default_validators
        assert default_validators.get("type") is TypeValidator

    def test_register_and_build_with_mapping(self, validators):
        """Test that mapping options become keyword arguments."""
        validators.register("length", Length)
        v = validators.build("length", {"max": 3})
        assert isinstance(v, Length)
        assert v.max == 3

    def test_build_with_scalar_option(self, validators):
        """Test that a scalar option is passed positionally."""
        validators.register("length", Length)
        assert validators.build("length", 4).max == 4

    def test_build_with_true(self, validators):
        """Test that True means no options."""
        validators.register("length", Length)
        assert validators.build("length", True).max is None

    def test_unknown(self, validators):
        """Test looking up an unregistered validator."""
        with pytest.raises(UnknownValidator, match="presence"):
            validators.get_or_raise("presence")
        with pytest.raises(KeyError):
            validators.build("presence", {})

    def test_duplicate(self, validators):
        """Test that names cannot be registered twice."""
        validators.register("length", Length)
        with pytest.raises(DuplicateRegistration):
            validators.register("length", Length)
        validators.register("length", Length, overwrite=True)

    def test_copy_is_independent(self, validators):
        """Test that copies do not leak registrations."""
        validators.register("length", Length)
        assert "length" in validators
        assert "length" not in default_validators

    def test_decorator(self, validators):
        """Test registering through the decorator."""

        @register_validator("positive", registry=validators)
        class Positive(Validator):
            def validate(self, value):
                if value <= 0:
                    raise ValidationError("must be positive", value=value)

        assert validators.get("positive") is Positive
        assert "positive" in validators.list_validators()
