"""Tests for numeric classification, nullable unwrapping and coercion."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from typed_records.coercion import coerce, is_numeric, unwrap_nullable
from typed_records.errors import ConversionError
from typed_records.parsing import TypeParser
from typed_records.types import PrimitiveType, TypeRegistry


@pytest.fixture
def registry():
    return TypeParser().parse(
        """
        enum Status { active, inactive }
        define amount as decimal
        record Row { id: int32 }
        dynamic Bag { }
        """
    )


class TestIsNumeric:
    """Tests for is_numeric()."""

    @pytest.mark.parametrize(
        "name",
        ["uint8", "int8", "uint16", "int16", "uint32", "int32", "uint64", "int64", "float32", "float64", "decimal"],
    )
    def test_numeric_primitives(self, registry, name):
        """Test numeric primitives and their nullable wrappers."""
        type_def = registry.get(name)
        assert is_numeric(type_def) is True
        assert is_numeric(registry.get_nullable_type(type_def)) is True

    @pytest.mark.parametrize("name", ["boolean", "string", "datetime", "Status", "Row", "Bag"])
    def test_non_numeric(self, registry, name):
        """Test boolean, text, datetime, enums and records."""
        assert is_numeric(registry.get(name)) is False

    def test_nullable_boolean(self, registry):
        """Test that a nullable boolean is not numeric."""
        assert is_numeric(registry.get_nullable_type(registry.get("boolean"))) is False

    def test_none(self):
        """Test that an absent type is not numeric."""
        assert is_numeric(None) is False

    def test_alias(self, registry):
        """Test that aliases are resolved."""
        assert is_numeric(registry.get("amount")) is True


class TestUnwrapNullable:
    """Tests for unwrap_nullable()."""

    def test_unwrap(self, registry):
        """Test unwrapping nullable<int32>."""
        int32 = registry.get("int32")
        assert unwrap_nullable(registry.get_nullable_type(int32)) is int32

    def test_identity(self, registry):
        """Test identity on non-nullable types."""
        for name in ("string", "int32", "Row", "Status"):
            type_def = registry.get(name)
            assert unwrap_nullable(type_def) is type_def

    def test_idempotent(self, registry):
        """Test that unwrapping twice changes nothing more."""
        int32 = registry.get("int32")
        once = unwrap_nullable(registry.get_nullable_type(int32))
        assert unwrap_nullable(once) is once


class TestCoerce:
    """Tests for coerce()."""

    def test_none(self, registry):
        """Test that None converts to None for every target."""
        for name in registry.list_types():
            assert coerce(None, registry.get(name)) is None

    def test_text_to_int(self, registry):
        """Test integral text into an integer target."""
        assert coerce("123", registry.get("int32")) == 123
        assert coerce(" -7 ", registry.get("int64")) == -7

    def test_invalid_text_to_int(self, registry):
        """Test that non-numeric text fails with ConversionError."""
        with pytest.raises(ConversionError) as exc_info:
            coerce("abc", registry.get("int32"), property_name="Id")

        error = exc_info.value
        assert error.value == "abc"
        assert error.source_type == "str"
        assert error.target_type == "int32"
        assert error.property_name == "Id"
        assert "Id" in str(error)

    @pytest.mark.parametrize("text", ["1_000", "\u0661\u0662", "0x10", "1.0", "", "+"])
    def test_non_integral_text_to_int(self, registry, text):
        """Test that only plain ASCII digits parse as integers."""
        with pytest.raises(ConversionError):
            coerce(text, registry.get("int32"))

    def test_conversion_error_is_value_error(self, registry):
        """Test that ConversionError can be caught as ValueError."""
        with pytest.raises(ValueError):
            coerce("abc", registry.get("float64"))

    def test_float_to_int_rounds_half_even(self, registry):
        """Test rounding of floats and decimals into integers."""
        int32 = registry.get("int32")
        assert coerce(2.5, int32) == 2
        assert coerce(3.5, int32) == 4
        assert coerce(Decimal("2.5"), int32) == 2
        assert coerce(True, int32) == 1

    def test_integer_overflow(self, registry):
        """Test range checks for fixed-width integers."""
        with pytest.raises(ConversionError):
            coerce(256, registry.get("uint8"))
        with pytest.raises(ConversionError):
            coerce(-1, registry.get("uint32"))
        assert coerce(255, registry.get("uint8")) == 255

    def test_non_finite_float_to_int(self, registry):
        """Test that NaN cannot become an integer."""
        with pytest.raises(ConversionError):
            coerce(float("nan"), registry.get("int64"))

    def test_floats(self, registry):
        """Test float targets."""
        float64 = registry.get("float64")
        assert coerce("1.5", float64) == 1.5
        assert coerce(2, float64) == 2.0
        assert isinstance(coerce(Decimal("0.25"), float64), float)

    def test_decimal(self, registry):
        """Test decimal targets."""
        decimal = registry.get("decimal")
        assert coerce("10.10", decimal) == Decimal("10.10")
        assert coerce(0.1, decimal) == Decimal("0.1")
        assert coerce(3, decimal) == Decimal(3)
        with pytest.raises(ConversionError):
            coerce("ten", decimal)

    @pytest.mark.parametrize("value", ["NaN", float("nan"), "Infinity", float("-inf"), Decimal("sNaN")])
    def test_non_finite_decimal(self, registry, value):
        """Test that decimals only hold finite values."""
        with pytest.raises(ConversionError):
            coerce(value, registry.get("decimal"))

    def test_boolean(self, registry):
        """Test boolean targets."""
        boolean = registry.get("boolean")
        assert coerce("True", boolean) is True
        assert coerce("false", boolean) is False
        assert coerce(0, boolean) is False
        assert coerce(2.0, boolean) is True
        with pytest.raises(ConversionError):
            coerce("yes", boolean)

    def test_string(self, registry):
        """Test string targets."""
        assert coerce(42, registry.get("string")) == "42"

    def test_datetime(self, registry):
        """Test datetime targets."""
        target = registry.get("datetime")
        assert coerce("2024-03-01T12:30:00", target) == datetime(2024, 3, 1, 12, 30)
        assert coerce(date(2024, 3, 1), target) == datetime(2024, 3, 1)
        with pytest.raises(ConversionError):
            coerce("March 1st", target)

    def test_enum_value_unchanged(self, registry):
        """Test that enum targets accept any value as-is."""
        status = registry.get("Status")
        marker = object()
        assert coerce("anything", status) == "anything"
        assert coerce(marker, status) is marker
        assert coerce(1, registry.get_nullable_type(status)) == 1

    def test_nullable_target(self, registry):
        """Test that nullable targets convert to the wrapped type."""
        assert coerce("5", registry.get_nullable_type(registry.get("int32"))) == 5

    def test_alias_target(self, registry):
        """Test that alias targets convert to their base type."""
        assert coerce("1.25", registry.get("amount")) == Decimal("1.25")

    def test_array_and_record_targets(self, registry):
        """Test structured targets."""
        array = registry.get_array_type(registry.get("int32"))
        assert coerce((1, 2), array) == [1, 2]
        assert coerce({"id": 1}, registry.get("Row")) == {"id": 1}
        with pytest.raises(ConversionError):
            coerce(5, array)
        with pytest.raises(ConversionError):
            coerce("x", registry.get("Bag"))

    def test_array_elements_converted(self, registry):
        """Test that array elements take the element type."""
        int32 = registry.get("int32")
        array = registry.get_array_type(int32)
        nullable_array = registry.get_array_type(registry.get_nullable_type(int32))

        assert coerce(["1", 2.0, True], array) == [1, 2, 1]
        assert coerce(["1", None], nullable_array) == [1, None]
        assert coerce([[1], ("2",)], registry.get_array_type(array)) == [[1], [2]]

    def test_array_element_failure(self, registry):
        """Test that one bad element fails the whole array."""
        array = registry.get_array_type(registry.get("int32"))

        with pytest.raises(ConversionError, match="element 1") as exc_info:
            coerce(["1", "a"], array, property_name="Ids")

        assert exc_info.value.target_type == "int32[]"
        assert exc_info.value.property_name == "Ids"

    def test_record_row_objects(self, registry):
        """Test that row objects pass through record targets unchanged."""
        row = registry.get("Row")

        class RowObject:
            id = 1

        value = RowObject()
        assert coerce(value, row) is value
        for scalar in ("x", 5, [1]):
            with pytest.raises(ConversionError):
                coerce(scalar, row)

    def test_unsupported_source(self):
        """Test that unrelated objects cannot become numbers."""
        registry = TypeRegistry()
        with pytest.raises(ConversionError):
            coerce(object(), registry.get(PrimitiveType.INT32.value))
