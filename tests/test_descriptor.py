"""Tests for TypeDescriptor construction and row access."""

from dataclasses import dataclass
from decimal import Decimal

import pytest

from typed_records.descriptor import describe
from typed_records.errors import ConversionError, ShapeError
from typed_records.parsing import TypeParser
from typed_records.roles import RoleKind
from typed_records.shape import TypeShape

MERGE_ROLES = {RoleKind.ID, RoleKind.COMPARE, RoleKind.UPDATE, RoleKind.DELETE}


class TestDescribe:
    """Tests for describe()."""

    def test_customer_scenario(self, customer_registry):
        """Test the merge role set on the customer record."""
        descriptor = describe(customer_registry.get("Customer"), MERGE_ROLES)

        assert descriptor.shape is TypeShape.RECORD
        assert descriptor.property_names == ["Id", "Name", "Email"]
        assert [r.property_name for r in descriptor.roles_for(RoleKind.ID)] == ["Id"]
        assert [r.property_name for r in descriptor.roles_for(RoleKind.COMPARE)] == ["Name", "Email"]
        assert [r.property_name for r in descriptor.roles_for(RoleKind.UPDATE)] == ["Email"]
        assert descriptor.roles_for(RoleKind.DELETE) == ()

    def test_requested_versus_missing(self, customer_registry):
        """Test the distinction between unrequested and empty role lists."""
        descriptor = describe(customer_registry.get("Customer"), {RoleKind.DELETE})

        assert descriptor.is_requested(RoleKind.DELETE)
        assert not descriptor.is_requested(RoleKind.ID)
        assert descriptor.roles_for(RoleKind.DELETE) == ()
        with pytest.raises(KeyError, match="not requested"):
            descriptor.roles_for(RoleKind.ID)

    def test_role_names_accepted(self, customer_registry):
        """Test that role kinds may be requested by name."""
        descriptor = describe(customer_registry.get("Customer"), ["id", "Compare"])
        assert set(descriptor.roles) == {RoleKind.ID, RoleKind.COMPARE}

    def test_properties_by_name(self, customer_registry):
        """Test the name lookup table."""
        descriptor = describe(customer_registry.get("Customer"))

        assert descriptor.get_property("Email").ordinal == 2
        assert list(descriptor.properties_by_name) == ["Id", "Name", "Email"]
        with pytest.raises(KeyError):
            descriptor.get_property("Phone")

    def test_descriptor_is_read_only(self, customer_registry):
        """Test that the descriptor and its tables cannot be modified."""
        descriptor = describe(customer_registry.get("Customer"), MERGE_ROLES)

        with pytest.raises(AttributeError):
            descriptor.shape = TypeShape.ARRAY
        with pytest.raises(TypeError):
            descriptor.roles[RoleKind.KEY] = ()
        with pytest.raises(TypeError):
            descriptor.properties_by_name["x"] = None

    def test_repeatable(self, customer_registry):
        """Test that building twice gives equal results."""
        customer = customer_registry.get("Customer")
        first = describe(customer, MERGE_ROLES)
        second = describe(customer, MERGE_ROLES)

        assert first is not second
        assert first.properties == second.properties
        assert dict(first.roles) == dict(second.roles)

    def test_hashable(self, customer_registry):
        """Test that descriptors hash by identity."""
        customer = customer_registry.get("Customer")
        first = describe(customer, MERGE_ROLES)
        second = describe(customer, MERGE_ROLES)

        assert len({first, second, first}) == 2
        assert first != second

    def test_dynamic_record(self):
        """Test that dynamic records resolve roles from their side table."""
        registry = TypeParser().parse("dynamic Bag { code @match, label @retrieve }")

        descriptor = describe(registry.get("Bag"), {RoleKind.MATCH, RoleKind.RETRIEVE})

        assert descriptor.is_dynamic
        assert descriptor.properties == ()
        assert [r.property_name for r in descriptor.roles_for(RoleKind.MATCH)] == ["code"]
        assert [r.property_name for r in descriptor.roles_for(RoleKind.RETRIEVE)] == ["label"]

    def test_array(self, customer_registry):
        """Test that arrays have no properties or role entries."""
        array = customer_registry.get_array_type(customer_registry.get("string"))

        descriptor = describe(array, {RoleKind.ID})

        assert descriptor.is_array
        assert descriptor.properties == ()
        assert descriptor.roles_for(RoleKind.ID) == ()

    def test_indexed_property_fails(self):
        """Test that no descriptor is produced for an indexed record."""
        registry = TypeParser().parse("record Sheet { cell[row: int32]: string @id }")

        with pytest.raises(ShapeError):
            describe(registry.get("Sheet"), {RoleKind.ID})


class TestRowAccess:
    """Tests for get_value() and set_value()."""

    @pytest.fixture
    def order(self):
        registry = TypeParser().parse(
            "record Order { id: int32 @id, total: decimal?, note: string }\ndynamic Bag { }"
        )
        return registry, describe(registry.get("Order"))

    def test_mapping_rows(self, order):
        """Test reading and writing dict rows with conversion."""
        _, descriptor = order
        row = {"id": 1, "total": None, "note": "x"}

        descriptor.set_value(row, "id", "42")
        descriptor.set_value(row, "total", "9.99")

        assert descriptor.get_value(row, "id") == 42
        assert row["total"] == Decimal("9.99")

    def test_object_rows(self, order):
        """Test reading and writing attribute rows."""
        _, descriptor = order

        @dataclass
        class OrderRow:
            id: int = 0
            total: Decimal | None = None
            note: str = ""

        row = OrderRow()
        descriptor.set_value(row, "total", 5)
        descriptor.set_value(row, "note", None)

        assert row.total == Decimal(5)
        assert descriptor.get_value(row, "note") is None

    def test_conversion_error_names_property(self, order):
        """Test that a failed write reports the property."""
        _, descriptor = order
        row = {"id": 1}

        with pytest.raises(ConversionError) as exc_info:
            descriptor.set_value(row, "id", "one")

        assert exc_info.value.property_name == "id"
        assert row["id"] == 1

    def test_unknown_property(self, order):
        """Test that undeclared properties are rejected."""
        _, descriptor = order
        with pytest.raises(KeyError):
            descriptor.get_value({"id": 1}, "missing")
        with pytest.raises(KeyError):
            descriptor.set_value({}, "missing", 1)

    def test_dynamic_rows(self, order):
        """Test that dynamic rows accept any key without conversion."""
        registry, _ = order
        descriptor = describe(registry.get("Bag"))
        row = {}

        descriptor.set_value(row, "anything", "1")

        assert row == {"anything": "1"}
        assert descriptor.get_value(row, "anything") == "1"
        assert descriptor.get_value(row, "missing") is None
