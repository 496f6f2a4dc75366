"""Tests for role scanning."""

from typed_records.catalog import build_properties
from typed_records.parsing import TypeParser
from typed_records.roles import (
    CompareColumn,
    DeleteColumn,
    GroupColumn,
    IdColumn,
    RenameColumn,
    RoleKind,
    UpdateColumn,
)
from typed_records.scanner import scan


def _names(roles):
    return [r.property_name for r in roles]


class TestScan:
    """Tests for scan()."""

    def test_customer_scenario(self, customer_registry):
        """Test the merge role set on a typical customer record."""
        properties = build_properties(customer_registry.get("Customer"))

        result = scan(properties, {RoleKind.ID, RoleKind.COMPARE, RoleKind.UPDATE, RoleKind.DELETE})

        assert _names(result[RoleKind.ID]) == ["Id"]
        assert _names(result[RoleKind.COMPARE]) == ["Name", "Email"]
        assert _names(result[RoleKind.UPDATE]) == ["Email"]
        assert result[RoleKind.DELETE] == ()

    def test_only_requested_kinds_present(self, customer_registry):
        """Test that unrequested kinds are not keys of the result."""
        properties = build_properties(customer_registry.get("Customer"))

        result = scan(properties, {RoleKind.COMPARE})

        assert set(result) == {RoleKind.COMPARE}
        assert RoleKind.ID not in result

    def test_nothing_requested(self, customer_registry):
        """Test that an empty request yields an empty mapping."""
        properties = build_properties(customer_registry.get("Customer"))
        assert scan(properties, ()) == {}

    def test_descriptors_are_stamped_copies(self, customer_registry):
        """Test that descriptors carry the property name and declarations stay unstamped."""
        record = customer_registry.get("Customer")
        properties = build_properties(record)

        result = scan(properties, {RoleKind.ID})

        assert result[RoleKind.ID] == (IdColumn(property_name="Id"),)
        assert record.fields[0].roles[0].property_name is None

    def test_role_specific_fields_kept(self):
        """Test that role configuration survives stamping."""
        registry = TypeParser().parse(
            'record Out { full: string @rename(to="full_name"), region: string @group(input="area") }'
        )
        properties = build_properties(registry.get("Out"))

        result = scan(properties, ["rename", "group"])

        rename = result[RoleKind.RENAME][0]
        assert rename == RenameColumn(new_name="full_name", property_name="full")
        assert rename.current_name == "full"
        assert result[RoleKind.GROUP] == (GroupColumn(input_property="area", property_name="region"),)

    def test_property_in_several_lists(self):
        """Test that roles are independent of each other."""
        registry = TypeParser().parse("record R { a: int32 @id @compare @update @delete }")
        properties = build_properties(registry.get("R"))

        result = scan(properties, [RoleKind.ID, RoleKind.COMPARE, RoleKind.UPDATE, RoleKind.DELETE])

        assert result[RoleKind.ID] == (IdColumn(property_name="a"),)
        assert result[RoleKind.COMPARE] == (CompareColumn(property_name="a"),)
        assert result[RoleKind.UPDATE] == (UpdateColumn(property_name="a"),)
        assert result[RoleKind.DELETE] == (DeleteColumn(property_name="a"),)

    def test_presence_iff_declared(self):
        """Test inclusion exactly for the properties declaring each kind."""
        registry = TypeParser().parse(
            """
            record R {
                a: int32 @key,
                b: int32,
                c: int32 @key @distinct,
                d: int32 @distinct(key=false),
                e: int32 @column_map(column="E_COL"),
            }
            """
        )
        properties = build_properties(registry.get("R"))

        for kind in RoleKind:
            expected = [p.name for p in properties if any(r.kind is kind for r in p.roles)]
            assert _names(scan(properties, {kind})[kind]) == expected

    def test_scan_dynamic_side_table(self):
        """Test that dynamic role tables scan the same way as properties."""
        registry = TypeParser().parse('dynamic Bag { code @match(input="src"), label @retrieve, other }')

        result = scan(registry.get("Bag").role_table, {RoleKind.MATCH, RoleKind.RETRIEVE, RoleKind.ID})

        assert _names(result[RoleKind.MATCH]) == ["code"]
        assert result[RoleKind.MATCH][0].input_property == "src"
        assert _names(result[RoleKind.RETRIEVE]) == ["label"]
        assert result[RoleKind.ID] == ()
