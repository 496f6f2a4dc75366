"""Example usage of the typed_records library."""

from typed_records import PipelineRunContext, RoleKind, TypeParser

# Declare record types and the roles their columns play
types = """
define customer_id as int64

record Customer {
    id: customer_id @id,
    name: string @compare,
    email: string @compare @update,
    balance: decimal?,
}

record RegionTotal {
    region: string @group(input="area"),
    total: decimal @aggregate(of="balance", method="sum"),
}
"""

registry = TypeParser().parse(types)

with PipelineRunContext(registry) as run:
    # A merge operator needs the id, compare and update columns
    merge = run.descriptor_for("Customer", {RoleKind.ID, RoleKind.COMPARE, RoleKind.UPDATE})
    print("Merge key:      ", [r.property_name for r in merge.roles_for(RoleKind.ID)])
    print("Change columns: ", [r.property_name for r in merge.roles_for(RoleKind.COMPARE)])
    print("Update columns: ", [r.property_name for r in merge.roles_for(RoleKind.UPDATE)])

    # Values are converted to each column's underlying type on write
    row = {"id": None, "name": "Alice", "email": "alice@example.com", "balance": None}
    merge.set_value(row, "id", "1001")
    merge.set_value(row, "balance", "12.50")
    print("Row:            ", row)

    # An aggregation operator asks for a different role set
    aggregate = run.descriptor_for("RegionTotal", {RoleKind.GROUP, RoleKind.AGGREGATE})
    for group in aggregate.roles_for(RoleKind.GROUP):
        print(f"Group {group.input_property} -> {group.property_name}")
    for agg in aggregate.roles_for(RoleKind.AGGREGATE):
        print(f"{agg.method.value}({agg.aggregated_property}) -> {agg.property_name}")
