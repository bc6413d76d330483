"""
The desired backend schema. Bump SCHEMA_VERSION whenever a collection changes;
`python -m condo.schema apply` turns the difference into a migration.
"""
from condo.schema.model import AccessRules, Collection, Field, Index, Schema, SlotGuard

SCHEMA_VERSION = 3

PERIODS = ["full_day", "morning", "afternoon"]
ROLES = ["admin", "operator"]
NAMING = ["letters", "numbers"]

AUTHENTICATED = AccessRules()
ADMIN_WRITES = AccessRules(create="admin", update="admin", delete="locked")
APPEND_ONLY = AccessRules(update="locked", delete="locked")

COLLECTIONS = [
    Collection(
        name="profiles",
        auth_linked=True,
        fields=[
            Field(name="email", kind="text"),
            Field(name="full_name", kind="text"),
            Field(name="role", kind="select", values=ROLES, required=True, default="operator"),
            Field(name="must_change_password", kind="bool", required=True, default=False),
        ],
        indexes=[Index(name="profiles_email_key", columns=["email"], unique=True)],
        rules=AccessRules(create="locked", update="admin", delete="locked"),
    ),
    Collection(
        name="condominium",
        fields=[
            Field(name="name", kind="text", required=True),
            Field(name="cnpj", kind="text"),
            Field(name="address", kind="text"),
            Field(name="phone", kind="text"),
            Field(name="tower_count", kind="number", default=1),
            Field(name="tower_prefix", kind="text", default="Bloco"),
            Field(name="tower_naming", kind="select", values=NAMING, default="letters"),
            Field(name="party_room_name", kind="text"),
            Field(name="party_room_capacity", kind="number"),
            Field(name="party_room_rules", kind="text"),
            Field(name="party_room_count", kind="number", default=1),
            Field(name="party_room_naming", kind="select", values=NAMING, default="numbers"),
        ],
        rules=ADMIN_WRITES,
    ),
    Collection(
        name="units",
        fields=[
            Field(name="unit_number", kind="text", required=True),
            Field(name="block", kind="text"),
            Field(name="resident_name", kind="text", required=True),
            Field(name="phone_number", kind="text"),
        ],
        indexes=[Index(name="units_block_number_idx", columns=["block", "unit_number"])],
        rules=AUTHENTICATED,
    ),
    Collection(
        name="vehicles",
        fields=[
            Field(name="plate", kind="text", required=True),
            Field(name="model", kind="text", required=True),
            Field(name="color", kind="text"),
            Field(name="type", kind="select", values=["car", "motorcycle", "truck"], default="car"),
            Field(name="unit_id", kind="relation", target="units", required=True),
        ],
        indexes=[
            Index(name="vehicles_plate_key", columns=["plate"], unique=True),
            Index(name="vehicles_unit_idx", columns=["unit_id"]),
        ],
        rules=AUTHENTICATED,
    ),
    Collection(
        name="service_providers",
        fields=[
            Field(name="name", kind="text", required=True),
            Field(name="document", kind="text"),
            Field(name="company", kind="text"),
            Field(name="photo_url", kind="file", max_bytes=5242880),
            Field(name="entry_time", kind="datetime", required=True),
            Field(name="exit_time", kind="datetime"),
            Field(name="unit_id", kind="relation", target="units", on_delete="set null"),
            Field(name="created_by", kind="relation", target="profiles", on_delete="set null"),
        ],
        indexes=[Index(name="service_providers_entry_idx", columns=["entry_time"])],
        rules=AUTHENTICATED,
    ),
    Collection(
        name="rental_guests",
        fields=[
            Field(name="name", kind="text", required=True),
            Field(name="document", kind="text"),
            Field(name="vehicle_plate", kind="text"),
            Field(name="photo_url", kind="file", max_bytes=5242880),
            Field(name="entry_time", kind="datetime", required=True),
            Field(name="exit_time", kind="datetime"),
            Field(name="unit_id", kind="relation", target="units", required=True),
            Field(name="created_by", kind="relation", target="profiles", on_delete="set null"),
        ],
        indexes=[Index(name="rental_guests_entry_idx", columns=["entry_time"])],
        rules=AUTHENTICATED,
    ),
    Collection(
        name="parcels",
        fields=[
            Field(name="protocol_number", kind="text"),
            Field(name="description", kind="text", required=True),
            Field(name="photo_url", kind="file", max_bytes=5242880),
            Field(name="status", kind="select", values=["pending", "collected"], required=True, default="pending"),
            Field(name="arrived_at", kind="datetime", required=True),
            Field(name="collected_at", kind="datetime"),
            Field(name="unit_id", kind="relation", target="units", required=True),
            Field(name="created_by", kind="relation", target="profiles", on_delete="set null"),
        ],
        indexes=[
            Index(name="parcels_status_idx", columns=["status"]),
            Index(name="parcels_arrived_idx", columns=["arrived_at"]),
        ],
        rules=AUTHENTICATED,
    ),
    Collection(
        name="party_room_bookings",
        fields=[
            Field(name="booking_date", kind="date", required=True),
            Field(name="period", kind="select", values=PERIODS, required=True),
            Field(name="party_room_id", kind="number", required=True, default=1),
            Field(name="unit_id", kind="relation", target="units", required=True),
            Field(name="created_by", kind="relation", target="profiles", on_delete="set null"),
        ],
        indexes=[
            Index(
                name="party_room_bookings_slot_key",
                columns=["booking_date", "party_room_id", "period"],
                unique=True,
            ),
        ],
        # Never mutated in place: a change is delete + create
        rules=AccessRules(update="locked", delete="admin"),
        slot_guard=SlotGuard(
            day_column="booking_date",
            room_column="party_room_id",
            period_column="period",
            exclusive_value="full_day",
        ),
    ),
    Collection(
        name="system_logs",
        fields=[
            Field(name="user_id", kind="relation", target="profiles", required=True),
            Field(name="action", kind="select", values=["CREATE", "UPDATE", "DELETE"], required=True),
            Field(name="target_collection", kind="text"),
            Field(name="target_id", kind="text"),
            Field(name="description", kind="text", required=True),
            Field(name="timestamp", kind="datetime"),
        ],
        indexes=[Index(name="system_logs_timestamp_idx", columns=["timestamp"])],
        rules=APPEND_ONLY,
    ),
]

SCHEMA = Schema(version=SCHEMA_VERSION, collections=COLLECTIONS)
