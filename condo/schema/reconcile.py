import json
import logging
import os
from typing import List, Literal, Optional

from pydantic import BaseModel

from condo.schema.model import AccessRules, Collection, Field, Index, Schema, SlotGuard

logger = logging.getLogger("condo")

ChangeKind = Literal[
    "create_collection",
    "add_field",
    "alter_field",
    "drop_field",
    "create_index",
    "drop_index",
    "set_rules",
    "install_slot_guard",
    "drop_slot_guard",
]


class SchemaChange(BaseModel):
    kind: ChangeKind
    collection: str
    definition: Optional[Collection] = None   # create_collection
    field: Optional[Field] = None
    previous: Optional[Field] = None          # alter_field
    index: Optional[Index] = None
    rules: Optional[AccessRules] = None
    guard: Optional[SlotGuard] = None

    def describe(self) -> str:
        target = self.collection
        if self.field:
            target += f".{self.field.name}"
        if self.index:
            target += f" [{self.index.name}]"
        return f"{self.kind:<20} {target}"


def _collection_changes(desired: Collection, current: Optional[Collection], prune: bool) -> List[SchemaChange]:
    name = desired.name
    changes: List[SchemaChange] = []

    if current is None:
        changes.append(SchemaChange(kind="create_collection", collection=name, definition=desired))
        changes.extend(SchemaChange(kind="create_index", collection=name, index=i) for i in desired.indexes)
        changes.append(SchemaChange(kind="set_rules", collection=name, rules=desired.rules))
        if desired.slot_guard:
            changes.append(SchemaChange(kind="install_slot_guard", collection=name, guard=desired.slot_guard))
        return changes

    for f in desired.fields:
        existing = current.field(f.name)
        if existing is None:
            changes.append(SchemaChange(kind="add_field", collection=name, field=f))
        elif existing != f:
            changes.append(SchemaChange(kind="alter_field", collection=name, field=f, previous=existing))
    for f in current.fields:
        if desired.field(f.name) is None:
            if prune:
                changes.append(SchemaChange(kind="drop_field", collection=name, field=f))
            else:
                logger.warning(f"⚠️ {name}.{f.name} is no longer declared (kept, run with prune to drop)")

    for i in desired.indexes:
        existing = current.index(i.name)
        if existing is None:
            changes.append(SchemaChange(kind="create_index", collection=name, index=i))
        elif existing != i:
            changes.append(SchemaChange(kind="drop_index", collection=name, index=existing))
            changes.append(SchemaChange(kind="create_index", collection=name, index=i))
    for i in current.indexes:
        if desired.index(i.name) is None and prune:
            changes.append(SchemaChange(kind="drop_index", collection=name, index=i))

    if desired.rules != current.rules:
        changes.append(SchemaChange(kind="set_rules", collection=name, rules=desired.rules))

    if desired.slot_guard != current.slot_guard:
        if desired.slot_guard:
            changes.append(SchemaChange(kind="install_slot_guard", collection=name, guard=desired.slot_guard))
        else:
            changes.append(SchemaChange(kind="drop_slot_guard", collection=name, guard=current.slot_guard))

    return changes


def diff(desired: Schema, current: Optional[Schema] = None, prune: bool = False) -> List[SchemaChange]:
    """
    Changes that bring `current` (None for an empty backend) to `desired`.
    Applying the result and diffing again yields an empty list.
    """
    changes: List[SchemaChange] = []
    for coll in desired.collections:
        existing = current.collection(coll.name) if current else None
        changes.extend(_collection_changes(coll, existing, prune))

    if current:
        for coll in current.collections:
            if desired.collection(coll.name) is None:
                # Collections are never dropped automatically
                logger.warning(f"⚠️ Collection '{coll.name}' exists but is not declared")
    return changes


def load_snapshot(path: str) -> Optional[Schema]:
    """Schema recorded by the last successful apply, or None for a fresh backend."""
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return Schema.model_validate(json.load(f))


def save_snapshot(schema: Schema, path: str):
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(schema.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
