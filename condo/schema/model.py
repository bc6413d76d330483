from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field as PydanticField

FieldKind = Literal["text", "number", "bool", "date", "datetime", "select", "relation", "file"]
Access = Literal["public", "authenticated", "admin", "locked"]
OnDelete = Literal["restrict", "cascade", "set null"]

# Columns every collection gets without declaring them
SYSTEM_COLUMNS = ("id", "created_at", "updated_at")


class Field(BaseModel):
    name: str
    kind: FieldKind = "text"
    required: bool = False
    default: Optional[Union[bool, int, str]] = None
    values: List[str] = PydanticField(default_factory=list)  # select
    target: Optional[str] = None                              # relation
    on_delete: OnDelete = "restrict"                          # relation
    max_bytes: Optional[int] = None                           # file


class Index(BaseModel):
    name: str
    columns: List[str]
    unique: bool = False


class AccessRules(BaseModel):
    """Row level access per operation. `locked` means nobody but the service role."""
    read: Access = "authenticated"
    create: Access = "authenticated"
    update: Access = "authenticated"
    delete: Access = "authenticated"


class SlotGuard(BaseModel):
    """
    Rows sharing (day, room) must not overlap: a row whose period equals
    `exclusive_value` excludes every other row of that (day, room).
    Same-period duplicates are excluded as well.
    """
    day_column: str
    room_column: str
    period_column: str
    exclusive_value: str


class Collection(BaseModel):
    name: str
    fields: List[Field] = PydanticField(default_factory=list)
    indexes: List[Index] = PydanticField(default_factory=list)
    rules: AccessRules = PydanticField(default_factory=AccessRules)
    slot_guard: Optional[SlotGuard] = None
    # `id` is the auth user id instead of a generated uuid
    auth_linked: bool = False

    def field(self, name: str) -> Optional[Field]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def index(self, name: str) -> Optional[Index]:
        for i in self.indexes:
            if i.name == name:
                return i
        return None


class Schema(BaseModel):
    version: int
    collections: List[Collection]

    def collection(self, name: str) -> Optional[Collection]:
        for c in self.collections:
            if c.name == name:
                return c
        return None

    def require(self, name: str) -> Collection:
        coll = self.collection(name)
        if coll is None:
            raise KeyError(f"Unknown collection: {name}")
        return coll

    def referencing(self, target: str):
        """Yields (collection, field) pairs whose relation points at `target`."""
        for coll in self.collections:
            for f in coll.fields:
                if f.kind == "relation" and f.target == target:
                    yield coll, f
