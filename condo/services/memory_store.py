"""
In-process RecordStore used for local development and tests.

It enforces the declarative schema the same way the generated SQL does on
Supabase: required fields, select values, relations, unique indexes and the
booking slot guard. Each operation runs without yielding to the event loop,
so check and write are atomic with respect to concurrent coroutines.
"""
import copy
import re
import uuid
from typing import Dict, List

from condo.core.dates import utc_now
from condo.core.errors import ConflictError, NotFoundError, ValidationError
from condo.schema.definitions import SCHEMA
from condo.schema.model import SYSTEM_COLUMNS, Collection, Schema
from condo.services.db_service import Filter, serialize, serialize_value


def _like(pattern: str, value) -> bool:
    if value is None:
        return False
    # SQL LIKE wildcards: % any run, _ any single character
    regex = "".join(".*" if c == "%" else "." if c == "_" else re.escape(c) for c in str(pattern))
    regex = f"^{regex}$"
    return re.match(regex, str(value), flags=re.IGNORECASE | re.DOTALL) is not None


def _matches(row: dict, f: Filter) -> bool:
    value = row.get(f.column)
    expected = serialize_value(f.value)
    if f.op == "is_null":
        return value is None
    if f.op == "not_null":
        return value is not None
    if f.op == "ilike":
        return _like(expected, value)
    if f.op == "eq":
        return value == expected
    if f.op == "neq":
        return value != expected
    if value is None or expected is None:
        return False
    if f.op == "gt":
        return value > expected
    if f.op == "gte":
        return value >= expected
    if f.op == "lt":
        return value < expected
    if f.op == "lte":
        return value <= expected
    raise ValueError(f"Unsupported filter op: {f.op}")


class InMemoryRecordStore:
    def __init__(self, schema: Schema = SCHEMA):
        self.schema = schema
        self._tables: Dict[str, Dict[str, dict]] = {c.name: {} for c in schema.collections}

    def _table(self, collection: str) -> Dict[str, dict]:
        if collection not in self._tables:
            raise ValidationError(detail=f"Unknown collection: {collection}")
        return self._tables[collection]

    # --- constraint checks -------------------------------------------------

    def _validate(self, coll: Collection, record: dict):
        for key in record:
            if key not in SYSTEM_COLUMNS and coll.field(key) is None:
                raise ValidationError(detail=f"{coll.name}: unknown column '{key}'", field=key)
        for f in coll.fields:
            value = record.get(f.name)
            if value is None:
                if f.required:
                    raise ValidationError(f"Campo obrigatório: {f.name}.", field=f.name)
                continue
            if f.kind == "select" and f.values and value not in f.values:
                raise ValidationError(f"Valor inválido para {f.name}.", detail=str(value), field=f.name)
            if f.kind == "relation" and value not in self._tables.get(f.target, {}):
                raise ValidationError("Referência inválida.", detail=f"{f.target}/{value}", field=f.name)

    def _check_unique(self, coll: Collection, record: dict):
        rows = self._tables[coll.name]
        for index in coll.indexes:
            if not index.unique:
                continue
            key = tuple(record.get(c) for c in index.columns)
            if any(v is None for v in key):
                continue
            for other in rows.values():
                if other["id"] != record["id"] and tuple(other.get(c) for c in index.columns) == key:
                    raise ConflictError("Já existe um registro com estes dados.", detail=index.name)

    def _check_slot_guard(self, coll: Collection, record: dict):
        guard = coll.slot_guard
        if guard is None:
            return
        for other in self._tables[coll.name].values():
            if other["id"] == record["id"]:
                continue
            if other.get(guard.day_column) != record.get(guard.day_column):
                continue
            if other.get(guard.room_column) != record.get(guard.room_column):
                continue
            periods = (other.get(guard.period_column), record.get(guard.period_column))
            if guard.exclusive_value in periods or periods[0] == periods[1]:
                raise ConflictError("Este período já está reservado.", detail=f"{coll.name} slot guard")

    def _check_all(self, coll: Collection, record: dict):
        self._validate(coll, record)
        self._check_unique(coll, record)
        self._check_slot_guard(coll, record)

    # --- RecordStore -------------------------------------------------------

    async def list(self, collection, filters=(), order=(), limit=None):
        rows = [r for r in self._table(collection).values() if all(_matches(r, f) for f in filters)]
        for o in reversed(list(order)):
            present = [r for r in rows if r.get(o.column) is not None]
            missing = [r for r in rows if r.get(o.column) is None]
            present.sort(key=lambda r: r[o.column], reverse=o.desc)
            rows = present + missing
        if limit:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def get(self, collection, record_id):
        row = self._table(collection).get(record_id)
        if row is None:
            raise NotFoundError(detail=f"{collection}/{record_id}")
        return copy.deepcopy(row)

    async def first(self, collection, filters=(), order=()):
        rows = await self.list(collection, filters, order, limit=1)
        return rows[0] if rows else None

    async def count(self, collection, filters=()):
        return len([r for r in self._table(collection).values() if all(_matches(r, f) for f in filters)])

    async def insert(self, collection, values):
        coll = self.schema.require(collection)
        table = self._table(collection)
        now = utc_now().isoformat()
        record = {f.name: serialize_value(f.default) for f in coll.fields}
        record.update(serialize(values))
        record["id"] = str(record.get("id") or uuid.uuid4())
        if record["id"] in table:
            raise ConflictError(detail=f"{collection}/{record['id']} exists")
        record.setdefault("created_at", now)
        record.setdefault("updated_at", now)
        self._check_all(coll, record)
        table[record["id"]] = record
        return copy.deepcopy(record)

    async def update(self, collection, record_id, values):
        coll = self.schema.require(collection)
        table = self._table(collection)
        if record_id not in table:
            raise NotFoundError(detail=f"{collection}/{record_id}")
        record = dict(table[record_id])
        record.update(serialize(values))
        record["id"] = record_id
        record["updated_at"] = utc_now().isoformat()
        self._check_all(coll, record)
        table[record_id] = record
        return copy.deepcopy(record)

    async def delete(self, collection, record_id):
        self.schema.require(collection)
        if record_id not in self._table(collection):
            raise NotFoundError(detail=f"{collection}/{record_id}")
        self._delete(collection, record_id)

    def _delete(self, collection: str, record_id: str):
        # Referencing rows first: restrict blocks the whole delete before anything changes
        for coll, f in self.schema.referencing(collection):
            if f.on_delete == "restrict":
                if any(r.get(f.name) == record_id for r in self._tables[coll.name].values()):
                    raise ConflictError("O registro está em uso e não pode ser excluído.",
                                        detail=f"{coll.name}.{f.name}")
        for coll, f in self.schema.referencing(collection):
            for row in list(self._tables[coll.name].values()):
                if row.get(f.name) != record_id:
                    continue
                if f.on_delete == "set null":
                    row[f.name] = None
                elif f.on_delete == "cascade":
                    self._delete(coll.name, row["id"])
        del self._tables[collection][record_id]

    async def close(self) -> None:
        pass

    # --- test helpers ------------------------------------------------------

    def rows(self, collection: str) -> List[dict]:
        return copy.deepcopy(list(self._table(collection).values()))
