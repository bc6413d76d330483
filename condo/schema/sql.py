"""
Renders schema changes as Postgres DDL for the Supabase database.
Every statement is safe to run twice.
"""
from typing import List

from condo.schema.model import AccessRules, Collection, Field, Index, SlotGuard
from condo.schema.reconcile import SchemaChange

SQL_TYPES = {
    "text": "text",
    "number": "integer",
    "bool": "boolean",
    "date": "date",
    "datetime": "timestamptz",
    "select": "text",
    "relation": "uuid",
    "file": "text",
}

PREDICATES = {
    "public": "true",
    "authenticated": "auth.uid() is not null",
    "admin": "public.is_admin()",
}

TOUCH_UPDATED_AT = """create or replace function public.touch_updated_at() returns trigger
language plpgsql as $$
begin
  new.updated_at = now();
  return new;
end;
$$;"""

IS_ADMIN = """create or replace function public.is_admin() returns boolean
language sql stable security definer set search_path = public as $$
  select exists (select 1 from public.profiles where id = auth.uid() and role = 'admin');
$$;"""


def _literal(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


def _check_name(table: str, field: Field) -> str:
    return f"{table}_{field.name}_check"


def _fk_name(table: str, field: Field) -> str:
    return f"{table}_{field.name}_fkey"


def _check_clause(field: Field) -> str:
    values = ", ".join(_literal(v) for v in field.values)
    return f"check ({field.name} in ({values}))"


def column_definition(table: str, field: Field) -> str:
    parts = [field.name, SQL_TYPES[field.kind]]
    if field.required:
        parts.append("not null")
    if field.default is not None:
        parts.append(f"default {_literal(field.default)}")
    if field.kind == "select" and field.values:
        parts.append(f"constraint {_check_name(table, field)} {_check_clause(field)}")
    if field.kind == "relation":
        parts.append(
            f"constraint {_fk_name(table, field)} references public.{field.target}(id) on delete {field.on_delete}"
        )
    return " ".join(parts)


def _create_table(coll: Collection) -> List[str]:
    table = coll.name
    if coll.auth_linked:
        id_column = "id uuid primary key references auth.users(id) on delete cascade"
    else:
        id_column = "id uuid primary key default gen_random_uuid()"
    columns = [
        id_column,
        "created_at timestamptz not null default now()",
        "updated_at timestamptz not null default now()",
    ] + [column_definition(table, f) for f in coll.fields]
    body = ",\n  ".join(columns)
    return [
        f"create table if not exists public.{table} (\n  {body}\n);",
        f"drop trigger if exists {table}_touch_updated_at on public.{table};",
        f"create trigger {table}_touch_updated_at before update on public.{table} "
        f"for each row execute function public.touch_updated_at();",
    ]


def _alter_field(table: str, field: Field, previous: Field) -> List[str]:
    stmts = []
    col = f"alter table public.{table} alter column {field.name}"
    if SQL_TYPES[field.kind] != SQL_TYPES[previous.kind]:
        sql_type = SQL_TYPES[field.kind]
        stmts.append(f"{col} type {sql_type} using {field.name}::{sql_type};")
    if field.default != previous.default:
        if field.default is None:
            stmts.append(f"{col} drop default;")
        else:
            stmts.append(f"{col} set default {_literal(field.default)};")
    if field.required != previous.required:
        stmts.append(f"{col} {'set' if field.required else 'drop'} not null;")
    if field.kind != previous.kind or field.values != previous.values:
        stmts.append(f"alter table public.{table} drop constraint if exists {_check_name(table, field)};")
        if field.kind == "select" and field.values:
            stmts.append(
                f"alter table public.{table} add constraint {_check_name(table, field)} {_check_clause(field)};"
            )
    if (field.kind, field.target, field.on_delete) != (previous.kind, previous.target, previous.on_delete):
        stmts.append(f"alter table public.{table} drop constraint if exists {_fk_name(table, field)};")
        if field.kind == "relation":
            stmts.append(
                f"alter table public.{table} add constraint {_fk_name(table, field)} foreign key ({field.name}) "
                f"references public.{field.target}(id) on delete {field.on_delete};"
            )
    # max_bytes only matters to the upload path
    return stmts


def _create_index(table: str, index: Index) -> str:
    unique = "unique " if index.unique else ""
    cols = ", ".join(index.columns)
    return f"create {unique}index if not exists {index.name} on public.{table} ({cols});"


def _set_rules(table: str, rules: AccessRules) -> List[str]:
    stmts = [f"alter table public.{table} enable row level security;"]
    for action, command in (("read", "select"), ("create", "insert"), ("update", "update"), ("delete", "delete")):
        policy = f"{table}_{action}"
        stmts.append(f'drop policy if exists "{policy}" on public.{table};')
        access = getattr(rules, action)
        if access == "locked":
            continue
        predicate = PREDICATES[access]
        if command == "insert":
            clause = f"with check ({predicate})"
        elif command == "update":
            clause = f"using ({predicate}) with check ({predicate})"
        else:
            clause = f"using ({predicate})"
        stmts.append(f'create policy "{policy}" on public.{table} for {command} to authenticated {clause};')
    return stmts


def _install_slot_guard(table: str, guard: SlotGuard) -> List[str]:
    fn = f"public.{table}_slot_guard"
    exclusive = _literal(guard.exclusive_value)
    day, room, period = guard.day_column, guard.room_column, guard.period_column
    return [
        f"""create or replace function {fn}() returns trigger
language plpgsql as $$
begin
  -- serialize writers of the same (day, room) so the check below sees committed rivals
  perform pg_advisory_xact_lock(hashtext('{table}:' || new.{day}::text || ':' || new.{room}::text));
  if exists (
    select 1 from public.{table} b
    where b.{day} = new.{day}
      and b.{room} = new.{room}
      and b.id <> new.id
      and (b.{period} = {exclusive} or new.{period} = {exclusive} or b.{period} = new.{period})
  ) then
    raise exception 'slot already booked' using errcode = '23505';
  end if;
  return new;
end;
$$;""",
        f"drop trigger if exists {table}_slot_guard on public.{table};",
        f"create trigger {table}_slot_guard before insert or update on public.{table} "
        f"for each row execute function {fn}();",
    ]


def render_change(change: SchemaChange) -> List[str]:
    table = change.collection
    if change.kind == "create_collection":
        return _create_table(change.definition)
    if change.kind == "add_field":
        return [f"alter table public.{table} add column if not exists {column_definition(table, change.field)};"]
    if change.kind == "alter_field":
        return _alter_field(table, change.field, change.previous)
    if change.kind == "drop_field":
        return [f"alter table public.{table} drop column if exists {change.field.name};"]
    if change.kind == "create_index":
        return [_create_index(table, change.index)]
    if change.kind == "drop_index":
        return [f"drop index if exists public.{change.index.name};"]
    if change.kind == "set_rules":
        return _set_rules(table, change.rules)
    if change.kind == "install_slot_guard":
        return _install_slot_guard(table, change.guard)
    if change.kind == "drop_slot_guard":
        return [
            f"drop trigger if exists {table}_slot_guard on public.{table};",
            f"drop function if exists public.{table}_slot_guard();",
        ]
    raise ValueError(f"Unsupported change kind: {change.kind}")


def render_plan(changes: List[SchemaChange], version: int) -> str:
    lines = [f"-- schema version {version}", "begin;", ""]
    if any(c.kind == "create_collection" for c in changes):
        lines += [TOUCH_UPDATED_AT, ""]
    admin_fn = False
    for change in changes:
        # is_admin() reads profiles and policies reference it: emit it once,
        # right before the first policy (profiles is always created first)
        if change.kind == "set_rules" and not admin_fn:
            lines += [IS_ADMIN, ""]
            admin_fn = True
        lines.append(f"-- {change.describe()}")
        lines.extend(render_change(change))
        lines.append("")
    lines.append("commit;")
    return "\n".join(lines) + "\n"
