from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Protocol, Sequence

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel
from supabase import AsyncClient, AsyncClientOptions, create_async_client
import logging

from condo.core.errors import (
    CondoError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    TransientNetworkError,
    ValidationError,
)

logger = logging.getLogger("condo")

HTTP_TIMEOUT = 20.0

FilterOp = Literal["eq", "neq", "gt", "gte", "lt", "lte", "is_null", "not_null", "ilike"]


class Filter(BaseModel):
    op: FilterOp
    column: str
    value: Any = None


class Order(BaseModel):
    column: str
    desc: bool = False


def eq(column: str, value) -> Filter:
    return Filter(op="eq", column=column, value=value)


def serialize_value(value):
    """Python values -> the JSON shapes the store speaks (ISO dates, enum values)."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def serialize(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: serialize_value(v) for k, v in values.items()}


class RecordStore(Protocol):
    async def list(self, collection: str, filters: Sequence[Filter] = (), order: Sequence[Order] = (),
                   limit: Optional[int] = None) -> List[dict]: ...

    async def get(self, collection: str, record_id: str) -> dict: ...

    async def first(self, collection: str, filters: Sequence[Filter] = (),
                    order: Sequence[Order] = ()) -> Optional[dict]: ...

    async def count(self, collection: str, filters: Sequence[Filter] = ()) -> int: ...

    async def insert(self, collection: str, values: Dict[str, Any]) -> dict: ...

    async def update(self, collection: str, record_id: str, values: Dict[str, Any]) -> dict: ...

    async def delete(self, collection: str, record_id: str) -> None: ...

    async def close(self) -> None: ...


def translate_error(exc: Exception, collection: str, action: str) -> CondoError:
    """Maps PostgREST / transport failures onto the application error taxonomy."""
    if isinstance(exc, CondoError):
        return exc

    if isinstance(exc, APIError):
        code = str(exc.code or "")
        detail = f"{collection}/{action}: {exc.message}"
        if code == "23505":
            return ConflictError("Já existe um registro com estes dados.", detail=detail)
        if code == "23503":
            if action == "delete":
                return ConflictError("O registro está em uso e não pode ser excluído.", detail=detail)
            return ValidationError("Referência inválida.", detail=detail)
        if code in ("23502", "23514", "22P02", "22007", "22008", "PGRST204"):
            return ValidationError(detail=detail)
        if code == "PGRST116":
            return NotFoundError(detail=detail)
        if code == "42501":
            return PermissionDeniedError(detail=detail)
        return TransientNetworkError(detail=detail)

    if isinstance(exc, httpx.HTTPError):
        return TransientNetworkError(detail=f"{collection}/{action}: {exc}")

    return TransientNetworkError(detail=f"{collection}/{action}: {exc}")


class SupabaseRecordStore:
    """RecordStore over the Supabase (PostgREST) async client."""

    def __init__(self, url: str, key: str):
        self._url = url
        self._key = key
        self._client: Optional[AsyncClient] = None
        self._http: Optional[httpx.AsyncClient] = None

    async def get_client(self) -> AsyncClient:
        if not self._client:
            if not self._url or not self._key:
                logger.warning("⚠️ Supabase credentials missing")
                raise TransientNetworkError(detail="Supabase credentials missing")
            # table, storage and auth requests all go through this one pool
            self._http = httpx.AsyncClient(timeout=HTTP_TIMEOUT, follow_redirects=True)
            options = AsyncClientOptions(httpx_client=self._http, persist_session=False, auto_refresh_token=False)
            try:
                self._client = await create_async_client(self._url, self._key, options)
                logger.info("✅ Supabase Async client initialized")
            except Exception as e:
                logger.error(f"❌ Failed to initialize Supabase Async: {e}")
                await self.close()
                raise TransientNetworkError(detail=str(e))
        return self._client

    async def close(self) -> None:
        """Releases the connection pool; the next call opens a new one."""
        self._client = None
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    @staticmethod
    def _apply_filters(query, filters: Sequence[Filter]):
        for f in filters:
            if f.op == "is_null":
                query = query.is_(f.column, "null")
            elif f.op == "not_null":
                query = query.not_.is_(f.column, "null")
            else:
                query = getattr(query, f.op)(f.column, serialize_value(f.value))
        return query

    async def _execute(self, collection: str, action: str, query):
        try:
            return await query.execute()
        except Exception as e:
            error = translate_error(e, collection, action)
            logger.error(f"❌ DB Error ({collection}/{action}): {e}")
            raise error

    async def list(self, collection, filters=(), order=(), limit=None):
        client = await self.get_client()
        query = self._apply_filters(client.table(collection).select("*"), filters)
        for o in order:
            query = query.order(o.column, desc=o.desc)
        if limit:
            query = query.limit(limit)
        response = await self._execute(collection, "list", query)
        return response.data or []

    async def get(self, collection, record_id):
        client = await self.get_client()
        query = client.table(collection).select("*").eq("id", record_id).limit(1)
        response = await self._execute(collection, "get", query)
        if not response.data:
            raise NotFoundError(detail=f"{collection}/{record_id}")
        return response.data[0]

    async def first(self, collection, filters=(), order=()):
        rows = await self.list(collection, filters, order, limit=1)
        return rows[0] if rows else None

    async def count(self, collection, filters=()):
        client = await self.get_client()
        query = self._apply_filters(client.table(collection).select("id", count="exact"), filters).limit(1)
        response = await self._execute(collection, "count", query)
        return response.count or 0

    async def insert(self, collection, values):
        client = await self.get_client()
        response = await self._execute(collection, "insert", client.table(collection).insert(serialize(values)))
        if not response.data:
            raise TransientNetworkError(detail=f"{collection}/insert returned no row")
        logger.info(f"🆕 {collection} record created: {response.data[0].get('id')}")
        return response.data[0]

    async def update(self, collection, record_id, values):
        client = await self.get_client()
        query = client.table(collection).update(serialize(values)).eq("id", record_id)
        response = await self._execute(collection, "update", query)
        if not response.data:
            raise NotFoundError(detail=f"{collection}/{record_id}")
        return response.data[0]

    async def delete(self, collection, record_id):
        client = await self.get_client()
        query = client.table(collection).delete().eq("id", record_id)
        response = await self._execute(collection, "delete", query)
        # PostgREST returns the deleted rows; nothing deleted means it was already gone
        if not response.data:
            raise NotFoundError(detail=f"{collection}/{record_id}")
        logger.info(f"🗑️ {collection} record {record_id} deleted.")
