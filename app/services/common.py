"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from typing import Any

from postgrest import APIError

from app.config import settings
from app.utils.errors import InvalidInputError
from supabase import Client

logger = logging.getLogger(__name__)
_profile_cache: dict[str, tuple[float, dict[str, Any]]] = {}
_cache_lock = threading.Lock()


def _cache_get(cache: dict[Any, tuple[float, Any]], key: Any) -> Any | None:
    now = time.monotonic()
    with _cache_lock:
        entry = cache.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if expires_at <= now:
            cache.pop(key, None)
            return None
        return value


def _cache_set(
    cache: dict[Any, tuple[float, Any]],
    key: Any,
    value: Any,
    ttl_seconds: int,
) -> None:
    if ttl_seconds <= 0:
        return

    with _cache_lock:
        max_entries = max(100, settings.data_cache_max_entries)
        if len(cache) >= max_entries:
            oldest_key = next(iter(cache))
            cache.pop(oldest_key, None)
        cache[key] = (time.monotonic() + ttl_seconds, value)


def clear_profile_cache() -> None:
    """Drop every cached profile row."""
    with _cache_lock:
        _profile_cache.clear()


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query and normalize API errors."""
        started = time.perf_counter()
        try:
            response = query.execute()
            elapsed_ms = (time.perf_counter() - started) * 1000
            threshold_ms = settings.slow_query_log_threshold_ms
            if threshold_ms > 0 and elapsed_ms >= threshold_ms:
                logger.warning("Slow Supabase query %.1fms", elapsed_ms)
            data = response.data
            return default if data is None and default is not None else data
        except APIError as exc:
            message = getattr(exc, "message", "Database request failed")
            raise InvalidInputError(str(message)) from exc

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows from a table with optional filters and paging."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[])

    def select_in(
        self,
        table: str,
        column: str,
        values: Iterable[Any],
        filters: dict[str, Any] | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Select rows whose ``column`` is one of ``values``."""
        wanted = list(values)
        if not wanted:
            return []
        query = self.client.table(table).select(columns).in_(column, wanted)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        return self.execute(query, default=[])

    def count(self, table: str, filters: dict[str, Any] | None = None) -> int:
        """Count rows in a table with optional equality filters."""
        query = self.client.table(table).select("*", count="exact", head=True)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        try:
            response = query.execute()
            return response.count or 0
        except APIError as exc:
            message = getattr(exc, "message", "Database request failed")
            raise InvalidInputError(str(message)) from exc

    def rpc_one(self, function: str, params: dict[str, Any]) -> dict[str, Any]:
        """Call a Postgres function and return its single result row."""
        rows = self.execute(self.client.rpc(function, params), default=[])
        if isinstance(rows, dict):
            return rows
        if not rows:
            raise InvalidInputError(f"{function} returned no result")
        return rows[0]

    def get_profiles_map(self, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Fetch multiple profiles and return an id-keyed mapping."""
        ids = list({str(uid) for uid in user_ids if uid})
        if not ids:
            return {}

        result: dict[str, dict[str, Any]] = {}
        missing_ids: list[str] = []
        for user_id in ids:
            cached = _cache_get(_profile_cache, user_id)
            if cached is None:
                missing_ids.append(user_id)
                continue
            result[user_id] = dict(cached)

        for row in self.select_in("profiles", "id", missing_ids):
            user_key = str(row["id"])
            result[user_key] = dict(row)
            _cache_set(_profile_cache, user_key, dict(row), settings.profile_cache_ttl_seconds)

        return result
