"""
Form cache: what survives between the requests of one form session.

An entry holds the unprocessed form definition and the form storage (where the
multivalue element keeps its item counts). Each request loads the entry, runs
the pipeline and writes the storage back before responding.

Backends:
- `InMemoryFormCache`: process-local, TTL based. Good for a single worker and tests.
- `SupabaseFormCache`: rows in a Supabase table (`build_id`, `form`, `storage`, `expires_at`).
"""

from __future__ import annotations

import copy
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, Tuple

from pydantic import BaseModel, Field
from supabase import create_client

from .config import Settings
from .errors import FormCacheError
from .schemas.elements import ElementDefinition

logger = logging.getLogger(__name__)

_client: Optional[Any] = None


class CachedForm(BaseModel):
    build_id: str
    form: ElementDefinition
    storage: Dict[str, Any] = Field(default_factory=dict)
    expires_at: Optional[float] = None


class FormCache(Protocol):
    def get(self, build_id: str) -> Optional[CachedForm]: ...

    def set(self, entry: CachedForm) -> None: ...


def new_build_id() -> str:
    return f"form-{uuid.uuid4().hex}"


def _dump(entry: CachedForm, **extra: Any) -> Dict[str, Any]:
    # Only explicitly set fields, so type defaults still apply when the form is rebuilt.
    return {
        "build_id": entry.build_id,
        "form": entry.form.model_dump(mode="json", exclude_unset=True),
        "storage": copy.deepcopy(entry.storage),
        **extra,
    }


class InMemoryFormCache:
    def __init__(self, *, ttl_sec: int) -> None:
        self.ttl_sec = ttl_sec
        self._entries: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    def get(self, build_id: str) -> Optional[CachedForm]:
        if not build_id:
            return None
        rec = self._entries.get(build_id)
        if not rec:
            return None
        expires_at, raw = rec
        if time.time() >= float(expires_at):
            self._entries.pop(build_id, None)
            logger.info("form cache entry expired build_id=%s", build_id)
            return None
        # Callers never share mutable state with the cache.
        return CachedForm.model_validate(copy.deepcopy(raw))

    def set(self, entry: CachedForm) -> None:
        now = time.time()
        self._sweep(now)
        expires_at = now + self.ttl_sec
        self._entries[entry.build_id] = (expires_at, _dump(entry, expires_at=expires_at))

    def _sweep(self, now: float) -> None:
        # Expired entries are dropped on every write, read or not.
        expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
        for k in expired:
            self._entries.pop(k, None)
        if expired:
            logger.info("form cache swept expired entries count=%s", len(expired))


def get_supabase_client(settings: Settings) -> Any:
    """Get or create the Supabase client (singleton)."""
    global _client

    if _client is not None:
        return _client
    if not settings.supabase_url or not settings.supabase_key:
        raise FormCacheError("Supabase form cache selected but SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY are not set")

    _client = create_client(settings.supabase_url, settings.supabase_key)
    return _client


class SupabaseFormCache:
    def __init__(self, client: Any, *, table: str, ttl_sec: int) -> None:
        self.client = client
        self.table = table
        self.ttl_sec = ttl_sec

    def get(self, build_id: str) -> Optional[CachedForm]:
        if not build_id:
            return None
        now_iso = datetime.now(timezone.utc).isoformat()
        try:
            result = (
                self.client.table(self.table)
                .select("build_id, form, storage, expires_at")
                .eq("build_id", build_id)
                .gt("expires_at", now_iso)
                .execute()
            )
        except Exception as e:
            logger.error("[Supabase] Error fetching form %s: %s", build_id, e)
            raise FormCacheError(f"Failed to load form {build_id}") from e

        rows = result.data or []
        if not rows:
            return None
        row = rows[0]
        return CachedForm(
            build_id=str(row.get("build_id") or build_id),
            form=ElementDefinition.model_validate(row.get("form") or {}),
            storage=row.get("storage") if isinstance(row.get("storage"), dict) else {},
        )

    def set(self, entry: CachedForm) -> None:
        expires_at = datetime.fromtimestamp(time.time() + self.ttl_sec, tz=timezone.utc)
        row = _dump(entry, expires_at=expires_at.isoformat())
        try:
            self.client.table(self.table).upsert(row, on_conflict="build_id").execute()
        except Exception as e:
            logger.error("[Supabase] Error storing form %s: %s", entry.build_id, e)
            raise FormCacheError(f"Failed to store form {entry.build_id}") from e


def create_form_cache(settings: Settings) -> FormCache:
    if settings.cache_backend == "supabase":
        return SupabaseFormCache(
            get_supabase_client(settings),
            table=settings.cache_table,
            ttl_sec=settings.cache_ttl_sec,
        )
    return InMemoryFormCache(ttl_sec=settings.cache_ttl_sec)
