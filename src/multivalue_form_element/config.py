"""
Runtime settings, read from the environment.

`.env` and `.env.local` are loaded when present (`.env.local` wins), then
`load_settings()` snapshots the relevant variables into a frozen `Settings`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_ADD_MORE_LABEL = "Add another item"
DEFAULT_CACHE_TTL_SEC = 6 * 60 * 60
MIN_CACHE_TTL_SEC = 60
MAX_CACHE_TTL_SEC = 7 * 24 * 60 * 60


def _env_bool(name: str, default: bool = False) -> bool:
    v = (os.getenv(name) or "").strip().lower()
    if not v:
        return default
    return v in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or "").strip() or default


@dataclass(frozen=True)
class Settings:
    cache_backend: str = "memory"
    cache_ttl_sec: int = DEFAULT_CACHE_TTL_SEC
    cache_table: str = "form_cache"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    add_more_label: str = DEFAULT_ADD_MORE_LABEL
    log_level: str = "INFO"
    http_log: bool = False
    http_log_body_max_bytes: int = 4096


def load_env_files(root: Optional[Path] = None) -> None:
    base = root or Path.cwd()
    load_dotenv(base / ".env", override=False)
    load_dotenv(base / ".env.local", override=True)


def load_settings() -> Settings:
    backend = _env_str("MULTIVALUE_FORM_CACHE_BACKEND", "memory").lower()
    if backend not in {"memory", "supabase"}:
        backend = "memory"
    ttl = _env_int("MULTIVALUE_FORM_CACHE_TTL_SEC", DEFAULT_CACHE_TTL_SEC)
    ttl = max(MIN_CACHE_TTL_SEC, min(MAX_CACHE_TTL_SEC, ttl))
    return Settings(
        cache_backend=backend,
        cache_ttl_sec=ttl,
        cache_table=_env_str("MULTIVALUE_FORM_CACHE_TABLE", "form_cache"),
        # Accept the Next.js-style names too, so one .env serves both sides.
        supabase_url=os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY"),
        add_more_label=_env_str("MULTIVALUE_ADD_MORE_LABEL", DEFAULT_ADD_MORE_LABEL),
        log_level=_env_str("MULTIVALUE_LOG_LEVEL", "INFO").upper(),
        http_log=_env_bool("MULTIVALUE_HTTP_LOG", default=False),
        http_log_body_max_bytes=max(0, _env_int("MULTIVALUE_HTTP_LOG_BODY_MAX_BYTES", 4096)),
    )
