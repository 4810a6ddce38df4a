"""
config.py – Central settings for the Portfolio & Certificate Tracker
=====================================================================
All configuration is loaded from environment variables / .env file.
Copy .env.example → .env and fill in your values.

The remote store is reached through one of two transports:

  table   REST-like table API  (tables/<collection>[/<id>])
  rpc     single web-app endpoint receiving {"action", "payload"}
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env into os.environ (no-op if already set, safe to call multiple times)
load_dotenv(override=False)


TRANSPORT_TABLE = "table"
TRANSPORT_RPC   = "rpc"
TRANSPORTS      = (TRANSPORT_TABLE, TRANSPORT_RPC)


# ─── Helpers ────────────────────────────────────────────────────────────────

def _is_placeholder(value: str) -> bool:
    """Return True if the value looks like an unfilled template placeholder."""
    return not value or "<" in value or value.startswith("your-") or value == "PLACEHOLDER"


# ─── Remote store ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StoreConfig:
    transport:       str     # "table" | "rpc"
    base_url:        str     # table API root, tables/... is appended
    rpc_url:         str     # RPC web-app endpoint
    timeout_s:       float
    read_retries:    int     # retries on NetworkError, reads only
    retry_backoff_s: float
    page_limit:      int
    image_hosting:   bool    # upload images and keep the hosted URL

    @property
    def endpoint(self) -> str:
        return self.rpc_url if self.transport == TRANSPORT_RPC else self.base_url

    @property
    def is_configured(self) -> bool:
        """True when the selected transport has a real (non-placeholder) URL."""
        return self.transport in TRANSPORTS and not _is_placeholder(self.endpoint)


# ─── Local persistence ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class CacheConfig:
    db_path: str


# ─── App-level settings ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AppConfig:
    log_level: str


# ─── Master settings object ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    store: StoreConfig
    cache: CacheConfig
    app:   AppConfig

    def status_summary(self) -> dict[str, str]:
        """Return a dict of service → status badge for the UI."""
        def badge(ok: bool) -> str:
            return "🟢 Connected" if ok else "⚪ Not configured"

        return {
            f"Remote store ({self.store.transport})": badge(self.store.is_configured),
            "Hosted images": "🟢 On" if self.store.image_hosting else "⚪ Inline",
            "Local cache":   self.cache.db_path,
        }


def get_settings() -> Settings:
    """Load all configuration from environment variables."""
    _str   = lambda k, d="": os.getenv(k, d).strip()
    _int   = lambda k, d=0: int(os.getenv(k, str(d)) or d)
    _float = lambda k, d=0.0: float(os.getenv(k, str(d)) or d)
    _bool  = lambda k, d=False: os.getenv(k, str(d)).lower() in ("1", "true", "yes")

    transport = _str("STORE_TRANSPORT", TRANSPORT_TABLE).lower()
    if transport not in TRANSPORTS:
        raise ValueError(f"STORE_TRANSPORT must be one of {TRANSPORTS}, got {transport!r}")

    return Settings(
        store=StoreConfig(
            transport       = transport,
            base_url        = _str("STORE_BASE_URL", "http://localhost:8000/").rstrip("/") + "/",
            rpc_url         = _str("STORE_RPC_URL", "<paste-your-web-app-url>"),
            timeout_s       = _float("STORE_TIMEOUT_S", 10.0),
            read_retries    = _int("STORE_READ_RETRIES", 1),
            retry_backoff_s = _float("STORE_RETRY_BACKOFF_S", 0.5),
            page_limit      = _int("STORE_PAGE_LIMIT", 100),
            image_hosting   = _bool("IMAGE_HOSTING", False),
        ),
        cache=CacheConfig(
            db_path = _str("LOCAL_DB_PATH", "portfolio_local.db"),
        ),
        app=AppConfig(
            log_level = _str("LOG_LEVEL", "INFO").upper(),
        ),
    )
