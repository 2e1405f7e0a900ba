# rs_platform/config_base.py
# Configuration file handling and the value objects handed to the sync core and the client.
from __future__ import annotations

import copy
import json
import os
import secrets
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

# ------------------------------------------------------------
# Base dir resolution
# ------------------------------------------------------------
def CONFIG_BASE() -> Path:
    """
    Determine the base directory for config and state files.

    Priority:
      1) $CONFIG_BASE if set
      2) /config (when running in a container that mounts /config)
      3) Project root (one level up from this file)
    """
    env = os.getenv("CONFIG_BASE")
    if env:
        return Path(env)

    if Path("/app").exists():
        return Path("/config")

    return Path(__file__).resolve().parents[1]


# Default config structure
DEFAULT_CFG: Dict[str, Any] = {
    # --- Request service (Jellyseerr / Overseerr) ----------------------------
    "jellyseerr": {
        "enabled": False,                               # Master toggle for the Seerr integration
        "sync_requests": False,                         # Sync users' Seerr requests into their library watchlist
        "urls": "",                                     # One base URL per line; the first non-empty line is used
        "api_key": "",                                  # Seerr API key (sent as X-Api-Key)
        "timeout": 15.0,                                # HTTP timeout (seconds)
        "max_retries": 3,                               # Retry budget for 429/5xx
        "take": 1000,                                   # Page size for user and request listings
        "promote_pending": True,                        # Move pending items into the watchlist once they reach the library
    },

    # --- Library (Jellyfin) --------------------------------------------------
    "jellyfin": {
        "server": "",                                   # http(s)://host:port
        "access_token": "",                             # API key / access token with admin rights
        "device_id": "requestsync",                     # Client device id
        "verify_ssl": True,                             # Verify TLS certificates
        "timeout": 15.0,                                # HTTP timeout (seconds)
        "max_retries": 3,                               # Retry budget for API calls
    },

    # --- Requests page (client) ----------------------------------------------
    "requests_page": {
        "server": "",                                   # Base URL of the server exposing /arr/queue and /arr/requests
        "api_prefix": "/JellyfinEnhanced",              # Path prefix in front of /arr/...
        "access_token": "",                             # Sent as X-MediaBrowser-Token
        "poll_interval_seconds": 30,                    # Background refresh while the view is visible
        "cache_ttl_ms": 30000,                          # Request page cache validity
        "page_size": 20,                                # Rows per server page
        "coming_soon_take": 100,                        # Rows fetched for the client-filtered coming-soon tab
        "timeout": 15.0,                                # HTTP timeout (seconds)
    },

    # --- Runtime / Diagnostics ----------------------------------------------
    "runtime": {
        "debug": False,                                 # Extra verbose logging (debug level)
        "state_dir": "",                                # Optional override for state dir (defaults to CONFIG/.rs_state)
    },
}


# ------------------------------------------------------------
# Helpers: paths, IO, merging
# ------------------------------------------------------------
def config_path() -> Path:
    return CONFIG_BASE() / "config.json"


def state_dir(cfg: Optional[Mapping[str, Any]] = None) -> Path:
    rt = dict((cfg or {}).get("runtime") or {})
    override = str(rt.get("state_dir") or "").strip()
    return Path(override) if override else CONFIG_BASE() / ".rs_state"


def _read_json(p: Path) -> Dict[str, Any]:
    with p.open("r", encoding="utf-8") as f:
        return json.load(f)


def _write_json_atomic(p: Path, data: Dict[str, Any]) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    suffix = f".{time.time_ns()}.{os.getpid()}.{threading.get_ident()}.{secrets.token_hex(4)}.tmp"
    tmp = p.with_suffix(suffix)
    with tmp.open("w", encoding="utf-8", newline="\n") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write("\n")
    tmp.replace(p)


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, Mapping) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _as_bool(v: Any, default: bool = False) -> bool:
    if v is None:
        return default
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _as_float(v: Any, default: float) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------
def load_config() -> Dict[str, Any]:
    """Read config.json and merge it over the defaults."""
    p = config_path()
    user_cfg: Dict[str, Any] = {}
    if p.exists():
        try:
            user_cfg = _read_json(p)
        except Exception:
            user_cfg = {}
    return _deep_merge(DEFAULT_CFG, user_cfg)


def save_config(cfg: Mapping[str, Any]) -> None:
    _write_json_atomic(config_path(), dict(cfg or {}))


# ------------------------------------------------------------
# Value objects
# ------------------------------------------------------------
@dataclass(frozen=True)
class SeerrSyncConfig:
    enabled: bool = False
    sync_requests: bool = False
    urls: str = ""
    api_key: str = ""
    timeout: float = 15.0
    max_retries: int = 3
    take: int = 1000
    promote_pending: bool = True

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "SeerrSyncConfig":
        js = dict((cfg or {}).get("jellyseerr") or {})
        return cls(
            enabled=_as_bool(js.get("enabled")),
            sync_requests=_as_bool(js.get("sync_requests")),
            urls=str(js.get("urls") or ""),
            api_key=str(js.get("api_key") or "").strip(),
            timeout=_as_float(js.get("timeout"), 15.0),
            max_retries=max(1, _as_int(js.get("max_retries"), 3)),
            take=max(1, _as_int(js.get("take"), 1000)),
            promote_pending=_as_bool(js.get("promote_pending"), True),
        )

    @property
    def base_url(self) -> str:
        for line in self.urls.replace("\r", "\n").split("\n"):
            if line.strip():
                return line.strip().rstrip("/")
        return ""

    def check(self) -> Tuple[bool, str]:
        """Run preconditions; returns (ok, reason)."""
        if not (self.enabled and self.sync_requests):
            return False, "Sync is disabled in configuration"
        if not self.urls.strip() or not self.api_key:
            return False, "Jellyseerr URL or API key not configured"
        if not self.base_url:
            return False, "No valid Jellyseerr URL found"
        return True, ""


@dataclass(frozen=True)
class JellyfinConfig:
    server: str = ""
    access_token: str = ""
    device_id: str = "requestsync"
    verify_ssl: bool = True
    timeout: float = 15.0
    max_retries: int = 3

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "JellyfinConfig":
        jf = dict((cfg or {}).get("jellyfin") or {})
        return cls(
            server=str(jf.get("server") or "").strip().rstrip("/"),
            access_token=str(jf.get("access_token") or "").strip(),
            device_id=str(jf.get("device_id") or "requestsync").strip() or "requestsync",
            verify_ssl=_as_bool(jf.get("verify_ssl"), True),
            timeout=_as_float(jf.get("timeout"), 15.0),
            max_retries=max(1, _as_int(jf.get("max_retries"), 3)),
        )

    @property
    def configured(self) -> bool:
        return bool(self.server and self.access_token)


@dataclass(frozen=True)
class RequestsPageConfig:
    server: str = ""
    api_prefix: str = "/JellyfinEnhanced"
    access_token: str = ""
    poll_interval_seconds: float = 30.0
    cache_ttl_ms: int = 30000
    page_size: int = 20
    coming_soon_take: int = 100
    timeout: float = 15.0

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "RequestsPageConfig":
        rp = dict((cfg or {}).get("requests_page") or {})
        prefix = str(rp.get("api_prefix") or "").strip().rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = "/" + prefix
        return cls(
            server=str(rp.get("server") or "").strip().rstrip("/"),
            api_prefix=prefix,
            access_token=str(rp.get("access_token") or "").strip(),
            poll_interval_seconds=max(1.0, _as_float(rp.get("poll_interval_seconds"), 30.0)),
            cache_ttl_ms=max(0, _as_int(rp.get("cache_ttl_ms"), 30000)),
            page_size=max(1, _as_int(rp.get("page_size"), 20)),
            coming_soon_take=max(1, _as_int(rp.get("coming_soon_take"), 100)),
            timeout=_as_float(rp.get("timeout"), 15.0),
        )

    def url(self, path: str) -> str:
        return f"{self.server}{self.api_prefix}{path if path.startswith('/') else '/' + path}"


__all__ = [
    "CONFIG_BASE",
    "DEFAULT_CFG",
    "config_path",
    "state_dir",
    "load_config",
    "save_config",
    "SeerrSyncConfig",
    "JellyfinConfig",
    "RequestsPageConfig",
]
