# /providers/seerr.py
# Read-only client for the Jellyseerr / Overseerr API: user lookup and per-user request listings.
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

import requests

from _logging import Logger, log as _base_log
from rs_platform._types import ExternalRequest, MediaType
from rs_platform.config_base import SeerrSyncConfig
from rs_platform.id_map import safe_int, user_ids_match

from ._http import build_session, request_with_retries, safe_json

__all__ = ["SeerrError", "SeerrClient", "parse_request_items", "unwrap_results"]


class SeerrError(Exception):
    pass


def unwrap_results(body: Any) -> Optional[List[Any]]:
    """Accept a bare array or a {"results": [...]} envelope; anything else is unrecognized."""
    if isinstance(body, list):
        return body
    if isinstance(body, Mapping) and isinstance(body.get("results"), list):
        return body["results"]
    return None


def _first_str(*vals: Any) -> str:
    for v in vals:
        if isinstance(v, str) and v.strip():
            return v
    return ""


def parse_request_items(items: Iterable[Any]) -> List[ExternalRequest]:
    out: List[ExternalRequest] = []
    for it in items or []:
        if not isinstance(it, Mapping):
            continue
        media = it.get("media") if isinstance(it.get("media"), Mapping) else {}
        tmdb_id = safe_int(media.get("tmdbId"))
        if tmdb_id is None:
            tmdb_id = safe_int(it.get("tmdbId"))
        media_type = MediaType.parse(_first_str(media.get("mediaType"), it.get("mediaType"), it.get("type")))
        title = _first_str(media.get("title"), it.get("title"))
        if tmdb_id is None or media_type is None:
            continue
        out.append(ExternalRequest(tmdb_id, media_type, title))
    return out


class SeerrClient:
    USERS_PATH = "/api/v1/user"
    USER_REQUESTS_PATH = "/api/v1/user/{user_id}/requests"
    REQUESTS_PATH = "/api/v1/request"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 15.0,
        max_retries: int = 3,
        take: int = 1000,
        session: Optional[requests.Session] = None,
        logger: Optional[Logger] = None,
    ):
        if not base_url or not api_key:
            raise SeerrError("Seerr client requires base_url and api_key")
        self.base = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.take = take
        self.session = session or build_session()
        self.session.headers["X-Api-Key"] = api_key
        self.log = (logger or _base_log).child("SEERR")

    @classmethod
    def from_config(cls, cfg: SeerrSyncConfig, *, logger: Optional[Logger] = None) -> "SeerrClient":
        return cls(
            cfg.base_url,
            cfg.api_key,
            timeout=cfg.timeout,
            max_retries=cfg.max_retries,
            take=cfg.take,
            logger=logger,
        )

    def _get(self, path: str, *, params: Optional[Dict[str, Any]] = None, api_user: Optional[str] = None) -> requests.Response:
        headers = {"X-Api-User": str(api_user)} if api_user else None
        return request_with_retries(
            self.session, "GET", self.base + path,
            params=params or {}, headers=headers,
            timeout=self.timeout, max_retries=self.max_retries,
        )

    # ---------- users ----------

    def list_users(self) -> List[Dict[str, Any]]:
        try:
            r = self._get(self.USERS_PATH, params={"take": self.take})
        except requests.RequestException as e:
            self.log.error(f"Error listing Seerr users: {e}")
            return []
        if not r.ok:
            self.log.warn(f"User listing returned HTTP {r.status_code}")
            return []
        body = safe_json(r)
        rows = body.get("results") if isinstance(body, Mapping) else None
        if not isinstance(rows, list):
            self.log.warn("User listing had no results array")
            return []
        return [u for u in rows if isinstance(u, Mapping)]

    def resolve_user_id(self, library_user_id: str, users: Optional[List[Dict[str, Any]]] = None) -> Optional[str]:
        for u in (self.list_users() if users is None else users):
            if user_ids_match(u.get("jellyfinUserId"), library_user_id):
                uid = safe_int(u.get("id"))
                if uid is not None:
                    return str(uid)
        return None

    # ---------- requests ----------

    def _request_endpoints(self, seerr_user_id: str) -> List[tuple[str, Dict[str, Any]]]:
        return [
            (self.USER_REQUESTS_PATH.format(user_id=seerr_user_id), {"take": self.take}),
            (self.REQUESTS_PATH, {"take": self.take, "requestedBy": seerr_user_id}),
        ]

    def user_requests(self, seerr_user_id: str) -> Optional[List[ExternalRequest]]:
        """Requests of one Seerr user; None when no endpoint produced a usable listing."""
        for path, params in self._request_endpoints(seerr_user_id):
            try:
                r = self._get(path, params=params, api_user=seerr_user_id)
            except requests.RequestException as e:
                self.log.warn(f"Failed to fetch requests from {path}: {e}")
                continue
            if not r.ok:
                self.log.debug(f"{path} returned HTTP {r.status_code}; trying next endpoint")
                continue
            rows = unwrap_results(safe_json(r))
            if rows is None:
                self.log.debug(f"{path} returned an unrecognized body; trying next endpoint")
                continue
            return parse_request_items(rows)
        return None
