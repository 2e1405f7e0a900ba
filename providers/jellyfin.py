# /providers/jellyfin.py
# Jellyfin-backed library: item index by provider id, per-user "liked" state, user listing.
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

import requests

from _logging import Logger, log as _base_log
from rs_platform._types import LibraryEntry, LibraryUser, WatchState
from rs_platform.config_base import JellyfinConfig

from ._http import USER_AGENT, __VERSION__, build_session, request_with_retries, safe_json

__all__ = ["JellyfinError", "JFClient", "JellyfinLibrary"]


class JellyfinError(Exception):
    pass


class JFClient:
    BASE_PATH_USERS = "/Users"
    BASE_PATH_ITEMS = "/Items"
    BASE_PATH_USER_ITEM = "/Users/{user_id}/Items/{item_id}"
    BASE_PATH_RATING = "/Users/{user_id}/Items/{item_id}/Rating"

    def __init__(self, cfg: JellyfinConfig, *, session: Optional[requests.Session] = None):
        if not cfg.server or not cfg.access_token:
            raise JellyfinError("Jellyfin config requires server and access_token")
        self.cfg = cfg
        self.base = cfg.server.rstrip("/")
        auth_val = (f'MediaBrowser Client="RequestSync", Device="RequestSync", '
                    f'DeviceId="{cfg.device_id}", Version="{__VERSION__}", Token="{cfg.access_token}"')
        self.session = session or build_session(verify=cfg.verify_ssl)
        self.session.headers.update({
            "User-Agent": USER_AGENT,
            "Authorization": auth_val,
            "X-Emby-Authorization": auth_val,
            "X-MediaBrowser-Token": cfg.access_token,
        })

    def _url(self, path: str) -> str:
        return self.base + (path if path.startswith("/") else ("/" + path))

    def _request(self, method: str, path: str, *, params: Optional[dict] = None) -> requests.Response:
        return request_with_retries(
            self.session, method, self._url(path),
            params=(params or {}),
            timeout=self.cfg.timeout, max_retries=self.cfg.max_retries,
        )

    def get(self, path: str, *, params: Optional[dict] = None) -> requests.Response:
        return self._request("GET", path, params=params)

    def post(self, path: str, *, params: Optional[dict] = None) -> requests.Response:
        return self._request("POST", path, params=params)


def _entry_from_row(row: Mapping[str, Any]) -> Optional[LibraryEntry]:
    iid = str(row.get("Id") or "").strip()
    if not iid:
        return None
    pids = {str(k): str(v) for k, v in dict(row.get("ProviderIds") or {}).items() if v is not None}
    return LibraryEntry(iid, str(row.get("Name") or ""), str(row.get("Type") or ""), pids)


class JellyfinLibrary:
    """LibraryIndex + WatchStateStore + UserDirectory over the Jellyfin HTTP API."""

    def __init__(self, client: JFClient, *, logger: Optional[Logger] = None):
        self.client = client
        self.log = (logger or _base_log).child("JELLYFIN")

    @classmethod
    def from_config(cls, cfg: JellyfinConfig, *, logger: Optional[Logger] = None) -> "JellyfinLibrary":
        return cls(JFClient(cfg), logger=logger)

    # UserDirectory
    def list_users(self) -> List[LibraryUser]:
        r = self.client.get(JFClient.BASE_PATH_USERS)
        if not r.ok:
            raise JellyfinError(f"user listing failed: HTTP {r.status_code}")
        body = safe_json(r)
        if not isinstance(body, list):
            raise JellyfinError("user listing returned an unexpected body")
        out: List[LibraryUser] = []
        for u in body:
            if isinstance(u, Mapping) and u.get("Id"):
                out.append(LibraryUser(str(u["Id"]), str(u.get("Name") or "")))
        return out

    # LibraryIndex
    def items_with_provider_id(self, kind: str, provider: str) -> Iterable[LibraryEntry]:
        params: Dict[str, Any] = {
            "IncludeItemTypes": kind,
            "Recursive": "true",
            "Fields": "ProviderIds",
            "EnableUserData": "false",
        }
        if provider.lower() in ("tmdb", "imdb", "tvdb"):
            params[f"Has{provider[0].upper()}{provider[1:].lower()}Id"] = "true"
        r = self.client.get(JFClient.BASE_PATH_ITEMS, params=params)
        if not r.ok:
            raise JellyfinError(f"item query for {kind} failed: HTTP {r.status_code}")
        body = safe_json(r)
        rows = body.get("Items") if isinstance(body, Mapping) else None
        out: List[LibraryEntry] = []
        for row in rows or []:
            if isinstance(row, Mapping):
                e = _entry_from_row(row)
                if e:
                    out.append(e)
        self.log.debug(f"{len(out)} {kind} items carry a {provider} id")
        return out

    # WatchStateStore
    def get_user_watch_state(self, user: LibraryUser, entry: LibraryEntry) -> Optional[WatchState]:
        path = JFClient.BASE_PATH_USER_ITEM.format(user_id=user.id, item_id=entry.item_id)
        r = self.client.get(path, params={"Fields": "UserData", "EnableUserData": "true"})
        if r.status_code == 404:
            return None
        if not r.ok:
            raise JellyfinError(f"user data read failed for {entry.item_id}: HTTP {r.status_code}")
        body = safe_json(r)
        ud = body.get("UserData") if isinstance(body, Mapping) else None
        if not isinstance(ud, Mapping):
            return None
        likes = ud.get("Likes")
        return WatchState(liked=None if likes is None else bool(likes))

    def set_user_watch_state(self, user: LibraryUser, entry: LibraryEntry, state: WatchState) -> None:
        path = JFClient.BASE_PATH_RATING.format(user_id=user.id, item_id=entry.item_id)
        r = self.client.post(path, params={"likes": "true" if state.liked else "false"})
        if r.status_code not in (200, 204):
            raise JellyfinError(f"rating update failed for {entry.item_id}: HTTP {r.status_code}")
