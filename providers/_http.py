# /providers/_http.py
# Shared HTTP plumbing for the Seerr and Jellyfin clients: session setup, retries, tolerant JSON.
from __future__ import annotations

import json
import time
from typing import Any, Mapping, Optional

import requests

__VERSION__ = "1.0.0"
USER_AGENT = f"RequestSync/{__VERSION__}"

__all__ = ["USER_AGENT", "build_session", "safe_json", "request_with_retries"]


def build_session(headers: Optional[Mapping[str, str]] = None, *, verify: bool = True) -> requests.Session:
    s = requests.Session()
    s.verify = bool(verify)
    s.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})
    if headers:
        s.headers.update(dict(headers))
    return s


def safe_json(resp: requests.Response) -> Any:
    """Decoded body, or None when the body is empty or not JSON."""
    try:
        text = resp.text or ""
        if not text.strip():
            return None
        ctype = (resp.headers.get("Content-Type") or "").lower()
        if "json" in ctype:
            return resp.json()
        return json.loads(text)
    except ValueError:
        return None


def request_with_retries(
    session: requests.Session,
    method: str,
    url: str,
    *,
    timeout: float = 10.0,
    max_retries: int = 3,
    retry_on: tuple[int, ...] = (429, 500, 502, 503, 504),
    backoff_base: float = 0.5,
    **kwargs: Any,
) -> requests.Response:
    last: Any = None
    attempts = max(1, int(max_retries))
    for i in range(attempts):
        try:
            resp = session.request(method, url, timeout=timeout, **kwargs)
            if resp.status_code in retry_on and i < attempts - 1:
                wait = backoff_base * (2**i)
                if resp.status_code == 429:
                    try:
                        wait = max(wait, float(resp.headers.get("Retry-After") or 0))
                    except ValueError:
                        pass
                time.sleep(wait)
                last = resp
                continue
            return resp
        except requests.RequestException as e:
            last = e
            if i < attempts - 1:
                time.sleep(backoff_base * (2**i))
    if isinstance(last, requests.Response):
        return last
    raise requests.RequestException(f"request failed after retries: {method} {url}: {last}")
