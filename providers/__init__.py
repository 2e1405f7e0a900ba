from __future__ import annotations

from .jellyfin import JFClient, JellyfinError, JellyfinLibrary
from .seerr import SeerrClient, SeerrError

__all__ = ["JFClient", "JellyfinError", "JellyfinLibrary", "SeerrClient", "SeerrError"]
