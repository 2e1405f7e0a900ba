# rs_platform/matcher.py
# Resolve an external request (TMDB id + media type) to at most one library entry.
from __future__ import annotations

from typing import Optional

from ._types import LibraryEntry, LibraryIndex, MediaType
from .id_map import TMDB_PROVIDER, item_kind_for, provider_id


class IdentityMatcher:
    """Exact provider-id match over the library's entries of one item kind.

    ``None`` means "not in the library yet"; that is the common case for fresh
    requests and is not an error.
    """

    def __init__(self, library: LibraryIndex, *, provider: str = TMDB_PROVIDER):
        self.library = library
        self.provider = provider

    def match(self, external_media_id: int, media_type: MediaType) -> Optional[LibraryEntry]:
        wanted = str(external_media_id)
        kind = item_kind_for(media_type)
        for entry in self.library.items_with_provider_id(kind, self.provider):
            if provider_id(entry.provider_ids, self.provider) == wanted:
                return entry
        return None


__all__ = ["IdentityMatcher"]
