# RequestSync test scripts
from __future__ import annotations

from rs_platform._types import MediaType
from rs_platform.id_map import (
    ITEM_KIND_MOVIE,
    ITEM_KIND_SERIES,
    item_kind_for,
    normalize_user_id,
    provider_id,
    safe_int,
    safe_user_dirname,
    user_ids_match,
)


def test_media_type_parse_maps_everything_but_movie_to_series() -> None:
    assert MediaType.parse("movie") is MediaType.MOVIE
    assert MediaType.parse("MOVIE") is MediaType.MOVIE
    assert MediaType.parse("tv") is MediaType.SERIES
    assert MediaType.parse("series") is MediaType.SERIES
    assert MediaType.parse("") is None
    assert MediaType.parse(None) is None


def test_item_kind_for_media_types() -> None:
    assert item_kind_for(MediaType.MOVIE) == ITEM_KIND_MOVIE
    assert item_kind_for(MediaType.SERIES) == ITEM_KIND_SERIES


def test_user_ids_compare_without_hyphens_or_case() -> None:
    a = "5A1B2C3D-0000-4E5F-9A8B-7C6D5E4F3A2B"
    b = "5a1b2c3d00004e5f9a8b7c6d5e4f3a2b"
    assert normalize_user_id(a) == b
    assert user_ids_match(a, b)
    assert not user_ids_match("", "")
    assert not user_ids_match(None, b)


def test_safe_user_dirname_is_filesystem_safe() -> None:
    assert safe_user_dirname("AB-CD") == "abcd"
    assert safe_user_dirname("../etc") == "_etc"
    assert safe_user_dirname("") == "_anonymous"


def test_provider_id_lookup_is_case_insensitive_on_keys_only() -> None:
    assert provider_id({"Tmdb": "603"}, "Tmdb") == "603"
    assert provider_id({"tmdb": "603"}, "Tmdb") == "603"
    assert provider_id({"Tmdb": " 603 "}, "Tmdb") == " 603 "
    assert provider_id({"Imdb": "tt0133093"}, "Tmdb") is None
    assert provider_id(None, "Tmdb") is None


def test_safe_int_accepts_numbers_and_numeric_strings() -> None:
    assert safe_int(42) == 42
    assert safe_int("42") == 42
    assert safe_int(" 7 ") == 7
    assert safe_int("x") is None
    assert safe_int(None) is None
    assert safe_int(True) is None
