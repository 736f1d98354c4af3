from __future__ import annotations

import pytest

from f1viewer.catalog import CatalogError
from f1viewer.updates import RELEASES_PAGE_URL, Release, check_for_update, parse_version


def test_parse_version() -> None:
    assert parse_version("v1.2.10") == (1, 2, 10)
    assert parse_version("0.4.0") == (0, 4, 0)
    assert parse_version("nightly") == ()


def test_newer_release_is_reported() -> None:
    payload = {"tag_name": "v1.0.0", "html_url": "https://example.test/v1.0.0"}
    release = check_for_update("0.4.0", fetcher=lambda url: payload)
    assert release == Release("v1.0.0", "https://example.test/v1.0.0")


def test_same_or_older_release_is_ignored() -> None:
    assert check_for_update("0.4.0", fetcher=lambda url: {"tag_name": "v0.4.0"}) is None
    assert check_for_update("0.4.0", fetcher=lambda url: {"tag_name": "v0.3.9"}) is None


def test_release_without_url_uses_releases_page() -> None:
    release = check_for_update("0.4.0", fetcher=lambda url: {"tag_name": "v0.10.0"})
    assert release is not None
    assert release.url == RELEASES_PAGE_URL


def test_bad_payload_raises() -> None:
    with pytest.raises(CatalogError):
        check_for_update("0.4.0", fetcher=lambda url: [])
    with pytest.raises(CatalogError):
        check_for_update("0.4.0", fetcher=lambda url: {"name": "no tag"})
