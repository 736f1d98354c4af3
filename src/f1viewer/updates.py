from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from .catalog import CatalogError

APP_VERSION = "0.4.0"
RELEASES_API_URL = "https://api.github.com/repos/SoMuchForSubtlety/F1viewer/releases/latest"
RELEASES_PAGE_URL = "https://github.com/SoMuchForSubtlety/F1viewer/releases/latest"

Fetcher = Callable[[str], Any]

_VERSION_RE = re.compile(r"(\d+(?:\.\d+)*)")


@dataclass(frozen=True)
class Release:
    tag: str
    url: str


def check_for_update(
    current: str = APP_VERSION,
    fetcher: Fetcher | None = None,
) -> Release | None:
    fetcher = fetcher or _http_fetch_json
    data = fetcher(RELEASES_API_URL)
    if not isinstance(data, dict):
        raise CatalogError("Unexpected release payload")
    tag = data.get("tag_name")
    if not isinstance(tag, str) or not tag.strip():
        raise CatalogError("Release has no tag")
    url = data.get("html_url")
    release = Release(
        tag=tag.strip(),
        url=url if isinstance(url, str) and url else RELEASES_PAGE_URL,
    )
    if parse_version(release.tag) > parse_version(current):
        return release
    return None


def parse_version(tag: str) -> tuple[int, ...]:
    match = _VERSION_RE.search(tag)
    if not match:
        return ()
    return tuple(int(part) for part in match.group(1).split("."))


def _http_fetch_json(url: str) -> Any:
    try:
        with httpx.Client(follow_redirects=True, timeout=10.0) as client:
            response = client.get(url)
            response.raise_for_status()
            return response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise CatalogError(f"Update check failed: {exc}") from exc
