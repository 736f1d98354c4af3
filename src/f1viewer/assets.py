from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable
from urllib.parse import urljoin

import httpx

from .catalog import CatalogError
from .paths import downloads_dir

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], str]

_INVALID_FILENAME_CHARS = set('<>:"/\\|?*')
_WHITESPACE_RE = re.compile(r"\s+")
_MULTI_UNDERSCORE_RE = re.compile(r"_+")
_URI_ATTR_RE = re.compile(r'URI="([^"]*)"')


def download_playlist(
    url: str,
    title: str,
    dest_dir: Path | None = None,
    fetcher: Fetcher | None = None,
) -> Path:
    if not url:
        raise ValueError("Missing playlist URL")

    dest_dir = dest_dir or downloads_dir()
    dest_dir.mkdir(parents=True, exist_ok=True)
    fetcher = fetcher or _http_fetch
    text = fetcher(url)
    path = dest_dir / f"{playlist_basename(title)}.m3u8"
    path.write_text(rewrite_playlist(text, url), encoding="utf-8")
    logger.info("Saved playlist to %s", path)
    return path


def rewrite_playlist(text: str, url: str) -> str:
    lines: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            lines.append(line)
        elif stripped.startswith("#"):
            lines.append(
                _URI_ATTR_RE.sub(
                    lambda match: f'URI="{urljoin(url, match.group(1))}"',
                    stripped,
                )
            )
        else:
            lines.append(urljoin(url, stripped))
    return "\n".join(lines) + "\n"


def playlist_basename(title: str) -> str:
    cleaned = []
    for char in title:
        if char in _INVALID_FILENAME_CHARS or ord(char) < 32:
            cleaned.append("_")
        else:
            cleaned.append(char)
    sanitized = _WHITESPACE_RE.sub("_", "".join(cleaned))
    collapsed = _MULTI_UNDERSCORE_RE.sub("_", sanitized).strip("._-")
    return collapsed or "stream"


def _http_fetch(url: str) -> str:
    try:
        with httpx.Client(follow_redirects=True, timeout=10.0) as client:
            response = client.get(url)
            response.raise_for_status()
            return response.text
    except httpx.HTTPError as exc:
        raise CatalogError(f"Failed to fetch playlist: {exc}") from exc
