from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Sequence

URL_TOKEN = "$url"
FILE_TOKEN = "$file"

Downloader = Callable[[str, str], Path]


class CommandRun:
    """State shared by every command of one chain activation."""

    def __init__(self, url: str, title: str, downloader: Downloader) -> None:
        self.url = url
        self.title = title
        self._downloader = downloader
        self._file_path: Path | None = None
        self._file_error: Exception | None = None
        self._file_loaded = False
        self._lock = threading.Lock()

    def file_path(self) -> Path:
        with self._lock:
            if not self._file_loaded:
                # a failed download is not retried within the same run
                self._file_loaded = True
                try:
                    self._file_path = self._downloader(self.url, self.title)
                except Exception as exc:
                    self._file_error = exc
            if self._file_path is None:
                raise self._file_error or RuntimeError("Playlist download failed")
            return self._file_path


def expand_command(argv: Sequence[str], run: CommandRun) -> list[str]:
    expanded: list[str] = []
    for token in argv:
        if FILE_TOKEN in token:
            token = token.replace(FILE_TOKEN, str(run.file_path()))
        expanded.append(token.replace(URL_TOKEN, run.url))
    return expanded
