from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Iterable, Protocol

from .cache import CatalogCache
from .catalog import (
    CatalogError,
    Channel,
    Driver,
    Episode,
    Event,
    MalformedIdError,
    Season,
    Session,
    Team,
    VodType,
    parse_year_and_race,
)
from .nodes import PlaybackCommandContext

logger = logging.getLogger(__name__)

SEPARATOR = "================================"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"
_SPOILER_WORD = "winner"
_DRIVER_MARKER = "/api/driver/"
_TEAM_MARKER = "/api/team/"

_RECORD_TYPES = (VodType, Episode, Season, Event, Session, Channel, Driver, Team)


@dataclass(frozen=True)
class InfoRow:
    title: str
    lines: tuple[str, ...]


class InfoDisplay(Protocol):
    def clear(self) -> None: ...

    def add_row(self, title: str, value: str) -> None: ...


def describe(record: Any) -> list[InfoRow]:
    rows: list[InfoRow] = []
    for label, value in _fields(record):
        if _SPOILER_WORD in label.lower():
            continue
        rows.extend(_rows_for(label, value))
    return [row for row in rows if _has_content(row)]


def _fields(record: Any) -> list[tuple[str, Any]]:
    if isinstance(record, VodType):
        return [("Name", record.name), ("Episodes", len(record.content_urls))]
    if isinstance(record, Episode):
        season, race = _season_and_round(record.data_source_id)
        return [
            ("Title", record.title),
            ("Subtitle", record.subtitle),
            ("Synopsis", record.synopsis),
            ("Season", season),
            ("Round", race),
            ("Drivers", record.driver_urls),
            ("Teams", record.team_urls),
        ]
    if isinstance(record, Season):
        return [
            ("Name", record.name),
            ("Year", record.year),
            ("Has Content", record.has_content),
            ("Events", len(record.event_urls)),
        ]
    if isinstance(record, Event):
        return [
            ("Name", record.name),
            ("Official Name", record.official_name),
            ("Start Date", record.start_date),
            ("End Date", record.end_date),
            ("Winner", record.winner_urls),
        ]
    if isinstance(record, Session):
        return [
            ("Name", record.name),
            ("Session", record.session_name),
            ("Status", record.status),
            ("Start Time", record.start_time),
            ("Channels", record.channels),
        ]
    if isinstance(record, Channel):
        return [
            ("Name", record.name),
            ("Type", record.channel_type),
            ("Drivers", record.driver_urls),
        ]
    if isinstance(record, Driver):
        return [
            ("Name", record.full_name),
            ("TLA", record.tla),
            ("Number", record.racing_number),
            ("Team", record.team_url),
        ]
    if isinstance(record, Team):
        return [("Name", record.name), ("Colour", record.colour)]
    if isinstance(record, PlaybackCommandContext):
        chain = record.chain
        return [
            ("Title", chain.title),
            ("Content", record.title),
            ("Concurrent", chain.concurrent),
            ("Commands", tuple(" ".join(command) for command in chain.commands if command)),
            ("Watch Phrase", chain.watchphrase),
        ]
    return []


def _rows_for(label: str, value: Any) -> list[InfoRow]:
    if value is None:
        return []
    if isinstance(value, _RECORD_TYPES):
        return [InfoRow(label, (SEPARATOR,)), *describe(value)]
    if isinstance(value, (list, tuple)):
        if value and all(isinstance(item, _RECORD_TYPES) for item in value):
            rows: list[InfoRow] = []
            for item in value:
                rows.append(InfoRow(label, (SEPARATOR,)))
                rows.extend(describe(item))
            return rows
        return [InfoRow(label, tuple(str(item) for item in value))]
    if isinstance(value, datetime):
        return [InfoRow(label, (value.strftime(DATETIME_FORMAT),))]
    if isinstance(value, date):
        return [InfoRow(label, (value.strftime(DATE_FORMAT),))]
    if isinstance(value, bool):
        return [InfoRow(label, ("true" if value else "false",))]
    if isinstance(value, str):
        return [InfoRow(label, tuple(line for line in value.splitlines() if line))]
    return [InfoRow(label, (str(value),))]


def _has_content(row: InfoRow) -> bool:
    return bool(row.lines) and bool(row.lines[0].strip())


def _season_and_round(data_source_id: str | None) -> tuple[str | None, str | None]:
    if not data_source_id:
        return None, None
    try:
        return parse_year_and_race(data_source_id)
    except MalformedIdError:
        return None, None


class IdResolver:
    def __init__(self, cache: CatalogCache, client: Any) -> None:
        self._cache = cache
        self._client = client

    def __call__(self, line: str) -> str:
        try:
            if _DRIVER_MARKER in line:
                return self._cache.drivers.get_or_fetch(line, self._client.get_driver).full_name
            if _TEAM_MARKER in line:
                return self._cache.teams.get_or_fetch(line, self._client.get_team).name
        except (CatalogError, MalformedIdError) as exc:
            logger.debug("Could not resolve %s: %s", line, exc)
        return line


class InfoRenderer:
    def __init__(
        self,
        display: InfoDisplay,
        resolve: Callable[[str], str] | None = None,
    ) -> None:
        self._display = display
        self._resolve = resolve
        self._generation = 0
        self._generation_lock = threading.Lock()
        self._write_lock = threading.Lock()

    def next_generation(self) -> int:
        with self._generation_lock:
            self._generation += 1
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._generation_lock:
            return generation == self._generation

    def render(self, rows: Iterable[InfoRow], generation: int) -> bool:
        # waits for an older render to notice it is stale and let go
        with self._write_lock:
            if not self.is_current(generation):
                return False
            self._display.clear()
            for row in rows:
                if not self.is_current(generation):
                    return False
                for index, line in enumerate(self._convert(row.lines)):
                    if not self.is_current(generation):
                        return False
                    self._display.add_row(row.title if index == 0 else "", line)
            return True

    def _convert(self, lines: tuple[str, ...]) -> list[str]:
        if self._resolve is None:
            return list(lines)
        return [self._resolve(line) for line in lines]
