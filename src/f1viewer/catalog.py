from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


class CatalogError(RuntimeError):
    pass


class MalformedIdError(ValueError):
    pass


@dataclass(frozen=True)
class VodType:
    id: str
    name: str
    content_urls: tuple[str, ...] = ()


@dataclass(frozen=True)
class Driver:
    id: str
    first_name: str | None = None
    last_name: str | None = None
    tla: str | None = None
    racing_number: int | None = None
    team_url: str | None = None

    @property
    def full_name(self) -> str:
        parts = [part for part in (self.first_name, self.last_name) if part]
        return " ".join(parts) or self.tla or self.id


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    colour: str | None = None


@dataclass(frozen=True)
class Episode:
    id: str
    title: str
    subtitle: str | None = None
    synopsis: str | None = None
    data_source_id: str | None = None
    items: tuple[str, ...] = ()
    driver_urls: tuple[str, ...] = ()
    team_urls: tuple[str, ...] = ()


@dataclass(frozen=True)
class Season:
    id: str
    name: str
    year: int | None = None
    has_content: bool = False
    event_urls: tuple[str, ...] = ()


@dataclass(frozen=True)
class Event:
    id: str
    name: str
    official_name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    session_urls: tuple[str, ...] = ()
    winner_urls: tuple[str, ...] = ()


@dataclass(frozen=True)
class Channel:
    id: str
    name: str
    channel_type: str | None = None
    driver_urls: tuple[str, ...] = ()


@dataclass(frozen=True)
class Session:
    id: str
    name: str
    session_name: str | None = None
    status: str | None = None
    start_time: datetime | None = None
    channels: tuple[Channel, ...] = ()


def parse_vod_types(data: Any) -> list[VodType]:
    objects = _objects(data)
    return [
        VodType(
            id=_as_str(item.get("self")) or _as_str(item.get("uid")) or str(index),
            name=_as_str(item.get("name")) or "Unnamed",
            content_urls=_as_str_tuple(item.get("content_urls")),
        )
        for index, item in enumerate(objects)
    ]


def parse_episode(data: Any) -> Episode:
    data = _require_dict(data, "episode")
    return Episode(
        id=_require_id(data),
        title=_as_str(data.get("title")) or "Untitled",
        subtitle=_as_str(data.get("subtitle")),
        synopsis=_as_str(data.get("synopsis")),
        data_source_id=_as_str(data.get("data_source_id")),
        items=_as_str_tuple(data.get("items")),
        driver_urls=_as_str_tuple(data.get("driver_urls")),
        team_urls=_as_str_tuple(data.get("team_urls")),
    )


def parse_driver(data: Any) -> Driver:
    data = _require_dict(data, "driver")
    return Driver(
        id=_require_id(data),
        first_name=_as_str(data.get("first_name")),
        last_name=_as_str(data.get("last_name")),
        tla=_as_str(data.get("driver_tla")),
        racing_number=_as_int(data.get("driver_racingnumber")),
        team_url=_as_str(data.get("team_url")),
    )


def parse_team(data: Any) -> Team:
    data = _require_dict(data, "team")
    return Team(
        id=_require_id(data),
        name=_as_str(data.get("name")) or "Unknown team",
        colour=_as_str(data.get("colour")),
    )


def parse_seasons(data: Any) -> list[Season]:
    return [parse_season(item) for item in _objects(data)]


def parse_season(data: Any) -> Season:
    data = _require_dict(data, "season")
    year = _as_int(data.get("year"))
    return Season(
        id=_require_id(data),
        name=_as_str(data.get("name")) or (str(year) if year else "Season"),
        year=year,
        has_content=data.get("has_content") is True,
        event_urls=_as_str_tuple(data.get("eventoccurrence_urls")),
    )


def parse_event(data: Any) -> Event:
    data = _require_dict(data, "event")
    return Event(
        id=_require_id(data),
        name=_as_str(data.get("name")) or "Event",
        official_name=_as_str(data.get("official_name")),
        start_date=_as_date(data.get("start_date")),
        end_date=_as_date(data.get("end_date")),
        session_urls=_as_str_tuple(data.get("sessionoccurrence_urls")),
        winner_urls=_as_str_tuple(data.get("winner_urls")),
    )


def parse_session(data: Any) -> Session:
    data = _require_dict(data, "session")
    channels = data.get("channel_urls")
    return Session(
        id=_require_id(data),
        name=_as_str(data.get("name")) or "Session",
        session_name=_as_str(data.get("session_name")),
        status=_as_str(data.get("status")),
        start_time=_as_datetime(data.get("start_time")),
        channels=tuple(
            parse_channel(item) for item in channels or () if isinstance(item, dict)
        ),
    )


def parse_sessions(data: Any) -> list[Session]:
    return [parse_session(item) for item in _objects(data)]


def parse_channel(data: Any) -> Channel:
    data = _require_dict(data, "channel")
    return Channel(
        id=_require_id(data),
        name=_as_str(data.get("name")) or "Channel",
        channel_type=_as_str(data.get("channel_type")),
        driver_urls=_as_str_tuple(data.get("driveroccurrence_urls")),
    )


def parse_year_and_race(race_id: str) -> tuple[str, str]:
    if len(race_id) < 4:
        raise MalformedIdError(f"ID too short: {race_id!r}")
    prefix = race_id[:4]
    if not prefix.isdigit():
        raise MalformedIdError(f"ID does not start with a year/race number: {race_id!r}")
    # 2018 and 2019 content uses the full year as the prefix
    if prefix in {"2018", "2019"}:
        return prefix, "0"
    short_year = int(race_id[:2])
    century = "20" if short_year < 30 else "19"
    return century + race_id[:2], race_id[2:4]


def _objects(data: Any) -> list[dict[str, Any]]:
    data = _require_dict(data, "listing")
    objects = data.get("objects")
    if not isinstance(objects, list):
        raise CatalogError("Catalog listing has no objects")
    return [item for item in objects if isinstance(item, dict)]


def _require_dict(data: Any, kind: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise CatalogError(f"Unexpected {kind} payload")
    return data


def _require_id(data: dict[str, Any]) -> str:
    value = _as_str(data.get("self")) or _as_str(data.get("uid"))
    if value is None:
        raise CatalogError("Catalog record has no id")
    return value


def _as_str(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _as_str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str) and item)


def _as_date(value: Any) -> date | None:
    text = _as_str(value)
    if text is None:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def _as_datetime(value: Any) -> datetime | None:
    text = _as_str(value)
    if text is None:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
