from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from f1viewer.catalog import (
    CatalogError,
    Driver,
    MalformedIdError,
    parse_driver,
    parse_episode,
    parse_event,
    parse_seasons,
    parse_session,
    parse_vod_types,
    parse_year_and_race,
)


def test_parse_vod_types_keeps_content_urls() -> None:
    data = {
        "objects": [
            {"self": "/api/vod-type-tag/1/", "name": "Highlights", "content_urls": ["/api/assets/1/"]},
            {"uid": "vtt_2", "name": "Docs"},
        ]
    }
    vod_types = parse_vod_types(data)
    assert [vod.name for vod in vod_types] == ["Highlights", "Docs"]
    assert vod_types[0].id == "/api/vod-type-tag/1/"
    assert vod_types[0].content_urls == ("/api/assets/1/",)
    assert vod_types[1].id == "vtt_2"
    assert vod_types[1].content_urls == ()


def test_parse_vod_types_requires_objects() -> None:
    with pytest.raises(CatalogError):
        parse_vod_types({"items": []})


def test_parse_episode() -> None:
    episode = parse_episode(
        {
            "self": "/api/episodes/ep_1/",
            "title": "Race Highlights",
            "data_source_id": "1905-abc",
            "items": ["/api/assets/a1/", 3],
            "driver_urls": ["/api/driver/d1/"],
        }
    )
    assert episode.title == "Race Highlights"
    assert episode.items == ("/api/assets/a1/",)
    assert episode.driver_urls == ("/api/driver/d1/",)
    assert episode.synopsis is None


def test_parse_episode_without_id() -> None:
    with pytest.raises(CatalogError):
        parse_episode({"title": "Nameless"})


def test_parse_driver_full_name() -> None:
    driver = parse_driver(
        {
            "self": "/api/driver/d1/",
            "first_name": "Kimi",
            "last_name": "Raikkonen",
            "driver_tla": "RAI",
            "driver_racingnumber": 7,
        }
    )
    assert driver.full_name == "Kimi Raikkonen"
    assert driver.tla == "RAI"
    assert driver.racing_number == 7
    assert Driver(id="/api/driver/d2/", tla="HAM").full_name == "HAM"


def test_parse_seasons() -> None:
    seasons = parse_seasons(
        {
            "objects": [
                {
                    "self": "/api/race-season/2019/",
                    "name": "2019 Season",
                    "year": 2019,
                    "has_content": True,
                    "eventoccurrence_urls": ["/api/event-occurrence/e1/"],
                }
            ]
        }
    )
    assert seasons[0].year == 2019
    assert seasons[0].has_content is True
    assert seasons[0].event_urls == ("/api/event-occurrence/e1/",)


def test_parse_event_dates() -> None:
    event = parse_event(
        {
            "self": "/api/event-occurrence/e1/",
            "name": "Monaco Grand Prix",
            "start_date": "2019-05-23",
            "end_date": "not a date",
            "sessionoccurrence_urls": ["/api/session-occurrence/s1/"],
            "winner_urls": ["/api/driver/d1/"],
        }
    )
    assert event.start_date == date(2019, 5, 23)
    assert event.end_date is None
    assert event.session_urls == ("/api/session-occurrence/s1/",)
    assert event.winner_urls == ("/api/driver/d1/",)


def test_parse_session_with_channels() -> None:
    session = parse_session(
        {
            "self": "/api/session-occurrence/s1/",
            "name": "Race",
            "status": "replay",
            "start_time": "2019-05-26T13:10:00Z",
            "channel_urls": [
                {"self": "/api/channels/c1/", "name": "WIF", "channel_type": "wif"},
                {
                    "self": "/api/channels/c2/",
                    "name": "driver",
                    "driveroccurrence_urls": ["/api/driver-occurrence/d1/"],
                },
                "/api/channels/c3/",
            ],
        }
    )
    assert session.start_time == datetime(2019, 5, 26, 13, 10, tzinfo=timezone.utc)
    assert [channel.name for channel in session.channels] == ["WIF", "driver"]
    assert session.channels[1].driver_urls == ("/api/driver-occurrence/d1/",)


def test_parse_year_and_race_short_year() -> None:
    assert parse_year_and_race("1905abc") == ("2019", "05")
    assert parse_year_and_race("9912") == ("1999", "12")


def test_parse_year_and_race_full_year_prefix() -> None:
    assert parse_year_and_race("2018_highlights") == ("2018", "0")
    assert parse_year_and_race("2019") == ("2019", "0")


@pytest.mark.parametrize("race_id", ["", "190", "ab12", "19x5"])
def test_parse_year_and_race_malformed(race_id: str) -> None:
    with pytest.raises(MalformedIdError):
        parse_year_and_race(race_id)
