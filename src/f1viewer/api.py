from __future__ import annotations

import logging
from typing import Any

import httpx

from .catalog import (
    CatalogError,
    Driver,
    Episode,
    Event,
    MalformedIdError,
    Season,
    Session,
    Team,
    VodType,
    parse_driver,
    parse_episode,
    parse_event,
    parse_seasons,
    parse_session,
    parse_sessions,
    parse_team,
    parse_vod_types,
)

logger = logging.getLogger(__name__)

BASE_URL = "https://f1tv.formula1.com"
_VOD_TYPES_PATH = "/api/vod-type-tag/"
_SEASONS_PATH = "/api/race-season/"
_SESSIONS_PATH = "/api/session-occurrence/"
_VIEWINGS_PATH = "/api/viewings/"
_CHANNEL_MARKER = "/api/channels/"


class CatalogClient:
    def __init__(
        self,
        base_url: str = BASE_URL,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            follow_redirects=True,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def get_vod_types(self) -> list[VodType]:
        data = self._get_json(
            _VOD_TYPES_PATH,
            params={"fields": "id,name,self,content_urls,uid", "limit": "100"},
        )
        return parse_vod_types(data)

    def get_episode(self, episode_id: str) -> Episode:
        return parse_episode(self._get_json(_check_id(episode_id)))

    def get_driver(self, driver_id: str) -> Driver:
        return parse_driver(self._get_json(_check_id(driver_id)))

    def get_team(self, team_id: str) -> Team:
        return parse_team(self._get_json(_check_id(team_id)))

    def get_seasons(self) -> list[Season]:
        data = self._get_json(
            _SEASONS_PATH,
            params={
                "fields": "year,name,self,has_content,eventoccurrence_urls",
                "year__gt": "2017",
                "order": "year",
            },
        )
        return parse_seasons(data)

    def get_event(self, event_id: str) -> Event:
        return parse_event(self._get_json(_check_id(event_id)))

    def get_session(self, session_id: str) -> Session:
        data = self._get_json(
            _check_id(session_id),
            params={"fields_to_expand": "channel_urls"},
        )
        return parse_session(data)

    def get_live_sessions(self) -> list[Session]:
        data = self._get_json(
            _SESSIONS_PATH,
            params={"fields_to_expand": "channel_urls", "status": "live"},
        )
        return parse_sessions(data)

    def get_playable_url(self, content_id: str) -> str:
        content_id = _check_id(content_id)
        if _CHANNEL_MARKER in content_id:
            payload = {"channel_url": content_id}
        else:
            payload = {"asset_url": content_id}
        data = self._request_json("POST", _VIEWINGS_PATH, json=payload)
        url = _tokenised_url(data)
        if url is None:
            raise CatalogError(f"No playable URL for {content_id}")
        return url

    def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        return self._request_json("GET", path, params=params)

    def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        logger.debug("%s %s", method, path)
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise CatalogError(f"Request to {path} failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise CatalogError(f"Response from {path} is not valid JSON") from exc


def _check_id(content_id: str) -> str:
    if not content_id.startswith("/api/") or len(content_id) <= len("/api/"):
        raise MalformedIdError(f"Not a catalog id: {content_id!r}")
    return content_id


def _tokenised_url(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    url = data.get("tokenised_url")
    if isinstance(url, str) and url:
        return url
    objects = data.get("objects")
    if isinstance(objects, list) and objects and isinstance(objects[0], dict):
        url = objects[0].get("tokenised_url")
        if isinstance(url, str) and url:
            return url
    return None
