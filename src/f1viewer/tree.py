from __future__ import annotations

import logging
import threading
import webbrowser
from datetime import date
from typing import Any, Callable

from .api import CatalogClient
from .assets import download_playlist
from .cache import CatalogCache
from .catalog import (
    CatalogError,
    Channel,
    Episode,
    Event,
    MalformedIdError,
    Season,
    Session,
    VodType,
)
from .command_runner import Launcher, run_chain
from .config import AppConfig, CommandChain, save_config
from .indicator import BLINK_INTERVAL, Notify, blink_node
from .nodes import (
    AllSeasonsRef,
    CategoryRef,
    ContentNode,
    DisableUpdatesAction,
    DownloadPlaylistAction,
    NodeColor,
    NodeState,
    OpenReleaseAction,
    PlaybackCommandContext,
    ShowUrlAction,
)
from .templating import CommandRun, Downloader
from .updates import Release

logger = logging.getLogger(__name__)

Spawn = Callable[[Callable[[], None]], None]
ReleaseCheck = Callable[[], "Release | None"]

MAIN_FEED_CHANNEL = "WIF"
UPDATES_OFF_LABEL = "update notifications turned off"

_FETCH_ERRORS = (CatalogError, MalformedIdError)


def spawn_thread(target: Callable[[], None]) -> None:
    threading.Thread(target=target, daemon=True).start()


def mpv_chain(language: str) -> CommandChain:
    return CommandChain(
        title="Play with MPV",
        commands=(("mpv", "$url", f"--alang={language}", "--start=0"),),
        watchphrase="Video",
        command_to_watch=0,
    )


def playback_nodes(title: str, content_id: str, config: AppConfig) -> list[ContentNode]:
    chains = [mpv_chain(config.preferred_language), *config.custom_playback_options]
    nodes = [
        ContentNode(
            chain.title,
            PlaybackCommandContext(content_id=content_id, title=title, chain=chain),
            color=NodeColor.ACTION.value,
        )
        for chain in chains
    ]
    nodes.insert(
        1,
        ContentNode(
            "Download .m3u8",
            DownloadPlaylistAction(content_id=content_id, title=title),
            color=NodeColor.ACTION.value,
        ),
    )
    nodes.insert(
        2,
        ContentNode("GET URL", ShowUrlAction(content_id=content_id), color=NodeColor.ACTION.value),
    )
    return nodes


def is_aired(event: Event, today: date) -> bool:
    # schedules list future rounds too; an unknown date is treated as past
    return event.start_date is None or event.start_date <= today


class ContentTree:
    def __init__(
        self,
        client: CatalogClient,
        config: AppConfig,
        *,
        cache: CatalogCache | None = None,
        notify: Notify | None = None,
        spawn: Spawn | None = None,
        today: Callable[[], date] | None = None,
        downloader: Downloader | None = None,
        launcher: Launcher | None = None,
        check_release: ReleaseCheck | None = None,
        open_url: Callable[[str], Any] | None = None,
        save: Callable[[AppConfig], str | None] | None = None,
        blink_interval: float = BLINK_INTERVAL,
    ) -> None:
        self.client = client
        self.config = config
        self.cache = cache or CatalogCache()
        self.vod_types: list[VodType] = []
        self.root = ContentNode("VOD-Types", color=NodeColor.ROOT.value, selectable=False)
        self._notify = notify or (lambda node: None)
        self._spawn = spawn or spawn_thread
        self._today = today or date.today
        self._downloader = downloader or download_playlist
        self._launcher = launcher
        self._check_release = check_release
        self._open_url = open_url or webbrowser.open
        self._save = save or save_config
        self._blink_interval = blink_interval

    def start(self) -> None:
        full_weekends = ContentNode(
            "Full Race Weekends",
            AllSeasonsRef(),
            color=NodeColor.CATEGORY.value,
        )
        self.root.add_child(full_weekends)
        self._notify(self.root)
        self._spawn(self._load_live_sessions)
        self._spawn(self._load_vod_types)
        if self.config.check_updates and self._check_release is not None:
            self._spawn(self._load_update_node)

    def record_for(self, node: ContentNode) -> Any:
        ref = node.ref
        if isinstance(ref, CategoryRef):
            if 0 <= ref.index < len(self.vod_types):
                return self.vod_types[ref.index]
            return None
        return ref

    def activate(self, node: ContentNode) -> None:
        ref = node.ref
        if ref is None or not node.selectable or node.state is NodeState.LOADING:
            return
        if node.children:
            node.toggle_expanded()
            self._notify(node)
            return

        if isinstance(ref, Episode):
            if ref.items:
                self._attach_now(node, playback_nodes(ref.title, ref.items[0], self.config))
        elif isinstance(ref, Channel):
            self._attach_now(node, playback_nodes(node.label, ref.id, self.config))
        elif isinstance(ref, CategoryRef):
            self._expand(node, lambda: self._resolve_category(node, ref), NodeColor.CATEGORY)
        elif isinstance(ref, AllSeasonsRef):
            self._expand(node, lambda: self._resolve_seasons(node, ref), NodeColor.CATEGORY)
        elif isinstance(ref, Season):
            self._expand(node, lambda: self._resolve_events(node, ref), NodeColor.SEASON)
        elif isinstance(ref, Event):
            self._expand(node, lambda: self._resolve_sessions(node, ref), NodeColor.NEUTRAL)
        elif isinstance(ref, PlaybackCommandContext):
            self._spawn(lambda: self._run_playback(node, ref))
        elif isinstance(ref, DownloadPlaylistAction):
            self._spawn(lambda: self._download(node, ref))
        elif isinstance(ref, ShowUrlAction):
            self._spawn(lambda: self._show_url(node, ref))
        elif isinstance(ref, OpenReleaseAction):
            if not self._open_url(ref.url):
                logger.warning("Could not open a browser for %s", ref.url)
        elif isinstance(ref, DisableUpdatesAction):
            self._disable_updates(node)
        elif isinstance(ref, Session):
            # sessions arrive with their perspectives already attached
            logger.debug("Session %s has no perspectives", ref.name)

    def _attach_now(self, node: ContentNode, children: list[ContentNode]) -> None:
        if not node.begin_loading():
            return
        for child in children:
            node.add_child(child)
        node.finish_loading()
        self._notify(node)

    def _expand(self, node: ContentNode, resolve: Callable[[], None], color: NodeColor) -> None:
        if not node.begin_loading():
            return
        done = threading.Event()

        def indicate() -> None:
            blink_node(node, done, color.value, self._notify, interval=self._blink_interval)
            node.finish_loading()
            self._notify(node)

        def work() -> None:
            try:
                resolve()
            except _FETCH_ERRORS as exc:
                logger.debug("Failed to load %s: %s", node.label, exc)
            finally:
                done.set()

        self._spawn(work)
        self._spawn(indicate)

    def _attach(self, node: ContentNode, child: ContentNode) -> None:
        node.add_child(child)
        self._notify(node)

    def _resolve_category(self, node: ContentNode, ref: CategoryRef) -> None:
        if not 0 <= ref.index < len(self.vod_types):
            return
        for url in self.vod_types[ref.index].content_urls:
            try:
                episode = self.cache.episodes.get_or_fetch(url, self.client.get_episode)
            except _FETCH_ERRORS as exc:
                logger.debug("Skipping episode %s: %s", url, exc)
                continue
            if episode.items:
                self._attach(node, ContentNode(episode.title, episode))

    def _resolve_seasons(self, node: ContentNode, ref: AllSeasonsRef) -> None:
        seasons = ref.seasons if ref.seasons is not None else self.client.get_seasons()
        for season in seasons:
            self._attach(node, ContentNode(season.name, season, color=NodeColor.SEASON.value))
        ref.seasons = seasons

    def _resolve_events(self, node: ContentNode, season: Season) -> None:
        today = self._today()
        for url in season.event_urls:
            try:
                event = self.client.get_event(url)
            except _FETCH_ERRORS as exc:
                logger.debug("Skipping event %s: %s", url, exc)
                continue
            if is_aired(event, today):
                self._attach(node, ContentNode(event.name, event))

    def _resolve_sessions(self, node: ContentNode, event: Event) -> None:
        sessions: list[ContentNode] = []
        for url in event.session_urls:
            try:
                session = self.client.get_session(url)
            except _FETCH_ERRORS as exc:
                logger.debug("Skipping session %s: %s", url, exc)
                continue
            sessions.append(self._session_node(session, session.name))
        for session_node in sessions:
            if session_node.children:
                self._attach(node, session_node)

    def _session_node(
        self,
        session: Session,
        label: str,
        color: NodeColor = NodeColor.CATEGORY,
    ) -> ContentNode:
        node = ContentNode(label, session, color=color.value, expanded=False)
        for channel in session.channels:
            node.add_child(ContentNode(self._channel_label(channel), channel))
        return node

    def _channel_label(self, channel: Channel) -> str:
        if channel.name == MAIN_FEED_CHANNEL:
            return "Main Feed"
        if channel.driver_urls:
            names: list[str] = []
            for url in channel.driver_urls:
                try:
                    driver = self.cache.drivers.get_or_fetch(url, self.client.get_driver)
                except _FETCH_ERRORS as exc:
                    logger.debug("Unknown driver %s: %s", url, exc)
                    continue
                names.append(driver.full_name)
            if names:
                return ", ".join(names)
        return channel.name

    def _load_vod_types(self) -> None:
        try:
            self.vod_types = self.client.get_vod_types()
        except _FETCH_ERRORS as exc:
            logger.warning("Failed to load categories: %s", exc)
            return
        for index, vod_type in enumerate(self.vod_types):
            if vod_type.content_urls:
                self.root.add_child(
                    ContentNode(vod_type.name, CategoryRef(index), color=NodeColor.CATEGORY.value)
                )
        self._notify(self.root)

    def _load_live_sessions(self) -> None:
        try:
            sessions = self.client.get_live_sessions()
        except _FETCH_ERRORS as exc:
            logger.debug("Live check failed: %s", exc)
            return
        for session in sessions:
            node = self._session_node(session, f"LIVE: {session.name}", NodeColor.ERROR)
            if node.children:
                self.root.add_child(node, first=True)
        self._notify(self.root)

    def _load_update_node(self) -> None:
        if self._check_release is None:
            return
        try:
            release = self._check_release()
        except _FETCH_ERRORS as exc:
            logger.debug("Update check failed: %s", exc)
            return
        if release is None:
            return
        node = ContentNode(
            f"New version available: {release.tag}",
            color=NodeColor.ERROR.value,
            selectable=False,
        )
        node.add_child(
            ContentNode("download update", OpenReleaseAction(release.url), color=NodeColor.ACTION.value)
        )
        node.add_child(
            ContentNode(
                "don't tell me about updates",
                DisableUpdatesAction(),
                color=NodeColor.ACTION.value,
            )
        )
        self.root.add_child(node, first=True)
        self._notify(self.root)

    def _playable_url(self, node: ContentNode, content_id: str) -> str | None:
        try:
            return self.client.get_playable_url(content_id)
        except _FETCH_ERRORS as exc:
            logger.error("Could not get a stream URL for %s: %s", node.label, exc)
            node.color = NodeColor.ERROR.value
            self._notify(node)
            return None

    def _run_playback(self, node: ContentNode, context: PlaybackCommandContext) -> None:
        url = self._playable_url(node, context.content_id)
        if url is None:
            return
        run = CommandRun(url, context.title, self._downloader)
        chain = context.chain
        armed: threading.Event | None = None
        if chain.watch_index is not None:
            armed = threading.Event()
            watched = armed
            self._spawn(
                lambda: blink_node(
                    node,
                    watched,
                    NodeColor.DONE.value,
                    self._notify,
                    interval=self._blink_interval,
                )
            )
        result = run_chain(chain, run, armed=armed, launcher=self._launcher)
        logger.debug("%s finished: %s", chain.title, result.state.value)
        if armed is None:
            node.color = NodeColor.DONE.value
            self._notify(node)

    def _download(self, node: ContentNode, action: DownloadPlaylistAction) -> None:
        url = self._playable_url(node, action.content_id)
        if url is None:
            return
        try:
            path = self._downloader(url, action.title)
        except (CatalogError, OSError, ValueError) as exc:
            logger.error("Download failed: %s", exc)
            node.color = NodeColor.ERROR.value
        else:
            logger.info("Saved %s to %s", action.title, path)
            node.color = NodeColor.DONE.value
        self._notify(node)

    def _show_url(self, node: ContentNode, action: ShowUrlAction) -> None:
        url = self._playable_url(node, action.content_id)
        if url is not None:
            logger.info("%s", url)

    def _disable_updates(self, node: ContentNode) -> None:
        self.config.check_updates = False
        error = self._save(self.config)
        if error:
            logger.error("%s", error)
        node.color = NodeColor.DONE.value
        node.label = UPDATES_OFF_LABEL
        self._notify(node)
