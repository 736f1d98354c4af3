from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .catalog import Channel, Episode, Event, Season, Session
from .config import CommandChain

NO_CONTENT_SUFFIX = " - NO CONTENT AVAILABLE"


class NodeColor(str, Enum):
    NEUTRAL = "white"
    BUSY = "grey50"
    CATEGORY = "yellow"
    SEASON = "wheat1"
    DONE = "blue"
    ACTION = "green"
    ERROR = "red"
    ROOT = "bright_blue"


class NodeState(Enum):
    UNEXPANDED = "unexpanded"
    LOADING = "loading"
    EXPANDED = "expanded"
    EMPTY = "empty"


@dataclass(frozen=True)
class CategoryRef:
    index: int


@dataclass
class AllSeasonsRef:
    seasons: list[Season] | None = None


@dataclass(frozen=True)
class PlaybackCommandContext:
    content_id: str
    title: str
    chain: CommandChain


@dataclass(frozen=True)
class DownloadPlaylistAction:
    content_id: str
    title: str


@dataclass(frozen=True)
class ShowUrlAction:
    content_id: str


@dataclass(frozen=True)
class OpenReleaseAction:
    url: str


@dataclass(frozen=True)
class DisableUpdatesAction:
    pass


NodeRef = Union[
    CategoryRef,
    AllSeasonsRef,
    Season,
    Event,
    Session,
    Channel,
    Episode,
    PlaybackCommandContext,
    DownloadPlaylistAction,
    ShowUrlAction,
    OpenReleaseAction,
    DisableUpdatesAction,
    None,
]


@dataclass(eq=False)
class ContentNode:
    label: str
    ref: NodeRef = None
    color: str = NodeColor.NEUTRAL.value
    selectable: bool = True
    expanded: bool = True
    _children: list[ContentNode] = field(default_factory=list, repr=False)
    _state: NodeState = field(default=NodeState.UNEXPANDED, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def children(self) -> tuple[ContentNode, ...]:
        with self._lock:
            return tuple(self._children)

    @property
    def state(self) -> NodeState:
        with self._lock:
            return self._state

    def add_child(self, child: ContentNode, *, first: bool = False) -> None:
        with self._lock:
            if first:
                self._children.insert(0, child)
            else:
                self._children.append(child)
            if self._state is NodeState.UNEXPANDED:
                self._state = NodeState.EXPANDED

    def begin_loading(self) -> bool:
        with self._lock:
            if self._state is not NodeState.UNEXPANDED or self._children:
                return False
            self._state = NodeState.LOADING
            return True

    def finish_loading(self) -> NodeState:
        with self._lock:
            if self._children:
                self._state = NodeState.EXPANDED
                return self._state
        self.mark_empty()
        return NodeState.EMPTY

    def mark_empty(self) -> None:
        with self._lock:
            self._state = NodeState.EMPTY
            if not self.label.endswith(NO_CONTENT_SUFFIX):
                self.label = self.label + NO_CONTENT_SUFFIX
            self.color = NodeColor.ERROR.value
            self.selectable = False

    def toggle_expanded(self) -> bool:
        self.expanded = not self.expanded
        return self.expanded
