from __future__ import annotations

import argparse
import logging
import threading
from pathlib import Path
from typing import Any, Callable

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.theme import Theme
from textual.widgets import DataTable, RichLog, Static, Tree
from textual.widgets.tree import TreeNode

from .api import CatalogClient
from .config import AppConfig, load_config, save_config
from .info import IdResolver, InfoRenderer, describe
from .logs import configure_logging
from .nodes import (
    ContentNode,
    DisableUpdatesAction,
    DownloadPlaylistAction,
    OpenReleaseAction,
    PlaybackCommandContext,
    ShowUrlAction,
)
from .paths import config_path
from .templating import FILE_TOKEN, URL_TOKEN
from .tree import ContentTree
from .ui.help import HelpScreen
from .updates import APP_VERSION, check_for_update

logger = logging.getLogger(__name__)

TIP_TEXT = "Tip: enter opens an entry, ? shows help"
HELP_TEXT = """Keyboard shortcuts:
q  quit
enter  load / expand / collapse the highlighted entry, or run it
d  show or hide the debug log
?  help

Custom playback commands:
{url}   replaced with the stream URL
{file}  replaced with a downloaded .m3u8 playlist

Config file:
{config}
"""

_LEAF_REFS = (
    PlaybackCommandContext,
    DownloadPlaylistAction,
    ShowUrlAction,
    OpenReleaseAction,
    DisableUpdatesAction,
)

F1_THEME = Theme(
    name="f1-night",
    primary="#e10600",
    secondary="#7dcfff",
    accent="#ff8700",
    warning="#e0af68",
    error="#f7768e",
    success="#9ece6a",
    foreground="#d5d8e6",
    background="#15151e",
    surface="#1e1e2a",
    panel="#26263a",
    boost="#33334d",
)


class _TableDisplay:
    def __init__(self, app: App, table: DataTable) -> None:
        self._app = app
        self._table = table

    def clear(self) -> None:
        self._app.call_from_thread(self._table.clear)

    def add_row(self, title: str, value: str) -> None:
        label = Text(title, style="bold #7dcfff", justify="right")
        self._app.call_from_thread(self._table.add_row, label, Text(value))


class F1ViewerApp(App):
    BINDINGS = [
        ("q", "quit", "Quit"),
        ("d", "toggle_debug", "Debug"),
        ("?", "help", "Help"),
    ]

    CSS = """
    Screen {
        background: $background;
        color: $text;
    }

    #main {
        height: 1fr;
    }

    #catalog_tree {
        width: 50%;
        border: round $primary;
        background: $surface;
    }

    #side {
        width: 50%;
    }

    #info_table {
        height: 2fr;
        border: round $secondary;
        background: $panel;
    }

    #debug_log {
        height: 1fr;
        border: round $accent;
        background: $surface;
    }

    #tip_bar {
        height: 1;
        padding: 0 1;
        color: $text-muted;
        background: $panel;
        text-style: italic;
    }

    .hidden {
        display: none;
    }
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        config_file: Path | None = None,
        config_error: str | None = None,
        debug: bool = False,
        client: CatalogClient | None = None,
    ) -> None:
        super().__init__()
        self.register_theme(F1_THEME)
        self.theme = F1_THEME.name
        self._config_file = config_file
        self._config_error = config_error
        self._debug = debug
        self._client = client or CatalogClient()
        self._catalog = ContentTree(
            self._client,
            config,
            notify=self._request_sync,
            check_release=check_for_update,
            save=self._save_config,
        )
        self._widgets: dict[ContentNode, TreeNode[ContentNode]] = {}
        self._renderer: InfoRenderer | None = None
        self._loop_thread: int | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="main"):
            yield Tree(
                Text(self._catalog.root.label),
                data=self._catalog.root,
                id="catalog_tree",
            )
            with Vertical(id="side"):
                yield DataTable(id="info_table", show_header=False, cursor_type="none")
                yield RichLog(
                    id="debug_log",
                    classes="" if self._debug else "hidden",
                    max_lines=2000,
                    wrap=True,
                )
        yield Static(TIP_TEXT, id="tip_bar")

    def on_mount(self) -> None:
        self._loop_thread = threading.get_ident()
        tree = self.query_one("#catalog_tree", Tree)
        tree.border_title = f"f1viewer {APP_VERSION}"
        tree.auto_expand = False
        tree.show_root = True
        self._widgets[self._catalog.root] = tree.root
        tree.root.expand()
        table = self.query_one("#info_table", DataTable)
        table.border_title = "Info"
        table.add_columns("Field", "Value")
        self.query_one("#debug_log", RichLog).border_title = "Debug"
        self._renderer = InfoRenderer(
            _TableDisplay(self, table),
            IdResolver(self._catalog.cache, self._client),
        )
        configure_logging(self._debug, self._write_log)
        if self._config_error:
            logger.error("%s", self._config_error)
        self._catalog.start()
        tree.focus()

    def action_help(self) -> None:
        self.push_screen(HelpScreen(_help_text(self._config_file)))

    def action_toggle_debug(self) -> None:
        self.query_one("#debug_log", RichLog).toggle_class("hidden")

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        node = event.node.data
        if isinstance(node, ContentNode):
            self._catalog.activate(node)

    def on_tree_node_highlighted(self, event: Tree.NodeHighlighted) -> None:
        node = event.node.data
        if isinstance(node, ContentNode):
            self._show_info(node)

    def on_tree_node_expanded(self, event: Tree.NodeExpanded) -> None:
        node = event.node.data
        if isinstance(node, ContentNode):
            node.expanded = True

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed) -> None:
        node = event.node.data
        if isinstance(node, ContentNode):
            node.expanded = False

    def _show_info(self, node: ContentNode) -> None:
        renderer = self._renderer
        if renderer is None:
            return
        rows = describe(self._catalog.record_for(node))
        generation = renderer.next_generation()
        threading.Thread(
            target=renderer.render,
            args=(rows, generation),
            daemon=True,
        ).start()

    def _save_config(self, config: AppConfig) -> str | None:
        return save_config(config, self._config_file)

    def _on_loop(self, callback: Callable[..., Any], *args: Any) -> None:
        if threading.get_ident() == self._loop_thread:
            callback(*args)
            return
        try:
            self.call_from_thread(callback, *args)
        except RuntimeError:
            # the app is shutting down
            return

    def _request_sync(self, node: ContentNode) -> None:
        self._on_loop(self._sync_node, node)

    def _write_log(self, line: str) -> None:
        self._on_loop(self._append_log, line)

    def _append_log(self, line: str) -> None:
        self.query_one("#debug_log", RichLog).write(line)

    def _sync_node(self, node: ContentNode) -> None:
        widget = self._widgets.get(node)
        if widget is None:
            return
        widget.set_label(_node_label(node))
        children = node.children
        for index, child in enumerate(children):
            if child in self._widgets:
                continue
            before = _next_widget(self._widgets, children[index + 1 :])
            label = _node_label(child)
            if isinstance(child.ref, _LEAF_REFS):
                child_widget = widget.add_leaf(label, data=child, before=before)
            else:
                child_widget = widget.add(label, data=child, before=before)
            self._widgets[child] = child_widget
            if child.children:
                self._sync_node(child)
        if children and node.expanded:
            widget.expand()
        elif children:
            widget.collapse()


def _next_widget(
    widgets: dict[ContentNode, TreeNode[ContentNode]],
    siblings: tuple[ContentNode, ...],
) -> TreeNode[ContentNode] | None:
    for sibling in siblings:
        widget = widgets.get(sibling)
        if widget is not None:
            return widget
    return None


def _node_label(node: ContentNode) -> Text:
    style = node.color if node.selectable else f"{node.color} dim"
    return Text(node.label, style=style)


def _help_text(config_file: Path | None = None) -> str:
    path = config_file or config_path()
    return HELP_TEXT.format(url=URL_TOKEN, file=FILE_TOKEN, config=path)


def _cli_help_text() -> str:
    return (
        "Browse the F1TV catalog and play or download streams.\n\n"
        f"Custom playback commands may use {URL_TOKEN} and {FILE_TOKEN}.\n"
        f"Config file: {config_path()}"
    )


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="f1viewer",
        description=_cli_help_text(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Show the debug log")
    parser.add_argument("--config", help="Path to config.json")
    args = parser.parse_args(argv)
    path = Path(args.config).expanduser() if args.config else None
    config, error = load_config(path)
    client = CatalogClient()
    try:
        app = F1ViewerApp(
            config,
            config_file=path,
            config_error=error,
            debug=args.debug,
            client=client,
        )
        app.run()
    finally:
        client.close()
