from __future__ import annotations

from rich.text import Text
from textual import events
from textual.app import ComposeResult
from textual.containers import Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static

from ..nodes import NodeColor

COLOR_LEGEND = (
    (NodeColor.CATEGORY, "loads its entries when opened"),
    (NodeColor.SEASON, "season"),
    (NodeColor.BUSY, "loading or waiting for the player"),
    (NodeColor.ACTION, "playback or download action"),
    (NodeColor.DONE, "action finished"),
    (NodeColor.ERROR, "live session, update notice or no content"),
)


def help_body(help_text: str) -> Text:
    body = Text()
    for line in help_text.splitlines():
        if line and not line.startswith(" ") and line.endswith(":"):
            body.append(line[:-1] + "\n", style="bold")
        else:
            body.append(line + "\n")
    body.append("\nTree colors\n", style="bold")
    for color, meaning in COLOR_LEGEND:
        body.append("  ● ", style=color.value)
        body.append(f"{meaning}\n")
    return body


class HelpScreen(ModalScreen[None]):
    BINDINGS = [("escape", "close", "Close"), ("?", "close", "Close")]

    CSS = """
    HelpScreen {
        align: center middle;
        background: $surface 80%;
    }

    #help_dialog {
        width: 70%;
        max-width: 90;
        height: 80%;
        padding: 1 2;
        border: heavy $primary;
        background: $panel;
    }

    #help_title {
        color: $primary;
        text-style: bold;
        height: 1;
    }

    #help_scroll {
        height: 1fr;
    }

    #help_close {
        border: round $accent;
    }
    """

    def __init__(self, help_text: str) -> None:
        super().__init__()
        self._help_text = help_text

    def compose(self) -> ComposeResult:
        with Vertical(id="help_dialog"):
            yield Label("f1viewer help", id="help_title")
            with VerticalScroll(id="help_scroll"):
                yield Static(help_body(self._help_text))
            yield Button("Close", id="help_close")

    def on_mount(self) -> None:
        self.query_one("#help_scroll", VerticalScroll).focus()

    def action_close(self) -> None:
        self.dismiss(None)

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape" or event.character == "?":
            self.action_close()
            event.stop()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "help_close":
            self.dismiss(None)
