from __future__ import annotations

import threading
from typing import Callable

from .nodes import ContentNode, NodeColor

BLINK_INTERVAL = 0.3

Notify = Callable[[ContentNode], None]


def blink_node(
    node: ContentNode,
    done: threading.Event,
    restore_color: str,
    notify: Notify,
    *,
    interval: float = BLINK_INTERVAL,
) -> None:
    """Toggle the node color until ``done`` is set, then restore ``restore_color``.

    The node may be detached from the display while this runs; ``notify`` is
    expected to ignore nodes it no longer shows.
    """
    highlight = True
    while not done.is_set():
        node.color = NodeColor.BUSY.value if highlight else restore_color
        highlight = not highlight
        notify(node)
        done.wait(interval)
    node.color = restore_color
    notify(node)
