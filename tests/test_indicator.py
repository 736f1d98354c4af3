from __future__ import annotations

import threading

from f1viewer.indicator import blink_node
from f1viewer.nodes import ContentNode, NodeColor


def test_blink_stops_and_restores_color() -> None:
    node = ContentNode("Monaco", color=NodeColor.NEUTRAL.value)
    done = threading.Event()
    colors: list[str] = []

    def notify(target: ContentNode) -> None:
        colors.append(target.color)
        if len(colors) >= 4:
            done.set()

    blink_node(node, done, NodeColor.NEUTRAL.value, notify, interval=0.001)

    assert colors[0] == NodeColor.BUSY.value
    assert colors[1] == NodeColor.NEUTRAL.value
    assert node.color == NodeColor.NEUTRAL.value
    assert colors[-1] == NodeColor.NEUTRAL.value


def test_blink_when_already_done() -> None:
    node = ContentNode("Play with MPV", color=NodeColor.ACTION.value)
    done = threading.Event()
    done.set()
    notified: list[ContentNode] = []
    blink_node(node, done, NodeColor.DONE.value, notified.append, interval=0.001)
    assert notified == [node]
    assert node.color == NodeColor.DONE.value
