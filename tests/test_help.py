from __future__ import annotations

from f1viewer.app import _help_text
from f1viewer.nodes import NodeColor
from f1viewer.ui.help import help_body


def test_help_body_bolds_section_titles() -> None:
    body = help_body("Keyboard shortcuts:\nq  quit\n")
    assert body.plain.startswith("Keyboard shortcuts\nq  quit\n")
    assert any(span.style == "bold" and span.end - span.start > 1 for span in body.spans)


def test_help_body_lists_tree_colors(tmp_path) -> None:
    body = help_body(_help_text(tmp_path / "config.json"))
    assert "Tree colors" in body.plain
    assert "no content" in body.plain
    styles = {str(span.style) for span in body.spans}
    assert NodeColor.ERROR.value in styles
    assert NodeColor.ACTION.value in styles
