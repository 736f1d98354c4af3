from __future__ import annotations

import io
import threading
from pathlib import Path

from f1viewer.catalog import CatalogError
from f1viewer.command_runner import ChainState, monitor_output, run_chain
from f1viewer.config import CommandChain
from f1viewer.templating import CommandRun


class FakeProcess:
    def __init__(self, name: str, events: list[str], returncode: int = 0, stdout=None) -> None:
        self.name = name
        self.events = events
        self.returncode = returncode
        self.stdout = stdout

    def wait(self) -> int:
        self.events.append(f"wait {self.name}")
        return self.returncode


def _run(url: str = "http://x/y.m3u8") -> CommandRun:
    return CommandRun(url, "Race", downloader=lambda url, title: Path("/tmp/Race.m3u8"))


def test_sequential_chain_continues_after_failure() -> None:
    events: list[str] = []
    codes = {"one": 0, "two": 3, "three": 0}

    def launcher(argv: list[str], capture: bool) -> FakeProcess:
        events.append(f"start {argv[0]}")
        return FakeProcess(argv[0], events, codes[argv[0]])

    chain = CommandChain("seq", commands=(("one",), ("two",), ("three",)))
    result = run_chain(chain, _run(), launcher=launcher)

    assert events == [
        "start one",
        "wait one",
        "start two",
        "wait two",
        "start three",
        "wait three",
    ]
    assert result.state == ChainState.FAILED
    assert len(result.errors) == 1
    assert "code 3" in result.errors[0]


def test_concurrent_chain_launches_without_waiting() -> None:
    events: list[str] = []

    def launcher(argv: list[str], capture: bool) -> FakeProcess:
        events.append(f"start {argv[0]}")
        return FakeProcess(argv[0], events)

    chain = CommandChain("all", commands=(("a",), ("b",), ("c",)), concurrent=True)
    result = run_chain(chain, _run(), launcher=launcher)

    assert events == ["start a", "start b", "start c"]
    assert result.state == ChainState.COMPLETED
    assert result.launched == [["a"], ["b"], ["c"]]


def test_launch_error_is_recorded_and_chain_continues() -> None:
    events: list[str] = []

    def launcher(argv: list[str], capture: bool) -> FakeProcess:
        if argv[0] == "missing":
            raise FileNotFoundError("missing")
        events.append(f"start {argv[0]}")
        return FakeProcess(argv[0], events)

    chain = CommandChain("seq", commands=(("missing", "$url"), ("echo", "$url")))
    result = run_chain(chain, _run(), launcher=launcher)

    assert result.launched == [["echo", "http://x/y.m3u8"]]
    assert result.state == ChainState.FAILED
    assert "missing" in result.errors[0]


def test_empty_commands_are_skipped() -> None:
    launched: list[list[str]] = []

    def launcher(argv: list[str], capture: bool) -> FakeProcess:
        launched.append(argv)
        return FakeProcess(argv[0], [])

    chain = CommandChain("seq", commands=((), ("echo", "$url")))
    result = run_chain(chain, _run(), launcher=launcher)

    assert launched == [["echo", "http://x/y.m3u8"]]
    assert result.state == ChainState.COMPLETED


def test_watched_command_captures_output_and_arms() -> None:
    captures: list[bool] = []

    def launcher(argv: list[str], capture: bool) -> FakeProcess:
        captures.append(capture)
        stdout = io.StringIO("loading\nVideo --vid=1\n") if capture else None
        return FakeProcess(argv[0], [], stdout=stdout)

    chain = CommandChain(
        "watched",
        commands=(("prep",), ("mpv", "$url")),
        concurrent=True,
        watchphrase="Video",
        command_to_watch=1,
    )
    armed = threading.Event()
    result = run_chain(chain, _run(), armed=armed, launcher=launcher)

    assert captures == [False, True]
    assert result.armed is armed
    assert armed.wait(2.0)


def test_watched_command_that_never_starts_still_arms() -> None:
    def launcher(argv: list[str], capture: bool) -> FakeProcess:
        raise FileNotFoundError(argv[0])

    chain = CommandChain(
        "watched",
        commands=(("mpv", "$url"),),
        watchphrase="Video",
        command_to_watch=0,
    )
    armed = threading.Event()
    result = run_chain(chain, _run(), armed=armed, launcher=launcher)

    assert armed.is_set()
    assert result.state == ChainState.FAILED


def test_monitor_output_arms_on_marker() -> None:
    class Stream:
        def __init__(self) -> None:
            self.seen: list[str] = []

        def __iter__(self):
            for line in ["starting\n", "(+) Video --vid=1\n", "AV: 00:00:01\n"]:
                self.seen.append(line)
                yield line

    stream = Stream()
    armed = threading.Event()
    monitor_output(stream, "Video", armed)
    assert armed.is_set()
    assert len(stream.seen) == 3


def test_monitor_output_arms_when_stream_closes() -> None:
    armed = threading.Event()
    monitor_output(io.StringIO("nothing useful\n"), "Video", armed)
    assert armed.is_set()


def test_monitor_output_without_stream() -> None:
    armed = threading.Event()
    monitor_output(None, "Video", armed)
    assert armed.is_set()


def test_failed_download_is_attempted_once_per_run() -> None:
    downloads: list[str] = []
    launched: list[list[str]] = []

    def downloader(url: str, title: str) -> Path:
        downloads.append(url)
        raise CatalogError("playlist unavailable")

    def launcher(argv: list[str], capture: bool) -> FakeProcess:
        launched.append(argv)
        return FakeProcess(argv[0], [])

    chain = CommandChain(
        "files",
        commands=(("a", "$file"), ("b", "$file"), ("c", "$file"), ("d", "$url")),
    )
    run = CommandRun("http://x/y.m3u8", "Race", downloader=downloader)
    result = run_chain(chain, run, launcher=launcher)

    assert downloads == ["http://x/y.m3u8"]
    assert launched == [["d", "http://x/y.m3u8"]]
    assert len(result.errors) == 3
    assert result.state == ChainState.FAILED


def test_invalid_argument_launch_error_continues() -> None:
    launched: list[list[str]] = []

    def launcher(argv: list[str], capture: bool) -> FakeProcess:
        if any("\x00" in token for token in argv):
            raise ValueError("embedded null byte")
        launched.append(argv)
        return FakeProcess(argv[0], [])

    chain = CommandChain("seq", commands=(("true", "bad\x00arg"), ("echo", "$url")))
    result = run_chain(chain, _run(), launcher=launcher)

    assert launched == [["echo", "http://x/y.m3u8"]]
    assert result.state == ChainState.FAILED
    assert "embedded null byte" in result.errors[0]


def test_real_launcher_rejects_null_byte_without_stopping_chain() -> None:
    chain = CommandChain("seq", commands=(("true", "bad\x00arg"),))
    result = run_chain(chain, _run())
    assert result.launched == []
    assert result.state == ChainState.FAILED
