from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Callable

from .config import CommandChain
from .templating import CommandRun, expand_command

logger = logging.getLogger(__name__)

Launcher = Callable[[list[str], bool], subprocess.Popen[str]]


class ChainState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ChainResult:
    state: ChainState = ChainState.IDLE
    launched: list[list[str]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    armed: threading.Event | None = None


def run_chain(
    chain: CommandChain,
    run: CommandRun,
    *,
    armed: threading.Event | None = None,
    launcher: Launcher | None = None,
) -> ChainResult:
    launcher = launcher or _launch
    watch_index = chain.watch_index
    if watch_index is not None and armed is None:
        armed = threading.Event()
    result = ChainResult(state=ChainState.RUNNING, armed=armed)
    monitoring = False

    try:
        for index, command in enumerate(chain.commands):
            if not command:
                continue
            watched = index == watch_index
            try:
                argv = expand_command(command, run)
            except (OSError, RuntimeError, ValueError) as exc:
                _record_error(result, f"Failed to prepare {command[0]}: {exc}")
                continue

            logger.info("starting: %s", " ".join(argv))
            try:
                process = launcher(argv, watched)
            except (OSError, ValueError, TypeError) as exc:
                _record_error(result, f"Failed to start {argv[0]}: {exc}")
                continue
            result.launched.append(argv)

            if watched and armed is not None and chain.watchphrase:
                _start_monitor(process.stdout, chain.watchphrase, armed)
                monitoring = True

            if not chain.concurrent:
                returncode = process.wait()
                if returncode != 0:
                    _record_error(result, f"{argv[0]} exited with code {returncode}")
    finally:
        # a watched command that never launched counts as already finished
        if armed is not None and not monitoring:
            armed.set()

    result.state = ChainState.FAILED if result.errors else ChainState.COMPLETED
    return result


def monitor_output(stream: IO[str] | None, watchphrase: str, armed: threading.Event) -> None:
    if stream is None:
        armed.set()
        return
    try:
        for line in stream:
            if armed.is_set():
                # keep draining so the child never blocks on a full pipe
                continue
            text = line.rstrip("\r\n")
            logger.debug("%s", text)
            if watchphrase in text:
                armed.set()
    except (OSError, ValueError) as exc:
        logger.debug("Output monitor stopped: %s", exc)
    finally:
        armed.set()


def _start_monitor(stream: IO[str] | None, watchphrase: str, armed: threading.Event) -> None:
    threading.Thread(
        target=monitor_output,
        args=(stream, watchphrase, armed),
        daemon=True,
    ).start()


def _record_error(result: ChainResult, message: str) -> None:
    logger.error("%s", message)
    result.errors.append(message)


def _launch(argv: list[str], capture_output: bool) -> subprocess.Popen[str]:
    if capture_output:
        return subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
        )
    return subprocess.Popen(
        argv,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        text=True,
    )
