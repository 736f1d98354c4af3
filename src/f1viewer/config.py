from __future__ import annotations

import contextlib
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .paths import config_path

DEFAULT_LANGUAGE = "en"


@dataclass(frozen=True)
class CommandChain:
    title: str
    commands: tuple[tuple[str, ...], ...] = ()
    concurrent: bool = False
    watchphrase: str | None = None
    command_to_watch: int = -1

    @property
    def watch_index(self) -> int | None:
        if not self.watchphrase:
            return None
        if 0 <= self.command_to_watch < len(self.commands):
            return self.command_to_watch
        return None


@dataclass
class AppConfig:
    preferred_language: str = DEFAULT_LANGUAGE
    check_updates: bool = True
    custom_playback_options: list[CommandChain] = field(default_factory=list)


def load_config(path: Path | None = None) -> tuple[AppConfig, str | None]:
    path = path or config_path()
    data, error = _read_object(path)
    if data is None:
        return AppConfig(), error
    return _parse_config_data(data), None


def save_config(config: AppConfig, path: Path | None = None) -> str | None:
    path = path or config_path()
    text = json.dumps(_config_to_dict(config), ensure_ascii=True, indent=2) + "\n"
    # the previous file stays in place until os.replace succeeds
    staging = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        staging.write_text(text, encoding="utf-8")
        os.replace(staging, path)
    except OSError as exc:
        with contextlib.suppress(OSError):
            staging.unlink()
        return f"Failed to save config: {path} ({exc})"
    return None


def _read_object(path: Path) -> tuple[dict[str, Any] | None, str | None]:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}, None
    except OSError as exc:
        return None, f"Failed to read config: {path} ({exc})"
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        return None, f"Config file is not valid JSON: {path} (line {exc.lineno})"
    if not isinstance(data, dict):
        return None, f"Config file must be a JSON object: {path}"
    return data, None


def _parse_config_data(data: dict[str, Any]) -> AppConfig:
    language = _as_str(data.get("preferred_language")) or DEFAULT_LANGUAGE
    check_updates = _flag(data.get("check_updates"), default=True)
    options = data.get("custom_playback_options")
    chains: list[CommandChain] = []
    if isinstance(options, list):
        for entry in options:
            chain = _parse_chain(entry)
            if chain is not None:
                chains.append(chain)
    return AppConfig(
        preferred_language=language,
        check_updates=check_updates,
        custom_playback_options=chains,
    )


def _parse_chain(entry: Any) -> CommandChain | None:
    if not isinstance(entry, dict):
        return None
    title = _as_str(entry.get("title"))
    raw_commands = entry.get("commands")
    if title is None or not isinstance(raw_commands, list):
        return None
    commands: list[tuple[str, ...]] = []
    for raw in raw_commands:
        if isinstance(raw, list) and all(isinstance(token, str) for token in raw):
            commands.append(tuple(raw))
        else:
            # keep positions stable so command_to_watch still lines up
            commands.append(())
    return CommandChain(
        title=title,
        commands=tuple(commands),
        concurrent=_flag(entry.get("concurrent"), default=False),
        watchphrase=_as_str(entry.get("watchphrase")),
        command_to_watch=_position(entry.get("command_to_watch")),
    )


def _config_to_dict(config: AppConfig) -> dict[str, Any]:
    return {
        "preferred_language": config.preferred_language,
        "check_updates": config.check_updates,
        "custom_playback_options": [
            _chain_to_dict(chain) for chain in config.custom_playback_options
        ],
    }


def _chain_to_dict(chain: CommandChain) -> dict[str, Any]:
    data: dict[str, Any] = {
        "title": chain.title,
        "concurrent": chain.concurrent,
        "commands": [list(command) for command in chain.commands],
        "command_to_watch": chain.command_to_watch,
    }
    if chain.watchphrase is not None:
        data["watchphrase"] = chain.watchphrase
    return data


def _as_str(value: Any) -> str | None:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None


def _flag(value: Any, *, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def _position(value: Any) -> int:
    # -1 means no command is watched
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return -1
