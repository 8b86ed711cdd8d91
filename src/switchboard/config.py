"""Settings and handler configuration files."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from switchboard.errors import ConfigError

DEFAULT_TIMEOUT = 30.0  # seconds per handler invocation
DEFAULT_HINT_WEIGHT = 2.0


@dataclass
class Settings:
    """Runtime settings for the router."""

    data_dir: Path
    default_timeout: float = DEFAULT_TIMEOUT
    hint_weight: float = DEFAULT_HINT_WEIGHT

    @property
    def handlers_file(self) -> Path:
        return self.data_dir / "handlers.toml"

    @property
    def ledger_path(self) -> Path:
        return self.data_dir / "data" / "ledger.db"

    @classmethod
    def from_env(cls, data_dir: Path | None = None) -> Settings:
        """Build settings from SWITCHBOARD_HOME / SWITCHBOARD_TIMEOUT."""
        home = data_dir or Path(
            os.environ.get("SWITCHBOARD_HOME", str(Path.home() / ".switchboard"))
        )
        raw_timeout = os.environ.get("SWITCHBOARD_TIMEOUT")
        try:
            timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
        except ValueError as e:
            raise ConfigError(f"SWITCHBOARD_TIMEOUT must be a number, got {raw_timeout!r}") from e
        if timeout <= 0:
            raise ConfigError(f"SWITCHBOARD_TIMEOUT must be > 0, got {timeout}")
        return cls(data_dir=home, default_timeout=timeout)


def load_handler_config(path: Path) -> list[dict[str, Any]]:
    """Read ``[[handlers]]`` entries from a TOML file."""
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    entries = data.get("handlers", [])
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise ConfigError(f"{path}: 'handlers' must be an array of tables")
    return entries


_TOML_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def _toml_string(value: str) -> str:
    out = []
    for ch in value:
        if ch in _TOML_ESCAPES:
            out.append(_TOML_ESCAPES[ch])
        elif ch < " " or ch == "\x7f":
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return _toml_string(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        items = sorted(value) if isinstance(value, (set, frozenset)) else list(value)
        return "[" + ", ".join(_toml_value(v) for v in items) + "]"
    raise ConfigError(f"Cannot write {type(value).__name__} to TOML")


def dump_handler_config(entries: Iterable[Mapping[str, Any]], path: Path) -> None:
    """Write handler entries as ``[[handlers]]`` tables."""
    blocks = []
    for entry in entries:
        lines = ["[[handlers]]"]
        for key, value in entry.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple, set, frozenset)) and not value:
                continue
            lines.append(f"{key} = {_toml_value(value)}")
        blocks.append("\n".join(lines))

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n\n".join(blocks) + "\n")
