from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Protocol


STATE_VERSION = 1


def _user_state_dir(app_name: str = "polytherm") -> Path:
    """
    Return an OS-appropriate user data directory.

    - macOS: ~/Library/Application Support/<app_name>/
    - Linux/Unix: ~/.config/<app_name>/
    - Windows: %APPDATA%\\<app_name>\\  (best-effort; not primary target)
    """
    home = Path.home()
    plat = sys.platform.lower()

    if plat == "darwin":
        return home / "Library" / "Application Support" / app_name

    if plat.startswith("win"):
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / app_name
        return home / app_name

    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else (home / ".config")
    return base / app_name


def default_state_path() -> Path:
    return _user_state_dir("polytherm") / "state.json"


def load_snapshot(path: Optional[Path] = None) -> Optional[Dict[str, Any]]:
    """
    Read a persisted state snapshot.

    Returns None when the file is missing, unreadable or not a JSON object.
    """
    p = Path(path) if path is not None else default_state_path()
    if not p.exists():
        return None
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    data.pop("version", None)
    return data


def save_snapshot(snapshot: Dict[str, Any], path: Optional[Path] = None) -> Path:
    p = Path(path) if path is not None else default_state_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    payload = {"version": STATE_VERSION, **snapshot}
    p.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    return p


class StateRepository(Protocol):
    def load(self) -> Optional[Dict[str, Any]]: ...

    def save(self, snapshot: Dict[str, Any]) -> None: ...


class JsonStateRepository:
    """StateRepository backed by one JSON file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else default_state_path()

    def load(self) -> Optional[Dict[str, Any]]:
        return load_snapshot(self.path)

    def save(self, snapshot: Dict[str, Any]) -> None:
        save_snapshot(snapshot, self.path)
