"""Simple JSON-based config store."""

from __future__ import annotations

import json
from pathlib import Path

from session_controller import DEFAULT_SILENCE_TIMEOUT_S

DEFAULT_HOTKEY = "Key.alt_r"


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "pdf_pages_voice" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        return str(self._read_all().get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        self._update("api_key", key)

    def get_hotkey(self) -> str:
        return str(self._read_all().get("hotkey", DEFAULT_HOTKEY))

    def set_hotkey(self, hotkey: str) -> None:
        self._update("hotkey", hotkey)

    def get_silence_timeout_s(self) -> float:
        value = self._read_all().get("silence_timeout_s", DEFAULT_SILENCE_TIMEOUT_S)
        try:
            timeout = float(value)
        except (TypeError, ValueError):
            return DEFAULT_SILENCE_TIMEOUT_S
        return timeout if timeout > 0 else DEFAULT_SILENCE_TIMEOUT_S

    def set_silence_timeout_s(self, seconds: float) -> None:
        self._update("silence_timeout_s", float(seconds))

    def recents_path(self) -> Path:
        return self._path.parent / "recents.json"

    def _update(self, key: str, value: object) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
