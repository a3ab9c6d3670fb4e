"""Global hotkeys based on pynput: one key toggles listening, Escape cancels."""

from __future__ import annotations

import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore

CANCEL_KEY = "Key.esc"


class GlobalHotkeyAdapter:
    def __init__(self, hotkey_name: str = "Key.alt_r", cancel_key_name: str = CANCEL_KEY) -> None:
        self._hotkey_name = hotkey_name
        self._cancel_key_name = cancel_key_name
        self._listener: Optional[object] = None
        self._held = False
        self._lock = threading.Lock()

    def start(self, on_toggle: Callable[[], None], on_cancel: Callable[[], None]) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        self._listener = keyboard.Listener(
            on_press=lambda key: self._handle_press(str(key), on_toggle, on_cancel),
            on_release=lambda key: self._handle_release(str(key)),
        )
        self._listener.start()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None

    def _handle_press(
        self,
        key_name: str,
        on_toggle: Callable[[], None],
        on_cancel: Callable[[], None],
    ) -> None:
        if key_name == self._cancel_key_name:
            on_cancel()
            return
        if key_name != self._hotkey_name:
            return
        # key repeat delivers press events while held; toggle once per press
        with self._lock:
            if self._held:
                return
            self._held = True
        on_toggle()

    def _handle_release(self, key_name: str) -> None:
        if key_name != self._hotkey_name:
            return
        with self._lock:
            self._held = False
