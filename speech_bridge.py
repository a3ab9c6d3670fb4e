"""Desktop speech bridge: microphone capture plus periodic DashScope passes.

qwen3-asr-flash only recognises complete clips, so while listening the
worker re-transcribes everything captured so far every ``poll_interval_s``
and reports the text as a transcription event.  Once the speaker goes quiet
consecutive passes return the same text; the session controller relies on
that to detect silence.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from models import BridgeEvent, BridgeEventKind
from recognizer import DashscopeTranscriber, TranscriptionError
from recorder import SoundDeviceRecorder

logger = logging.getLogger(__name__)

EventCallback = Callable[[BridgeEvent], None]


class DashscopeSpeechBridge:
    def __init__(
        self,
        recorder: Optional[SoundDeviceRecorder] = None,
        transcriber: Optional[DashscopeTranscriber] = None,
        api_key: str = "",
        poll_interval_s: float = 0.8,
    ) -> None:
        self._recorder = recorder or SoundDeviceRecorder()
        self._transcriber = transcriber or DashscopeTranscriber(api_key=api_key)
        self._poll_interval_s = poll_interval_s
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._on_event: Optional[EventCallback] = None

    def is_available(self) -> bool:
        return self._recorder.is_available() and self._transcriber.is_configured()

    def request_permission(self) -> bool:
        return self._recorder.has_input_device()

    def start(self, on_event: EventCallback) -> bool:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return True
            try:
                self._recorder.start()
            except Exception as exc:
                logger.warning("microphone failed to start: %s", exc)
                return False
            # per-session stop event and callback; stale workers stay mute
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._on_event = on_event
            self._thread = threading.Thread(
                target=self._worker,
                args=(stop_event, on_event),
                daemon=True,
            )
            self._thread.start()
        on_event(BridgeEvent(kind=BridgeEventKind.STATE_CHANGE.value, state="listening"))
        return True

    def stop(self) -> None:
        with self._lock:
            thread, self._thread = self._thread, None
            on_event, self._on_event = self._on_event, None
            self._stop_event.set()
        self._recorder.stop()
        if thread is None:
            return
        if thread is not threading.current_thread() and thread.is_alive():
            thread.join(timeout=0.5)
        if on_event is not None:
            on_event(BridgeEvent(kind=BridgeEventKind.STATE_CHANGE.value, state="idle"))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _worker(self, stop_event: threading.Event, on_event: EventCallback) -> None:
        while not stop_event.wait(self._poll_interval_s):
            pcm = self._recorder.snapshot()
            if not pcm:
                continue
            try:
                text = self._transcriber.transcribe(
                    pcm,
                    self._recorder.sample_rate,
                    self._recorder.channels,
                    cancelled=stop_event.is_set,
                )
            except TranscriptionError as exc:
                self._emit(
                    stop_event,
                    on_event,
                    BridgeEvent(
                        kind=BridgeEventKind.ERROR.value,
                        code=exc.code,
                        message=exc.message,
                    ),
                )
                return
            if stop_event.is_set():
                return
            if text:
                self._emit(stop_event, on_event, BridgeEvent(kind=BridgeEventKind.TRANSCRIPTION.value, text=text))

    def _emit(self, stop_event: threading.Event, on_event: EventCallback, event: BridgeEvent) -> None:
        with self._lock:
            current = self._thread is threading.current_thread() and not stop_event.is_set()
        if current:
            on_event(event)
