"""Microphone recorder that buffers one utterance of PCM audio."""

from __future__ import annotations

import threading
from typing import Any

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore


class SoundDeviceRecorder:
    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
        max_seconds: float = 30.0,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self._max_bytes = int(sample_rate * channels * 2 * max_seconds)
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()
        self._buffer = bytearray()
        self.dropped_chunks = 0

    @property
    def running(self) -> bool:
        return self._running

    def is_available(self) -> bool:
        return sd is not None and np is not None

    def has_input_device(self) -> bool:
        """Probe the default input device; False when access is refused."""
        if sd is None:
            return False
        try:
            sd.query_devices(kind="input")
            sd.check_input_settings(samplerate=self.sample_rate, channels=self.channels, dtype="int16")
        except Exception:
            return False
        return True

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            self._buffer = bytearray()
            self.dropped_chunks = 0
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=blocksize,
                callback=self._on_audio,
            )
            self._stream.start()
            self._running = True

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            stream, self._stream = self._stream, None
        if stream is not None:
            stream.stop()
            stream.close()

    def snapshot(self) -> bytes:
        """Everything captured since start()."""
        with self._lock:
            return bytes(self._buffer)

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if not self._running or np is None:
            return
        payload = np.asarray(indata, dtype=np.int16).tobytes()
        with self._lock:
            if len(self._buffer) + len(payload) > self._max_bytes:
                self.dropped_chunks += 1
                return
            self._buffer.extend(payload)
