"""Speech-to-text using DashScope qwen3-asr-flash.

The model accepts complete audio (file path, URL, or base64) and streams
back recognition results with ``stream=True``.  ``transcribe`` wraps the
buffered PCM in a WAV container, sends it, and returns the last text the
stream produced.
"""

from __future__ import annotations

import base64
import io
import os
import wave
from typing import Callable, Optional

from errors import AUTH_FAILED, BRIDGE_ERROR, NETWORK_ERROR

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore


class TranscriptionError(Exception):
    def __init__(self, code: str, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.retryable = retryable


def _pcm_to_wav_base64(
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> str:
    """Convert raw PCM bytes to a base64-encoded WAV string."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return base64.b64encode(buf.getvalue()).decode("ascii")


class DashscopeTranscriber:
    def __init__(
        self,
        api_key: str,
        model: str = "qwen3-asr-flash",
        request_timeout_s: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._request_timeout_s = request_timeout_s

    def api_key(self) -> str:
        return self._api_key or os.getenv("DASHSCOPE_API_KEY", "")

    def is_configured(self) -> bool:
        return dashscope is not None and bool(self.api_key())

    def transcribe(
        self,
        pcm: bytes,
        sample_rate: int = 16000,
        channels: int = 1,
        cancelled: Optional[Callable[[], bool]] = None,
    ) -> str:
        """Recognise ``pcm``; returns "" for empty audio or a cancelled stream."""
        if not pcm:
            return ""
        if dashscope is None:
            raise TranscriptionError(BRIDGE_ERROR, "dashscope is not installed")
        api_key = self.api_key()
        if not api_key:
            raise TranscriptionError(AUTH_FAILED, "No API key configured")

        wav_b64 = _pcm_to_wav_base64(pcm, sample_rate, channels)
        try:
            response = dashscope.MultiModalConversation.call(
                api_key=api_key,
                model=self._model,
                messages=[
                    {"role": "system", "content": [{"text": ""}]},
                    {"role": "user", "content": [{"audio": wav_b64}]},
                ],
                result_format="message",
                asr_options={"enable_itn": True, "language": "en"},
                stream=True,
                timeout=self._request_timeout_s,
            )
            latest_text = ""
            for chunk in response:
                if cancelled is not None and cancelled():
                    return ""
                text = self._extract_text(chunk)
                if text:
                    latest_text = text
        except TranscriptionError:
            raise
        except Exception as exc:
            raise self._to_error(exc) from exc
        return latest_text.strip()

    def _extract_text(self, chunk: object) -> str:
        """Pull text from a dashscope streaming chunk dict."""
        if not isinstance(chunk, dict):
            return ""
        status = chunk.get("status_code")
        if status is not None and status != 200:
            raise TranscriptionError(
                AUTH_FAILED if status == 401 else BRIDGE_ERROR,
                str(chunk.get("message") or f"status {status}"),
                retryable=status != 401,
            )
        output = chunk.get("output") or {}
        choices = output.get("choices") or []
        if not choices:
            return ""
        content = (choices[0].get("message") or {}).get("content") or []
        if not content or not isinstance(content[0], dict):
            return ""
        return str(content[0].get("text", ""))

    def _to_error(self, exc: Exception) -> TranscriptionError:
        """Map an SDK/network exception to a coded error."""
        message = str(exc)
        low = message.lower()
        if "401" in low or "auth" in low or "api key" in low:
            return TranscriptionError(AUTH_FAILED, message, retryable=False)
        if "timeout" in low or "network" in low or "connection" in low:
            return TranscriptionError(NETWORK_ERROR, message, retryable=True)
        return TranscriptionError(BRIDGE_ERROR, message, retryable=True)
