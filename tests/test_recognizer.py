"""Tests for DashscopeTranscriber."""

from __future__ import annotations

import base64
from unittest.mock import MagicMock, patch

import pytest

from errors import AUTH_FAILED, BRIDGE_ERROR, NETWORK_ERROR
from recognizer import DashscopeTranscriber, TranscriptionError, _pcm_to_wav_base64

PCM = b"\x00\x00" * 1600


def _chunk(text: str) -> dict:
    return {"status_code": 200, "output": {"choices": [{"message": {"content": [{"text": text}]}}]}}


def _fake_streaming_response():
    """Simulate dashscope streaming chunks."""
    yield _chunk("pages")
    yield _chunk("pages one to")
    yield {"output": {"choices": []}}
    yield _chunk("pages one to three ")


# ---------------------------------------------------------------
# _pcm_to_wav_base64
# ---------------------------------------------------------------

def test_pcm_to_wav_base64_produces_valid_base64() -> None:
    result = _pcm_to_wav_base64(PCM, sample_rate=16000, channels=1)
    decoded = base64.b64decode(result)
    assert decoded[:4] == b"RIFF"


# ---------------------------------------------------------------
# Guards
# ---------------------------------------------------------------

def test_empty_audio_returns_empty_text() -> None:
    assert DashscopeTranscriber(api_key="test-key").transcribe(b"") == ""


@patch("recognizer.dashscope", MagicMock())
@patch.dict("os.environ", {"DASHSCOPE_API_KEY": ""}, clear=False)
def test_missing_api_key_raises_auth_failed() -> None:
    transcriber = DashscopeTranscriber(api_key="")
    assert not transcriber.is_configured()
    with pytest.raises(TranscriptionError) as info:
        transcriber.transcribe(PCM)
    assert info.value.code == AUTH_FAILED


@patch("recognizer.dashscope", MagicMock())
@patch.dict("os.environ", {"DASHSCOPE_API_KEY": "env-key"}, clear=False)
def test_api_key_falls_back_to_environment() -> None:
    transcriber = DashscopeTranscriber(api_key="")
    assert transcriber.api_key() == "env-key"
    assert transcriber.is_configured()


@patch("recognizer.dashscope", None)
def test_missing_sdk_raises_bridge_error() -> None:
    with pytest.raises(TranscriptionError) as info:
        DashscopeTranscriber(api_key="k").transcribe(PCM)
    assert info.value.code == BRIDGE_ERROR


# ---------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------

@patch("recognizer.dashscope")
def test_returns_latest_streamed_text(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = _fake_streaming_response()

    text = DashscopeTranscriber(api_key="test-key").transcribe(PCM)

    assert text == "pages one to three"
    kwargs = mock_ds.MultiModalConversation.call.call_args.kwargs
    assert kwargs["model"] == "qwen3-asr-flash"
    assert kwargs["stream"] is True
    assert kwargs["api_key"] == "test-key"


@patch("recognizer.dashscope")
def test_cancelled_stream_returns_empty(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = _fake_streaming_response()

    text = DashscopeTranscriber(api_key="test-key").transcribe(PCM, cancelled=lambda: True)

    assert text == ""


@patch("recognizer.dashscope")
def test_error_status_in_stream_is_raised(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = iter(
        [{"status_code": 401, "message": "Invalid API-key provided."}]
    )

    with pytest.raises(TranscriptionError) as info:
        DashscopeTranscriber(api_key="bad").transcribe(PCM)
    assert info.value.code == AUTH_FAILED
    assert info.value.retryable is False


@patch("recognizer.dashscope")
def test_server_error_status_is_retryable(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = iter([{"status_code": 500, "message": ""}])

    with pytest.raises(TranscriptionError) as info:
        DashscopeTranscriber(api_key="k").transcribe(PCM)
    assert info.value.code == BRIDGE_ERROR
    assert info.value.message == "status 500"
    assert info.value.retryable


# ---------------------------------------------------------------
# Exception mapping
# ---------------------------------------------------------------

@pytest.mark.parametrize(
    "exc, code",
    [
        (ConnectionError("network timeout"), NETWORK_ERROR),
        (RuntimeError("401 Unauthorized"), AUTH_FAILED),
        (ValueError("unexpected payload"), BRIDGE_ERROR),
    ],
)
@patch("recognizer.dashscope")
def test_sdk_exceptions_are_mapped(mock_ds: MagicMock, exc: Exception, code: str) -> None:
    mock_ds.MultiModalConversation.call.side_effect = exc

    with pytest.raises(TranscriptionError) as info:
        DashscopeTranscriber(api_key="k").transcribe(PCM)
    assert info.value.code == code
