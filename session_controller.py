"""State-machine based recognition session orchestration."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from command_parser import parse_command
from dispatcher import CommandDispatcher
from errors import BRIDGE_ERROR, PERMISSION_DENIED, SPEECH_UNAVAILABLE, START_FAILED, message_for
from interfaces import SpeechBridge
from models import BridgeEvent, BridgeEventKind, Command, DispatchResult, RecognitionState, VoiceContext

logger = logging.getLogger(__name__)

StateCallback = Callable[[RecognitionState, RecognitionState], None]
PreviewCallback = Callable[[str, Command], None]
ResultCallback = Callable[[DispatchResult], None]
ErrorCallback = Callable[[str, str], None]
TimerFactory = Callable[[float, Callable[[], None]], Any]

DEFAULT_SILENCE_TIMEOUT_S = 1.5


class SessionController:
    """Runs one listening turn at a time: IDLE -> LISTENING -> PROCESSING -> IDLE.

    Transcripts stream in from the bridge.  Each update is parsed for a live
    preview, and the silence timer is re-armed only when the transcript text
    actually changed, so a bridge repeating the same partial result does not
    keep the session open.  When the timer fires (or ``stop()`` is called)
    the last transcript is parsed once more and dispatched.
    """

    def __init__(
        self,
        bridge: SpeechBridge,
        dispatcher: CommandDispatcher,
        context: VoiceContext = VoiceContext.PAGE_GRID,
        page_count: int = 0,
        silence_timeout_s: float = DEFAULT_SILENCE_TIMEOUT_S,
        no_speech_timeout_s: Optional[float] = None,
        timer_factory: TimerFactory = threading.Timer,
        on_state_change: Optional[StateCallback] = None,
        on_preview: Optional[PreviewCallback] = None,
        on_result: Optional[ResultCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._bridge = bridge
        self._dispatcher = dispatcher
        self._context = context
        self._page_count = page_count
        self._silence_timeout_s = silence_timeout_s
        self._no_speech_timeout_s = no_speech_timeout_s
        self._timer_factory = timer_factory
        self._on_state_change = on_state_change
        self._on_preview = on_preview
        self._on_result = on_result
        self._on_error = on_error

        self._lock = threading.RLock()
        self._state = RecognitionState.IDLE
        self._session_id = 0
        self._timer: Any = None
        self._timer_token = 0
        self._last_transcript = ""
        self.unavailable: Optional[str] = None

    @property
    def state(self) -> RecognitionState:
        return self._state

    @property
    def context(self) -> VoiceContext:
        return self._context

    @property
    def last_transcript(self) -> str:
        return self._last_transcript

    def retarget(self, context: VoiceContext, page_count: int) -> bool:
        """Switch grammar and page count for the next session; only while idle."""
        with self._lock:
            if self._state != RecognitionState.IDLE:
                return False
            self._context = context
            self._page_count = page_count
            self._dispatcher.page_count = page_count
            return True

    def start(self) -> bool:
        with self._lock:
            if self._state == RecognitionState.ERROR:
                self._transition(RecognitionState.IDLE)
            if self._state != RecognitionState.IDLE:
                return False
            if not self._probe(self._bridge.is_available):
                return self._report_unavailable(SPEECH_UNAVAILABLE)
            if not self._probe(self._bridge.request_permission):
                return self._report_unavailable(PERMISSION_DENIED)

            self._session_id += 1
            self._last_transcript = ""
            session_id = self._session_id
            try:
                started = self._bridge.start(
                    lambda event: self._handle_bridge_event(session_id, event)
                )
            except Exception as exc:
                logger.warning("speech bridge failed to start: %s", exc)
                started = False
            if not started:
                return self._report_unavailable(START_FAILED)

            self.unavailable = None
            self._transition(RecognitionState.LISTENING)
            if self._no_speech_timeout_s is not None:
                self._arm_timer(self._no_speech_timeout_s)
            return True

    def stop(self) -> Optional[DispatchResult]:
        with self._lock:
            if self._state != RecognitionState.LISTENING:
                return None
            self._transition(RecognitionState.PROCESSING)
            self._cancel_timer()
            self._safe_stop_bridge()
            transcript = self._last_transcript.strip()
            self._last_transcript = ""
            context = self._context
            page_count = self._page_count

        if not transcript:
            with self._lock:
                self._transition(RecognitionState.IDLE)
            return None

        # Dispatch runs outside the lock; PROCESSING keeps start() out until it returns.
        command = parse_command(transcript, page_count, context)
        result = self._dispatcher.dispatch(command)
        if self._on_result:
            self._on_result(result)
        with self._lock:
            self._transition(RecognitionState.IDLE)
        return result

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()
            self._last_transcript = ""
            if self._state == RecognitionState.IDLE:
                return
            if self._state == RecognitionState.PROCESSING:
                # the in-flight dispatch finishes and returns to IDLE itself
                self._safe_stop_bridge()
                return
            self._session_id += 1
            logger.debug("session cancelled")
            self._transition(RecognitionState.IDLE)
            self._safe_stop_bridge()

    # ------------------------------------------------------------------
    # Bridge events
    # ------------------------------------------------------------------

    def _handle_bridge_event(self, session_id: int, event: BridgeEvent) -> None:
        finalize = False
        with self._lock:
            if session_id != self._session_id or self._state != RecognitionState.LISTENING:
                return
            kind = event.kind
            if kind == BridgeEventKind.TRANSCRIPTION.value:
                self._handle_transcription(event.text)
            elif kind == BridgeEventKind.STATE_CHANGE.value:
                # the engine ended the utterance on its own
                finalize = event.state == "idle"
            elif kind == BridgeEventKind.ERROR.value:
                self._fail(event.code or BRIDGE_ERROR, event.message)
        if finalize:
            self.stop()

    def _handle_transcription(self, text: str) -> None:
        changed = text != self._last_transcript
        self._last_transcript = text
        if changed:
            self._arm_timer(self._silence_timeout_s)
        if self._on_preview:
            self._on_preview(text, parse_command(text, self._page_count, self._context))

    # ------------------------------------------------------------------
    # Silence timer
    # ------------------------------------------------------------------

    def _arm_timer(self, timeout_s: float) -> None:
        self._cancel_timer()
        self._timer_token += 1
        token = self._timer_token
        timer = self._timer_factory(timeout_s, lambda: self._on_timer(token))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, token: int) -> None:
        with self._lock:
            if token != self._timer_token or self._state != RecognitionState.LISTENING:
                return
            self._timer = None
            logger.debug("silence timeout, finalizing %r", self._last_transcript)
        self.stop()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _probe(self, check: Callable[[], bool]) -> bool:
        try:
            return bool(check())
        except Exception as exc:
            logger.warning("speech bridge probe failed: %s", exc)
            return False

    def _report_unavailable(self, code: str) -> bool:
        self.unavailable = code
        self._emit_error(code, message_for(code))
        return False

    def _fail(self, code: str, message: str) -> None:
        logger.warning("speech bridge error %s: %s", code, message)
        self._cancel_timer()
        self._last_transcript = ""
        self._transition(RecognitionState.ERROR)
        self._safe_stop_bridge()
        self._emit_error(code, message or message_for(code))

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _safe_stop_bridge(self) -> None:
        try:
            self._bridge.stop()
        except Exception as exc:  # pragma: no cover
            logger.debug("speech bridge stop failed: %s", exc)

    def _transition(self, to_state: RecognitionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("session %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
