from __future__ import annotations

import threading
from typing import Callable, List, Optional, Tuple

from dispatcher import CommandDispatcher
from errors import NETWORK_ERROR, PERMISSION_DENIED, SPEECH_UNAVAILABLE, START_FAILED
from models import (
    BridgeEvent,
    BridgeEventKind,
    Command,
    DispatchResult,
    RecognitionState,
    SelectPages,
    VoiceContext,
)
from selection import SelectionStore
from session_controller import SessionController


class FakeBridge:
    def __init__(self, available: bool = True, permitted: bool = True, starts: bool = True) -> None:
        self.available = available
        self.permitted = permitted
        self.starts = starts
        self.on_event: Optional[Callable[[BridgeEvent], None]] = None
        self.start_calls = 0
        self.stop_calls = 0

    def is_available(self) -> bool:
        return self.available

    def request_permission(self) -> bool:
        return self.permitted

    def start(self, on_event: Callable[[BridgeEvent], None]) -> bool:
        self.start_calls += 1
        self.on_event = on_event
        return self.starts

    def stop(self) -> None:
        self.stop_calls += 1

    def say(self, text: str) -> None:
        assert self.on_event is not None
        self.on_event(BridgeEvent(kind=BridgeEventKind.TRANSCRIPTION.value, text=text))

    def state(self, state: str) -> None:
        assert self.on_event is not None
        self.on_event(BridgeEvent(kind=BridgeEventKind.STATE_CHANGE.value, state=state))

    def error(self, code: str, message: str) -> None:
        assert self.on_event is not None
        self.on_event(BridgeEvent(kind=BridgeEventKind.ERROR.value, code=code, message=message))


class FakeTimer:
    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.callback()


class TimerFactory:
    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> FakeTimer:
        return self.timers[-1]


def _controller(bridge: FakeBridge, timers: TimerFactory, **kwargs) -> Tuple[SessionController, SelectionStore]:
    selection = SelectionStore()
    dispatcher = CommandDispatcher(page_count=10, selection=selection)
    kwargs.setdefault("context", VoiceContext.PAGE_GRID)
    kwargs.setdefault("page_count", 10)
    controller = SessionController(
        bridge=bridge,
        dispatcher=dispatcher,
        timer_factory=timers,
        **kwargs,
    )
    return controller, selection


def test_happy_path_dispatches_after_silence() -> None:
    bridge = FakeBridge()
    timers = TimerFactory()
    transitions: List[Tuple[RecognitionState, RecognitionState]] = []
    results: List[DispatchResult] = []
    controller, selection = _controller(
        bridge,
        timers,
        on_state_change=lambda f, t: transitions.append((f, t)),
        on_result=results.append,
    )

    assert controller.start() is True
    assert controller.state == RecognitionState.LISTENING

    bridge.say("pages one to three")
    timers.last.fire()

    assert controller.state == RecognitionState.IDLE
    assert selection.selected == {1, 2, 3}
    assert results == [DispatchResult(True, "Selected 3 pages", True)]
    assert [t for _, t in transitions] == [
        RecognitionState.LISTENING,
        RecognitionState.PROCESSING,
        RecognitionState.IDLE,
    ]
    assert bridge.stop_calls == 1


def test_identical_transcript_does_not_rearm_timer() -> None:
    bridge = FakeBridge()
    timers = TimerFactory()
    controller, _ = _controller(bridge, timers, silence_timeout_s=1.5)
    controller.start()

    bridge.say("page five")
    bridge.say("page five")
    assert len(timers.timers) == 1
    assert timers.last.interval == 1.5
    assert timers.last.daemon is True

    bridge.say("page five six")
    assert len(timers.timers) == 2
    assert timers.timers[0].cancelled is True


def test_stale_timer_is_ignored() -> None:
    bridge = FakeBridge()
    timers = TimerFactory()
    controller, _ = _controller(bridge, timers)
    controller.start()

    bridge.say("page")
    first = timers.last
    bridge.say("page five")
    first.fire()

    assert controller.state == RecognitionState.LISTENING


def test_preview_is_parsed_for_each_update() -> None:
    bridge = FakeBridge()
    previews: List[Tuple[str, Command]] = []
    controller, _ = _controller(bridge, TimerFactory(), on_preview=lambda t, c: previews.append((t, c)))
    controller.start()

    bridge.say("page 2")
    bridge.say("page 2")

    assert previews == [("page 2", SelectPages(frozenset({2})))] * 2


def test_start_rejected_when_not_idle() -> None:
    bridge = FakeBridge()
    controller, _ = _controller(bridge, TimerFactory())
    assert controller.start() is True
    assert controller.start() is False
    assert bridge.start_calls == 1


def test_unavailable_speech_is_reported() -> None:
    errors: List[Tuple[str, str]] = []
    controller, _ = _controller(FakeBridge(available=False), TimerFactory(), on_error=lambda c, m: errors.append((c, m)))

    assert controller.start() is False
    assert controller.state == RecognitionState.IDLE
    assert controller.unavailable == SPEECH_UNAVAILABLE
    assert errors == [(SPEECH_UNAVAILABLE, "Speech not available")]


def test_permission_denied_is_reported() -> None:
    bridge = FakeBridge(permitted=False)
    controller, _ = _controller(bridge, TimerFactory())

    assert controller.start() is False
    assert controller.unavailable == PERMISSION_DENIED
    assert bridge.start_calls == 0


def test_bridge_refusing_to_start_stays_idle() -> None:
    errors: List[str] = []
    controller, _ = _controller(FakeBridge(starts=False), TimerFactory(), on_error=lambda c, m: errors.append(c))

    assert controller.start() is False
    assert controller.state == RecognitionState.IDLE
    assert errors == [START_FAILED]


def test_successful_start_clears_unavailable() -> None:
    bridge = FakeBridge(permitted=False)
    controller, _ = _controller(bridge, TimerFactory())
    controller.start()
    bridge.permitted = True

    assert controller.start() is True
    assert controller.unavailable is None


def test_error_event_moves_to_error_and_start_recovers() -> None:
    bridge = FakeBridge()
    timers = TimerFactory()
    errors: List[Tuple[str, str]] = []
    controller, selection = _controller(bridge, timers, on_error=lambda c, m: errors.append((c, m)))
    controller.start()
    bridge.say("page 3")

    bridge.error(NETWORK_ERROR, "connection reset")

    assert controller.state == RecognitionState.ERROR
    assert errors == [(NETWORK_ERROR, "connection reset")]
    assert timers.last.cancelled is True
    assert selection.selected == frozenset()

    assert controller.start() is True
    assert controller.state == RecognitionState.LISTENING


def test_cancel_discards_transcript() -> None:
    bridge = FakeBridge()
    timers = TimerFactory()
    results: List[DispatchResult] = []
    controller, selection = _controller(bridge, timers, on_result=results.append)
    controller.start()
    bridge.say("page 4")

    controller.cancel()
    timers.last.fire()

    assert controller.state == RecognitionState.IDLE
    assert controller.last_transcript == ""
    assert results == []
    assert selection.selected == frozenset()


def test_events_from_cancelled_session_are_ignored() -> None:
    bridge = FakeBridge()
    controller, _ = _controller(bridge, TimerFactory())
    controller.start()
    stale = bridge.on_event
    controller.cancel()
    controller.start()

    assert stale is not None
    stale(BridgeEvent(kind=BridgeEventKind.TRANSCRIPTION.value, text="page 9"))
    assert controller.last_transcript == ""


def test_cancel_when_idle_is_noop() -> None:
    bridge = FakeBridge()
    controller, _ = _controller(bridge, TimerFactory())
    controller.cancel()
    assert controller.state == RecognitionState.IDLE
    assert bridge.stop_calls == 0


def test_cancel_during_processing_lets_dispatch_finish() -> None:
    bridge = FakeBridge()
    controller, selection = _controller(bridge, TimerFactory())
    controller.start()
    bridge.say("page 6")

    seen: List[RecognitionState] = []

    def on_result(result: DispatchResult) -> None:
        controller.cancel()
        seen.append(controller.state)

    controller._on_result = on_result
    result = controller.stop()

    assert result is not None and result.success
    assert seen == [RecognitionState.PROCESSING]
    assert controller.state == RecognitionState.IDLE
    assert selection.selected == {6}


def test_empty_transcript_returns_to_idle_without_dispatch() -> None:
    results: List[DispatchResult] = []
    controller, _ = _controller(FakeBridge(), TimerFactory(), on_result=results.append)
    controller.start()

    assert controller.stop() is None
    assert controller.state == RecognitionState.IDLE
    assert results == []


def test_bridge_going_idle_finalizes() -> None:
    bridge = FakeBridge()
    controller, selection = _controller(bridge, TimerFactory())
    controller.start()
    bridge.say("odd pages")

    bridge.state("idle")

    assert controller.state == RecognitionState.IDLE
    assert selection.selected == {1, 3, 5, 7, 9}


def test_no_speech_timeout_is_armed_on_start() -> None:
    timers = TimerFactory()
    controller, _ = _controller(FakeBridge(), timers, no_speech_timeout_s=8.0)
    controller.start()

    assert timers.last.interval == 8.0
    timers.last.fire()
    assert controller.state == RecognitionState.IDLE


def test_retarget_only_while_idle() -> None:
    bridge = FakeBridge()
    controller, _ = _controller(bridge, TimerFactory())

    assert controller.retarget(VoiceContext.HOME, 0) is True
    assert controller.context == VoiceContext.HOME

    controller.start()
    assert controller.retarget(VoiceContext.PAGE_GRID, 4) is False
    assert controller.context == VoiceContext.HOME


def test_home_context_uses_home_grammar() -> None:
    bridge = FakeBridge()
    previews: List[Command] = []
    controller, _ = _controller(
        bridge,
        TimerFactory(),
        context=VoiceContext.HOME,
        page_count=0,
        on_preview=lambda t, c: previews.append(c),
    )
    controller.start()
    bridge.say("pages 1 to 3")

    assert type(previews[0]).__name__ == "Unrecognized"


def test_real_timer_finalizes() -> None:
    bridge = FakeBridge()
    done = threading.Event()
    results: List[DispatchResult] = []

    def on_result(result: DispatchResult) -> None:
        results.append(result)
        done.set()

    selection = SelectionStore()
    controller = SessionController(
        bridge=bridge,
        dispatcher=CommandDispatcher(page_count=5, selection=selection),
        page_count=5,
        silence_timeout_s=0.05,
        on_result=on_result,
    )
    controller.start()
    bridge.say("last page")

    assert done.wait(2.0)
    assert results[0].success
    assert selection.selected == {5}
