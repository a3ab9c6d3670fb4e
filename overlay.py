"""Overlay window showing the live transcript, command preview and feedback."""

from __future__ import annotations

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

_PANEL = "padding: 12px 16px; background: rgba(0,0,0,190); border-radius: 12px;"
TRANSCRIPT_STYLE = "color: white; font-size: 18px;" + _PANEL
HINT_STYLE = "color: #BBBBBB; font-size: 13px; padding: 0 16px;"
SUCCESS_STYLE = "color: #7CFC9A; font-size: 18px;" + _PANEL
FAILURE_STYLE = "color: #FF6B6B; font-size: 18px;" + _PANEL


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool)
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(600)

        self._label = QLabel("")
        self._label.setWordWrap(True)
        self._label.setStyleSheet(TRANSCRIPT_STYLE)
        self._hint = QLabel("")
        self._hint.setStyleSheet(HINT_STYLE)

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._label)
        layout.addWidget(self._hint)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def _center_top(self) -> None:
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        x = geom.x() + (geom.width() - self.width()) // 2
        y = geom.y() + 40
        self.move(x, y)

    def show_listening(self, hint: str) -> None:
        self._show(TRANSCRIPT_STYLE, "🎙️ Listening...", hint)

    def show_preview(self, transcript: str, preview: str) -> None:
        """Live transcript with the command it would currently run."""
        self._show(TRANSCRIPT_STYLE, transcript, preview)

    def show_feedback(self, text: str, success: bool, hide_after_ms: int = 1500) -> None:
        self._show(SUCCESS_STYLE if success else FAILURE_STYLE, text, "")
        self.hide_with_delay(hide_after_ms)

    def show_error(self, text: str, hide_after_ms: int = 2500) -> None:
        self._show(FAILURE_STYLE, f"⚠️ {text}", "")
        self.hide_with_delay(hide_after_ms)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def _show(self, style: str, text: str, hint: str) -> None:
        self._cancel_hide_timer()
        self._label.setStyleSheet(style)
        self._label.setText(text)
        self._hint.setText(hint)
        self._hint.setVisible(bool(hint))
        self._center_top()
        self.show()

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
