"""Desktop host: tray app driving voice commands against the open PDF."""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import Optional

from command_parser import available_commands, hint_text
from config import JsonConfigStore
from dispatcher import CommandDispatcher
from hotkey import GlobalHotkeyAdapter
from models import Command, RecognitionState, VoiceContext
from overlay import OverlayWindow
from recents import JsonRecentsStore, RecentFiles
from selection import SelectionStore
from session_controller import SessionController
from speech_bridge import DashscopeSpeechBridge

try:
    from PySide6.QtCore import QObject, QSize, QTimer, Signal
    from PySide6.QtGui import QAction, QBrush, QColor, QIcon, QPainter, QPixmap
    from PySide6.QtPdf import QPdfDocument
    from PySide6.QtWidgets import QApplication, QFileDialog, QInputDialog, QMenu, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)

ICON_IDLE = "#888888"
ICON_LISTENING = "#FF4444"
ICON_ERROR = "#FF8800"


def _create_icon(color: str = ICON_IDLE, size: int = 22) -> QIcon:
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


class UIBridge(QObject):
    """Signals carrying worker-thread callbacks onto the Qt thread."""

    state_signal = Signal(str)
    preview_signal = Signal(str, str)
    result_signal = Signal(bool, str)
    error_signal = Signal(str)
    pick_file_signal = Signal()
    open_file_signal = Signal(str)
    close_signal = Signal()
    notify_signal = Signal(str, str)
    settings_signal = Signal()


class HostActions:
    """File, extraction and navigation collaborators for the dispatcher."""

    def __init__(self, app: "App") -> None:
        self._app = app
        self._ui = app.ui

    def open_file_picker(self) -> None:
        self._ui.pick_file_signal.emit()

    def open_file(self, path: str) -> None:
        self._ui.open_file_signal.emit(path)

    def close_document(self) -> None:
        self._ui.close_signal.emit()

    def extract(self, custom_name: Optional[str] = None) -> None:
        pages = sorted(self._app.selection.selected)
        name = custom_name or f"{self._app.document_name} (pages)"
        self._ui.notify_signal.emit("Extract", f"{name}: pages {', '.join(map(str, pages))}")

    def open_settings(self) -> None:
        self._ui.settings_signal.emit()

    def show_help(self) -> None:
        self._ui.notify_signal.emit("Voice commands", "\n".join(available_commands(self._app.context)))

    def show_paywall(self) -> None:
        self._ui.notify_signal.emit("Premium", "Premium features are managed in the full app.")

    def go_to_page(self, page: int) -> None:
        self._ui.notify_signal.emit(self._app.document_name, f"Page {page}")

    def dismiss_session(self) -> None:
        self._app.controller.cancel()


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        self.recents = RecentFiles(JsonRecentsStore(self.config_store.recents_path()))
        self.selection = SelectionStore()
        self.document_path: Optional[str] = None
        self.document_name = ""
        self.page_count = 0

        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.state_signal.connect(self._on_state_ui)
        self.ui.preview_signal.connect(self.overlay.show_preview)
        self.ui.result_signal.connect(self._on_result_ui)
        self.ui.error_signal.connect(self.overlay.show_error)
        self.ui.pick_file_signal.connect(self._pick_file)
        self.ui.open_file_signal.connect(self._open_document)
        self.ui.close_signal.connect(self._close_document)
        self.ui.notify_signal.connect(lambda title, text: self.tray.showMessage(title, text))
        self.ui.settings_signal.connect(self._set_api_key)

        actions = HostActions(self)
        self.dispatcher = CommandDispatcher(
            page_count=0,
            selection=self.selection,
            files=actions,
            extractor=actions,
            navigator=actions,
            recents=self.recents,
        )
        self.controller = SessionController(
            bridge=DashscopeSpeechBridge(api_key=self.config_store.get_api_key()),
            dispatcher=self.dispatcher,
            context=VoiceContext.HOME,
            silence_timeout_s=self.config_store.get_silence_timeout_s(),
            no_speech_timeout_s=8.0,
            on_state_change=lambda _from, to: self.ui.state_signal.emit(to.value),
            on_preview=self._on_preview,
            on_result=lambda r: self.ui.result_signal.emit(r.success, r.feedback),
            on_error=lambda code, message: self.ui.error_signal.emit(message),
        )
        self.hotkey = GlobalHotkeyAdapter(hotkey_name=self.config_store.get_hotkey())

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("PDF Pages Voice — Ready")
        self._setup_menu()
        self.tray.show()

    @property
    def context(self) -> VoiceContext:
        return self.controller.context

    def _setup_menu(self) -> None:
        menu = QMenu()
        for label, handler in (
            ("Open PDF...", self._pick_file),
            ("Voice Command", self._toggle_listening),
            ("Set API Key", self._set_api_key),
        ):
            action = QAction(label, menu)
            action.triggered.connect(handler)
            menu.addAction(action)
        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)
        self.tray.setContextMenu(menu)

    # ------------------------------------------------------------------
    # Document handling (Qt thread)
    # ------------------------------------------------------------------

    def _pick_file(self) -> None:
        path, _ = QFileDialog.getOpenFileName(None, "Open PDF", str(Path.home()), "PDF (*.pdf)")
        if path:
            self._open_document(path)

    def _open_document(self, path: str) -> None:
        document = QPdfDocument(self.app)
        if document.load(path) != QPdfDocument.Error.None_:
            document.deleteLater()
            self.overlay.show_error(f"Could not open {Path(path).name}")
            return
        self.document_path = path
        self.document_name = Path(path).name
        self.page_count = document.pageCount()
        document.close()
        document.deleteLater()
        logger.info("opened %s (%d pages)", path, self.page_count)
        self.recents.add(self.document_name, path)
        self.selection.clear()
        self._retarget(VoiceContext.PAGE_GRID, self.page_count)
        self.tray.showMessage(self.document_name, f"{self.page_count} pages")

    def _close_document(self) -> None:
        self.document_path = None
        self.document_name = ""
        self.page_count = 0
        self.selection.clear()
        self._retarget(VoiceContext.HOME, 0)

    def _retarget(self, context: VoiceContext, page_count: int) -> None:
        # open/close commands land here while their session is still PROCESSING
        if not self.controller.retarget(context, page_count):
            QTimer.singleShot(200, lambda: self._retarget(context, page_count))

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if not ok:
            return
        self.config_store.set_api_key(value)
        self.tray.showMessage("Saved", "API key saved. Restart to apply.")

    # ------------------------------------------------------------------
    # Session callbacks (worker threads -> signals)
    # ------------------------------------------------------------------

    def _on_preview(self, text: str, command: Command) -> None:
        self.ui.preview_signal.emit(text, type(command).__name__)

    def _on_state_ui(self, state: str) -> None:
        if state == RecognitionState.LISTENING.value:
            self.tray.setIcon(_create_icon(ICON_LISTENING))
            self.tray.setToolTip("PDF Pages Voice — Listening...")
            self.overlay.show_listening(hint_text(self.context))
        elif state == RecognitionState.PROCESSING.value:
            self.tray.setToolTip("PDF Pages Voice — Processing...")
        elif state == RecognitionState.ERROR.value:
            self.tray.setIcon(_create_icon(ICON_ERROR))
        else:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("PDF Pages Voice — Ready")

    def _on_result_ui(self, success: bool, feedback: str) -> None:
        self.overlay.show_feedback(feedback, success)

    # ------------------------------------------------------------------
    # Hotkey handlers
    # ------------------------------------------------------------------

    def _toggle_listening(self) -> None:
        if self.controller.state == RecognitionState.LISTENING:
            # stop() dispatches synchronously; keep it off the Qt thread
            threading.Thread(target=self.controller.stop, daemon=True).start()
        else:
            self.controller.start()

    def run(self) -> int:
        try:
            self.hotkey.start(on_toggle=self._toggle_listening, on_cancel=self.controller.cancel)
        except Exception as exc:
            self.overlay.show_error(f"Hotkey disabled: {exc}")
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.controller.cancel()
        self.app.quit()


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
