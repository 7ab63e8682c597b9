"""
ui_note_editor.py
Note editor panel: title, folder picker, formatting toolbar and the rich text
engine, driven by an EditorAdapter.

The widget is the adapter's view. It never talks to the store for content;
title and folder edits go through the adapter, which writes them back.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from PyQt5 import QtCore, QtWidgets
from PyQt5.QtCore import Qt, pyqtSignal, pyqtSlot

from authoring_engine import QtAuthoringEngine
from editor_adapter import EditorAdapter
from prompt_modal import ContinuationModal, PromptDialog
from services.ai import NullAIService

logger = logging.getLogger("notention.ui.editor")

PLACEHOLDER_TEXT = "Select a note to edit or create a new one."
UNFILED_LABEL = "Unfiled"


class AIWorker(QtCore.QThread):
    """Runs one AI coroutine on a private event loop off the GUI thread.

    ``result_ready`` is emitted from the worker thread; receivers living on the
    GUI thread get it queued, so the result is always applied there.
    """

    result_ready = pyqtSignal(object)

    def __init__(self, make_coro, parent=None):
        super().__init__(parent)
        self._make_coro = make_coro

    def run(self):
        try:
            result = asyncio.run(self._make_coro())
        except Exception:
            logger.exception("AI call failed")
            result = None
        self.result_ready.emit(result)


class NoteEditor(QtWidgets.QWidget):
    def __init__(
        self,
        store,
        ai_service=None,
        modal: Optional[ContinuationModal] = None,
        engine_factory=None,
        parent: QtWidgets.QWidget = None,
    ):
        super().__init__(parent)
        self._engine_widget = None
        self._folder_key = None
        self._ai_worker: Optional[AIWorker] = None
        self._ai_apply = None

        v = QtWidgets.QVBoxLayout(self)

        header = QtWidgets.QHBoxLayout()
        self.title_edit = QtWidgets.QLineEdit(self)
        self.title_edit.setObjectName("noteTitleEdit")
        self.title_edit.setPlaceholderText("Note Title")
        try:
            f = self.title_edit.font()
            f.setPointSize(f.pointSize() + 6)
            f.setBold(True)
            self.title_edit.setFont(f)
        except Exception:
            pass
        header.addWidget(self.title_edit, 1)
        self.folder_combo = QtWidgets.QComboBox(self)
        self.folder_combo.setObjectName("noteFolderSelect")
        header.addWidget(self.folder_combo)
        v.addLayout(header)

        self.toolbar = QtWidgets.QToolBar(self)
        self.toolbar.setToolButtonStyle(Qt.ToolButtonTextOnly)
        v.addWidget(self.toolbar)

        self.placeholder = QtWidgets.QLabel(PLACEHOLDER_TEXT, self)
        self.placeholder.setAlignment(Qt.AlignCenter)
        v.addWidget(self.placeholder)

        self._editor_host = QtWidgets.QWidget(self)
        self._host_layout = QtWidgets.QVBoxLayout(self._editor_host)
        self._host_layout.setContentsMargins(0, 0, 0, 0)
        v.addWidget(self._editor_host, 1)

        if modal is None:
            modal = ContinuationModal()
            self.prompt_dialog = PromptDialog(modal, self)
        self.modal = modal

        self.adapter = EditorAdapter(
            store,
            modal,
            engine_factory if engine_factory is not None else self._create_engine,
            ai_service=ai_service,
            view=self,
        )
        self._build_toolbar()

        self.title_edit.textEdited.connect(self.adapter.set_title)
        self.folder_combo.currentIndexChanged.connect(self._on_folder_changed)
        self.show_placeholder(True)
        self.set_ai_controls_visible(False)

    def _create_engine(self, content: str, extensions):
        return QtAuthoringEngine(content, extensions, parent=self._editor_host)

    def _build_toolbar(self):
        a = self.adapter
        tb = self.toolbar
        self.act_bold = tb.addAction("Bold", a.toggle_bold)
        self.act_italic = tb.addAction("Italic", a.toggle_italic)
        self.act_bullets = tb.addAction("Bullet List", a.toggle_bullet_list)
        self.act_numbers = tb.addAction("Ordered List", a.toggle_ordered_list)
        tb.addSeparator()
        self.act_tag = tb.addAction("Add Tag", a.request_tag)
        self.act_key_value = tb.addAction("Add Key-Value", a.request_key_value)
        self.act_template = tb.addAction("Apply Template", a.request_template)
        tb.addSeparator()
        self.act_autotag = tb.addAction("Auto-tag", lambda: self.start_ai("auto_tag"))
        self.act_summarize = tb.addAction("Summarize", lambda: self.start_ai("summarize"))

    # --- routing glue -------------------------------------------------------

    def show_note(self, note_id: Optional[str]) -> None:
        self.adapter.mount(note_id)

    def dispose(self) -> None:
        # Waits for an in-flight AI call; its result is dropped.
        self._finish_ai()
        self.adapter.unmount()

    # --- AI ---------------------------------------------------------------------

    @property
    def ai_busy(self) -> bool:
        return self._ai_worker is not None

    def start_ai(self, kind: str) -> bool:
        """Run an AI action in the background; editing and navigation stay live.

        One call at a time. The result is applied on the GUI thread when it
        arrives, and dropped if another note was opened in the meantime.
        """
        if self._ai_worker is not None:
            return False
        prepared = self.adapter.prepare_ai(kind)
        if prepared is None:
            return False
        if type(self.adapter.ai_service) is NullAIService:
            logger.warning("AI is enabled but no Ollama endpoint is configured")
        call, apply = prepared
        worker = AIWorker(call, self)
        worker.result_ready.connect(self._on_ai_result)
        self._ai_worker = worker
        self._ai_apply = apply
        self._set_ai_actions_enabled(False)
        QtWidgets.QApplication.setOverrideCursor(Qt.BusyCursor)
        worker.start()
        return True

    @pyqtSlot(object)
    def _on_ai_result(self, result):
        # A worker already finished by dispose() may still deliver late
        if self.sender() is not self._ai_worker:
            return
        apply = self._finish_ai()
        if apply is not None and result is not None:
            apply(result)

    def _finish_ai(self):
        worker, self._ai_worker = self._ai_worker, None
        apply, self._ai_apply = self._ai_apply, None
        if worker is None:
            return None
        worker.wait()
        worker.deleteLater()
        QtWidgets.QApplication.restoreOverrideCursor()
        self._set_ai_actions_enabled(True)
        return apply

    def _set_ai_actions_enabled(self, enabled: bool) -> None:
        self.act_autotag.setEnabled(enabled)
        self.act_summarize.setEnabled(enabled)

    # --- EditorView -----------------------------------------------------------

    def show_placeholder(self, visible: bool) -> None:
        self.placeholder.setVisible(visible)
        self._editor_host.setVisible(not visible)
        self.title_edit.setEnabled(not visible)
        self.folder_combo.setEnabled(not visible)
        for act in (self.act_bold, self.act_italic, self.act_bullets, self.act_numbers,
                    self.act_tag, self.act_key_value, self.act_template):
            act.setEnabled(not visible)
        if visible:
            self.set_title("")

    def set_title(self, text: str) -> None:
        self.title_edit.blockSignals(True)
        try:
            self.title_edit.setText(text or "")
        finally:
            self.title_edit.blockSignals(False)

    def set_folder_options(self, folders, selected_id: Optional[str]) -> None:
        key = (tuple((f.id, f.name) for f in folders), selected_id)
        if key == self._folder_key:
            return
        self._folder_key = key
        combo = self.folder_combo
        combo.blockSignals(True)
        try:
            combo.clear()
            combo.addItem(UNFILED_LABEL, None)
            for folder in folders:
                combo.addItem(folder.name, folder.id)
            idx = combo.findData(selected_id) if selected_id else 0
            combo.setCurrentIndex(idx if idx >= 0 else 0)
        finally:
            combo.blockSignals(False)

    def set_ai_controls_visible(self, visible: bool) -> None:
        self.act_autotag.setVisible(bool(visible))
        self.act_summarize.setVisible(bool(visible))

    def attach_engine(self, engine) -> None:
        old = self._engine_widget
        self._engine_widget = None
        if old is not None:
            try:
                self._host_layout.removeWidget(old)
            except Exception:
                pass
        widget = getattr(engine, "widget", None) if engine is not None else None
        if widget is not None:
            self._host_layout.addWidget(widget)
            widget.show()
            self._engine_widget = widget

    def _on_folder_changed(self, _index: int) -> None:
        self.adapter.set_folder(self.folder_combo.currentData())
