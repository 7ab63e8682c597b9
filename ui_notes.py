"""
ui_notes.py
Notes list panel: folder filter, search box, note list and the note/folder
actions (new, rename, delete).

The panel subscribes with the selector
[state.notes, state.folders, state.folder_filter, state.search_query]; the
filter and the query live in the store so every view sees the same selection.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from PyQt5 import QtWidgets
from PyQt5.QtCore import Qt, pyqtSignal

from models import UNFILED, visible_notes
from prompt_modal import ContinuationModal, PromptDialog
from services.confirmation import QtConfirmation

logger = logging.getLogger("notention.notes")

ALL_NOTES_LABEL = "All Notes"
UNFILED_LABEL = "Unfiled"
UNTITLED = "Untitled Note"
DELETE_NOTE_MESSAGE = "Delete this note? This cannot be undone."
DELETE_FOLDER_MESSAGE = "Delete this folder? Its notes will become unfiled."


class NotesPanel(QtWidgets.QWidget):
    note_selected = pyqtSignal(str)

    def __init__(
        self,
        store,
        modal: Optional[ContinuationModal] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        parent: QtWidgets.QWidget = None,
    ):
        super().__init__(parent)
        self._store = store
        self._confirm = confirm if confirm is not None else QtConfirmation(self)
        self._filter_key = None

        if modal is None:
            modal = ContinuationModal()
            self.prompt_dialog = PromptDialog(modal, self)
        self.modal = modal

        v = QtWidgets.QVBoxLayout(self)

        self.search_edit = QtWidgets.QLineEdit(self)
        self.search_edit.setPlaceholderText("Search notes")
        self.search_edit.setClearButtonEnabled(True)
        self.search_edit.textChanged.connect(store.set_search_query)
        v.addWidget(self.search_edit)

        folder_row = QtWidgets.QHBoxLayout()
        self.folder_combo = QtWidgets.QComboBox(self)
        self.folder_combo.currentIndexChanged.connect(self._on_filter_changed)
        folder_row.addWidget(self.folder_combo, 1)
        self.btn_new_folder = QtWidgets.QToolButton(self)
        self.btn_new_folder.setText("+")
        self.btn_new_folder.setToolTip("New folder")
        self.btn_new_folder.clicked.connect(self.request_new_folder)
        folder_row.addWidget(self.btn_new_folder)
        self.btn_rename_folder = QtWidgets.QToolButton(self)
        self.btn_rename_folder.setText("Rename")
        self.btn_rename_folder.setToolTip("Rename the selected folder")
        self.btn_rename_folder.clicked.connect(self.request_rename_folder)
        folder_row.addWidget(self.btn_rename_folder)
        self.btn_delete_folder = QtWidgets.QToolButton(self)
        self.btn_delete_folder.setText("Delete")
        self.btn_delete_folder.setToolTip("Delete the selected folder")
        self.btn_delete_folder.clicked.connect(self.delete_current_folder)
        folder_row.addWidget(self.btn_delete_folder)
        v.addLayout(folder_row)

        self.list_widget = QtWidgets.QListWidget(self)
        self.list_widget.itemClicked.connect(lambda item: self.note_selected.emit(item.data(Qt.UserRole)))
        self.list_widget.currentItemChanged.connect(lambda *_: self._refresh_buttons())
        v.addWidget(self.list_widget, 1)

        note_row = QtWidgets.QHBoxLayout()
        self.btn_new_note = QtWidgets.QPushButton("New Note", self)
        self.btn_new_note.clicked.connect(self.new_note)
        note_row.addWidget(self.btn_new_note)
        self.btn_delete_note = QtWidgets.QPushButton("Delete Note", self)
        self.btn_delete_note.clicked.connect(self.delete_selected_note)
        note_row.addWidget(self.btn_delete_note)
        v.addLayout(note_row)

        self._unsubscribe = store.subscribe(
            self._render,
            lambda s: [s.notes, s.folders, s.folder_filter, s.search_query],
        )
        self._render(store.get_state())

    # --- rendering ----------------------------------------------------------

    def note_ids(self) -> List[str]:
        return [self.list_widget.item(i).data(Qt.UserRole) for i in range(self.list_widget.count())]

    def selected_note_id(self) -> Optional[str]:
        item = self.list_widget.currentItem()
        return item.data(Qt.UserRole) if item is not None else None

    def _render(self, state) -> None:
        self._render_filter(state)
        if self.search_edit.text() != state.search_query:
            self.search_edit.blockSignals(True)
            try:
                self.search_edit.setText(state.search_query)
            finally:
                self.search_edit.blockSignals(False)

        selected = self.selected_note_id()
        self.list_widget.blockSignals(True)
        try:
            self.list_widget.clear()
            for note in visible_notes(state):
                folder = state.folders.get(note.folder_id) if note.folder_id else None
                label = note.title or UNTITLED
                if folder is not None and state.folder_filter is None:
                    label = f"{label}  [{folder.name}]"
                item = QtWidgets.QListWidgetItem(label, self.list_widget)
                item.setData(Qt.UserRole, note.id)
                if note.id == selected:
                    self.list_widget.setCurrentItem(item)
        finally:
            self.list_widget.blockSignals(False)
        self._refresh_buttons()

    def _render_filter(self, state) -> None:
        folders = sorted(state.folders.values(), key=lambda f: (f.name.lower(), f.id))
        key = (tuple((f.id, f.name) for f in folders), state.folder_filter)
        if key == self._filter_key:
            return
        self._filter_key = key
        combo = self.folder_combo
        combo.blockSignals(True)
        try:
            combo.clear()
            combo.addItem(ALL_NOTES_LABEL, None)
            combo.addItem(UNFILED_LABEL, UNFILED)
            for folder in folders:
                combo.addItem(folder.name, folder.id)
            idx = combo.findData(state.folder_filter) if state.folder_filter else 0
            combo.setCurrentIndex(idx if idx >= 0 else 0)
        finally:
            combo.blockSignals(False)

    def _refresh_buttons(self) -> None:
        has_folder = self._current_folder_id() is not None
        self.btn_rename_folder.setEnabled(has_folder)
        self.btn_delete_folder.setEnabled(has_folder)
        self.btn_delete_note.setEnabled(self.selected_note_id() is not None)

    def _current_folder_id(self) -> Optional[str]:
        folder_filter = self._store.get_state().folder_filter
        return folder_filter if folder_filter not in (None, UNFILED) else None

    def _on_filter_changed(self, _index: int) -> None:
        self._store.set_folder_filter(self.folder_combo.currentData())

    # --- actions ------------------------------------------------------------

    def new_note(self) -> Optional[str]:
        """Create a note in the folder being shown (if any) and open it."""
        note_id = self._store.create_note(title=UNTITLED, folder_id=self._current_folder_id())
        if note_id:
            self.note_selected.emit(note_id)
        return note_id

    def delete_selected_note(self) -> bool:
        note_id = self.selected_note_id()
        if note_id is None or not self._ask(DELETE_NOTE_MESSAGE):
            return False
        return self._store.delete_note(note_id)

    def request_new_folder(self) -> None:
        self.modal.set_content(
            "New Folder", "Folder name", lambda name: name and self._store.create_folder(name)
        )

    def request_rename_folder(self) -> None:
        folder_id = self._current_folder_id()
        if folder_id is None:
            return
        self.modal.set_content(
            "Rename Folder", "Folder name", lambda name: name and self._store.rename_folder(folder_id, name)
        )

    def delete_current_folder(self) -> bool:
        folder_id = self._current_folder_id()
        if folder_id is None or not self._ask(DELETE_FOLDER_MESSAGE):
            return False
        return self._store.delete_folder(folder_id)

    def _ask(self, message: str) -> bool:
        try:
            return bool(self._confirm(message))
        except Exception as e:
            logger.warning("Confirmation failed: %s", e)
            return False

    def dispose(self) -> None:
        self._unsubscribe()
