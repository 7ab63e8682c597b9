"""
main.py
Entry point for the Notention desktop client. Builds the session store from
settings, wires the contact panel, the note list and the note editor, and
starts the Qt event loop.
"""
import logging
import sys

from PyQt5 import QtWidgets
from PyQt5.QtCore import Qt

from app_logging import configure_logging
from models import AppState, Contact, Preferences, UserProfile
from prompt_modal import ContinuationModal, PromptDialog
from services.ai import ai_service_for
from settings_manager import (
    get_ai_enabled,
    get_ai_timeout_seconds,
    get_log_level,
    get_ollama_settings,
    get_saved_contacts,
    get_window_geometry,
    set_ai_enabled,
    set_ollama_settings,
    set_saved_contacts,
    set_window_geometry,
)
from state_store import EntityStore
from ui_contacts import ContactList
from ui_note_editor import NoteEditor
from ui_notes import NotesPanel
from ui_settings import SettingsDialog

logger = logging.getLogger("notention.main")

WELCOME_NOTE = "<h2>Welcome</h2><p>Pick a note on the left or create a new one.</p>"


def build_initial_state() -> AppState:
    ollama = get_ollama_settings()
    prefs = Preferences(
        ai_enabled=get_ai_enabled(),
        ollama_api_endpoint=ollama["endpoint"],
        ollama_chat_model=ollama["model"],
    )
    contacts = []
    for entry in get_saved_contacts():
        if all(c.pubkey != entry["pubkey"] for c in contacts):
            contacts.append(Contact(pubkey=entry["pubkey"], alias=entry["alias"]))
    return AppState(user_profile=UserProfile(contacts=tuple(contacts), preferences=prefs))


def _preferences(state) -> Preferences:
    return state.user_profile.preferences if state.user_profile is not None else Preferences()


class MainWindow(QtWidgets.QMainWindow):
    def __init__(self, store: EntityStore):
        super().__init__()
        self.setWindowTitle("Notention")
        self._store = store
        self._modal = ContinuationModal()
        self._prompt = PromptDialog(self._modal, self)

        splitter = QtWidgets.QSplitter(Qt.Horizontal, self)
        left = QtWidgets.QWidget(splitter)
        lv = QtWidgets.QVBoxLayout(left)
        self.contacts = ContactList(store, modal=self._modal, parent=left)
        self.notes = NotesPanel(store, modal=self._modal, parent=left)
        lv.addWidget(self.contacts, 1)
        lv.addWidget(self.notes, 2)
        self.editor = NoteEditor(store, modal=self._modal, parent=splitter)
        splitter.addWidget(left)
        splitter.addWidget(self.editor)
        splitter.setStretchFactor(1, 3)
        self.setCentralWidget(splitter)

        self.notes.note_selected.connect(self.editor.show_note)
        self.contacts.contact_selected.connect(
            lambda pubkey: self.statusBar().showMessage(f"Selected contact {pubkey}", 3000)
        )

        menu = self.menuBar().addMenu("&Settings")
        self.act_ai = menu.addAction("Enable AI features")
        self.act_ai.setCheckable(True)
        self.act_ai.toggled.connect(self._store.set_ai_enabled)
        self.act_settings = menu.addAction("Preferences...", self.open_settings)

        self._unsubscribe = [
            store.subscribe(
                lambda s: set_saved_contacts(s.user_profile.contacts if s.user_profile else ()),
                lambda s: [s.user_profile.contacts if s.user_profile else None],
            ),
            store.subscribe(
                self._apply_preferences,
                lambda s: [s.user_profile.preferences if s.user_profile else None],
            ),
        ]
        self._apply_preferences(store.get_state(), persist=False)

        geo = get_window_geometry()
        if isinstance(geo, dict):
            try:
                self.setGeometry(int(geo["x"]), int(geo["y"]), int(geo["w"]), int(geo["h"]))
            except Exception:
                self.resize(1100, 720)
        else:
            self.resize(1100, 720)

        self.editor.show_note(None)

    @property
    def store(self) -> EntityStore:
        return self._store

    def _apply_preferences(self, state, persist: bool = True):
        """Rebuild the AI backend from the current preferences and keep the menu in sync."""
        prefs = _preferences(state)
        self.editor.adapter.set_ai_service(ai_service_for(prefs, timeout=get_ai_timeout_seconds()))
        self.act_ai.blockSignals(True)
        try:
            self.act_ai.setChecked(prefs.ai_enabled)
        finally:
            self.act_ai.blockSignals(False)
        if persist:
            set_ai_enabled(prefs.ai_enabled)
            set_ollama_settings(endpoint=prefs.ollama_api_endpoint, model=prefs.ollama_chat_model)
            logger.info("Preferences saved (AI %s)", "on" if prefs.ai_enabled else "off")

    def open_settings(self) -> SettingsDialog:
        dlg = SettingsDialog(self._store, self)
        dlg.open()
        return dlg

    def closeEvent(self, event):
        try:
            g = self.geometry()
            set_window_geometry(g.x(), g.y(), g.width(), g.height())
        except Exception:
            pass
        self.editor.dispose()
        self.contacts.dispose()
        self.notes.dispose()
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        super().closeEvent(event)


def main():
    configure_logging(get_log_level())
    app = QtWidgets.QApplication(sys.argv)
    store = EntityStore(build_initial_state())
    store.create_note(title="Welcome", content=WELCOME_NOTE)
    window = MainWindow(store)
    window.show()
    logger.info("Notention started")
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
