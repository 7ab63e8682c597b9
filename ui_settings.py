"""
ui_settings.py
Preferences dialog: AI toggle, Ollama endpoint and chat model.

Saving writes the values into the store's Preferences; the main window
persists them and swaps the editor's AI backend when they change.
"""

from __future__ import annotations

from PyQt5 import QtWidgets

from models import Preferences

ENDPOINT_HINT = "e.g. http://localhost:11434"


class SettingsDialog(QtWidgets.QDialog):
    def __init__(self, store, parent: QtWidgets.QWidget = None):
        super().__init__(parent)
        self._store = store
        self.setWindowTitle("Settings")
        self.setMinimumWidth(420)

        form = QtWidgets.QFormLayout()
        self.ai_checkbox = QtWidgets.QCheckBox("Enable AI features", self)
        form.addRow(self.ai_checkbox)
        self.endpoint_edit = QtWidgets.QLineEdit(self)
        self.endpoint_edit.setPlaceholderText(ENDPOINT_HINT)
        form.addRow("Ollama API endpoint:", self.endpoint_edit)
        self.model_edit = QtWidgets.QLineEdit(self)
        self.model_edit.setPlaceholderText(Preferences().ollama_chat_model)
        form.addRow("Ollama chat model:", self.model_edit)
        self.hint_label = QtWidgets.QLabel(self)
        self.hint_label.setWordWrap(True)
        form.addRow(self.hint_label)

        buttons = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.Save | QtWidgets.QDialogButtonBox.Cancel, self
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)

        v = QtWidgets.QVBoxLayout(self)
        v.addLayout(form)
        v.addWidget(buttons)

        self.ai_checkbox.toggled.connect(lambda _on: self._refresh_hint())
        self.endpoint_edit.textChanged.connect(lambda _text: self._refresh_hint())
        self.load()

    def load(self) -> None:
        """Fill the fields from the store's current preferences."""
        profile = self._store.get_state().user_profile
        prefs = profile.preferences if profile is not None else Preferences()
        self.ai_checkbox.setChecked(prefs.ai_enabled)
        self.endpoint_edit.setText(prefs.ollama_api_endpoint)
        self.model_edit.setText(prefs.ollama_chat_model)
        self._refresh_hint()

    def _refresh_hint(self) -> None:
        if self.ai_checkbox.isChecked() and not self.endpoint_edit.text().strip():
            self.hint_label.setText("AI actions stay inactive until an Ollama endpoint is set.")
        else:
            self.hint_label.setText("")

    def apply(self) -> bool:
        return self._store.update_preferences(
            {
                "ai_enabled": self.ai_checkbox.isChecked(),
                "ollama_api_endpoint": self.endpoint_edit.text(),
                "ollama_chat_model": self.model_edit.text(),
            }
        )

    def accept(self) -> None:
        self.apply()
        super().accept()
