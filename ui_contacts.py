"""
ui_contacts.py
Contact list panel.

ContactList subscribes to the store with the selector [state.user_profile] and
re-renders only when the profile object changes. Items send typed events
(events.ContactSelected / events.ContactRemoveRequested) up through a Qt signal;
the list turns removals into a confirmed store mutation and forwards selections
to its container through ``contact_selected``.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from PyQt5 import QtWidgets
from PyQt5.QtCore import Qt, pyqtSignal

from events import ContactRemoveRequested, ContactSelected
from models import Contact
from prompt_modal import ContinuationModal, PromptDialog
from services.confirmation import QtConfirmation

logger = logging.getLogger("notention.contacts")

REMOVE_CONFIRM_MESSAGE = "Are you sure you want to remove this contact?"


class ContactItem(QtWidgets.QWidget):
    event_emitted = pyqtSignal(object)

    def __init__(self, contact: Contact, parent: QtWidgets.QWidget = None):
        super().__init__(parent)
        self.contact = contact
        row = QtWidgets.QHBoxLayout(self)
        row.setContentsMargins(4, 2, 4, 2)

        self.name_button = QtWidgets.QPushButton(contact.display_name, self)
        self.name_button.setFlat(True)
        self.name_button.setToolTip(contact.pubkey)
        try:
            self.name_button.setStyleSheet("text-align: left;")
        except Exception:
            pass
        self.name_button.clicked.connect(
            lambda: self.event_emitted.emit(ContactSelected(self.contact.pubkey))
        )
        row.addWidget(self.name_button, 1)

        self.remove_button = QtWidgets.QToolButton(self)
        self.remove_button.setText("✕")
        self.remove_button.setToolTip("Remove contact")
        self.remove_button.clicked.connect(
            lambda: self.event_emitted.emit(ContactRemoveRequested(self.contact.pubkey))
        )
        row.addWidget(self.remove_button)


class ContactList(QtWidgets.QWidget):
    contact_selected = pyqtSignal(str)

    def __init__(
        self,
        store,
        confirm: Optional[Callable[[str], bool]] = None,
        modal: Optional[ContinuationModal] = None,
        parent: QtWidgets.QWidget = None,
    ):
        super().__init__(parent)
        self._store = store
        self._confirm = confirm if confirm is not None else QtConfirmation(self, "Remove Contact")
        self._render_count = 0

        v = QtWidgets.QVBoxLayout(self)
        header = QtWidgets.QHBoxLayout()
        title = QtWidgets.QLabel("Contacts", self)
        try:
            f = title.font()
            f.setBold(True)
            title.setFont(f)
        except Exception:
            pass
        header.addWidget(title, 1)
        self.add_button = QtWidgets.QToolButton(self)
        self.add_button.setText("+")
        self.add_button.setToolTip("Add contact")
        self.add_button.clicked.connect(self.request_add_contact)
        header.addWidget(self.add_button)
        v.addLayout(header)

        self.list_widget = QtWidgets.QListWidget(self)
        self.list_widget.setSelectionMode(QtWidgets.QAbstractItemView.NoSelection)
        v.addWidget(self.list_widget, 1)

        if modal is None:
            modal = ContinuationModal()
            self.prompt_dialog = PromptDialog(modal, self)
        self.modal = modal

        self._contacts: List[Contact] = []
        self._unsubscribe = store.subscribe(self._render, lambda s: [s.user_profile])
        self._render(store.get_state())

    @property
    def contacts(self) -> List[Contact]:
        return list(self._contacts)

    @property
    def render_count(self) -> int:
        """How many times the list has been rebuilt from the store."""
        return self._render_count

    def items(self) -> List[ContactItem]:
        out = []
        for i in range(self.list_widget.count()):
            w = self.list_widget.itemWidget(self.list_widget.item(i))
            if w is not None:
                out.append(w)
        return out

    def _render(self, state) -> None:
        profile = state.user_profile
        self._contacts = list(profile.contacts) if profile is not None else []
        self._render_count += 1
        self.list_widget.clear()
        for contact in self._contacts:
            item = QtWidgets.QListWidgetItem(self.list_widget)
            item.setData(Qt.UserRole, contact.pubkey)
            widget = ContactItem(contact)
            widget.event_emitted.connect(self._handle_item_event)
            item.setSizeHint(widget.sizeHint())
            self.list_widget.setItemWidget(item, widget)

    def _handle_item_event(self, event) -> None:
        if isinstance(event, ContactSelected):
            self.contact_selected.emit(event.pubkey)
        elif isinstance(event, ContactRemoveRequested):
            self.remove_contact(event.pubkey)

    def remove_contact(self, pubkey: str) -> bool:
        try:
            ok = bool(self._confirm(REMOVE_CONFIRM_MESSAGE))
        except Exception as e:
            logger.warning("Confirmation failed: %s", e)
            ok = False
        if not ok:
            return False
        return self._store.remove_contact(pubkey)

    def request_add_contact(self) -> None:
        def on_pubkey(pubkey: str):
            if not pubkey:
                return
            self.modal.set_content(
                "Add Contact",
                "Alias (optional)",
                lambda alias: self._store.add_contact(Contact(pubkey=pubkey, alias=alias or "")),
            )

        self.modal.set_content("Add Contact", "Public Key", on_pubkey)

    def dispose(self) -> None:
        """Release the store subscription; safe to call more than once."""
        self._unsubscribe()
