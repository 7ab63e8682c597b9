"""
state_store.py
The entity store: owns the application state tree and is the only place it
changes.

Every mutation builds new value objects along the changed path (entity,
containing collection, root) and leaves everything else shared with the
previous tree. Subscribers are notified synchronously before the mutation
returns. Invalid input is rejected: the method returns False, nothing changes
and nobody is notified.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import fields, replace
from typing import Any, Callable, Mapping, Optional, Sequence, Union

from models import UNFILED, AppState, Contact, Folder, Note, Preferences, UserProfile
from subscriptions import SubscriptionRegistry

logger = logging.getLogger("notention.store")

_NOTE_FIELDS = {f.name for f in fields(Note)}
_PREFERENCE_FIELDS = {f.name for f in fields(Preferences)}


def _clean(value) -> str:
    return value.strip() if isinstance(value, str) else ""


class EntityStore:
    def __init__(self, initial: Optional[AppState] = None):
        self._state = initial if initial is not None else AppState()
        self._registry = SubscriptionRegistry()

    # --- reading / observing ---------------------------------------------

    def get_state(self) -> AppState:
        return self._state

    def subscribe(
        self,
        callback: Callable[[AppState], None],
        selector: Optional[Callable[[AppState], Sequence[Any]]] = None,
    ) -> Callable[[], None]:
        return self._registry.subscribe(callback, selector, self._state)

    @property
    def subscriber_count(self) -> int:
        return len(self._registry)

    def _commit(self, new_state: AppState) -> bool:
        self._state = new_state
        self._registry.notify(new_state)
        return True

    def _reject(self, op: str, reason: str, *args) -> bool:
        logger.debug("%s rejected: " + reason, op, *args)
        return False

    # --- profile / contacts ----------------------------------------------

    def set_user_profile(self, profile: Optional[UserProfile]) -> bool:
        if profile is self._state.user_profile:
            return False
        return self._commit(replace(self._state, user_profile=profile))

    def set_ai_enabled(self, enabled: bool) -> bool:
        profile = self._state.user_profile
        if profile is None:
            return self._reject("set_ai_enabled", "no user profile")
        enabled = bool(enabled)
        if profile.preferences.ai_enabled == enabled:
            return False
        prefs = replace(profile.preferences, ai_enabled=enabled)
        return self._commit(replace(self._state, user_profile=replace(profile, preferences=prefs)))

    def update_preferences(self, patch: Mapping[str, Any]) -> bool:
        """Merge ``patch`` (Preferences field names) over the profile's preferences."""
        profile = self._state.user_profile
        if profile is None:
            return self._reject("update_preferences", "no user profile")
        changes = dict(patch)
        unknown = set(changes) - _PREFERENCE_FIELDS
        if unknown:
            return self._reject("update_preferences", "unknown fields %s", sorted(unknown))
        if "ai_enabled" in changes:
            changes["ai_enabled"] = bool(changes["ai_enabled"])
        for key in ("ollama_api_endpoint", "ollama_chat_model"):
            if key in changes:
                changes[key] = _clean(changes[key])
        if changes.get("ollama_chat_model") == "":
            changes["ollama_chat_model"] = Preferences().ollama_chat_model
        prefs = replace(profile.preferences, **changes)
        if prefs == profile.preferences:
            return False
        logger.info("Preferences updated: %s", sorted(changes))
        return self._commit(replace(self._state, user_profile=replace(profile, preferences=prefs)))

    def add_contact(self, contact: Contact) -> bool:
        pubkey = _clean(getattr(contact, "pubkey", None))
        if not pubkey:
            return self._reject("add_contact", "empty pubkey")
        profile = self._state.user_profile
        if profile is None:
            return self._reject("add_contact", "no user profile")
        if profile.find_contact(pubkey) is not None:
            return self._reject("add_contact", "duplicate pubkey %s", pubkey)
        new_contact = Contact(pubkey=pubkey, alias=_clean(contact.alias))
        contacts = profile.contacts + (new_contact,)
        logger.info("Contact added: %s", pubkey)
        return self._commit(replace(self._state, user_profile=replace(profile, contacts=contacts)))

    def remove_contact(self, pubkey: str) -> bool:
        pubkey = _clean(pubkey)
        profile = self._state.user_profile
        if not pubkey or profile is None:
            return self._reject("remove_contact", "empty pubkey or no profile")
        contacts = tuple(c for c in profile.contacts if c.pubkey != pubkey)
        if len(contacts) == len(profile.contacts):
            return self._reject("remove_contact", "unknown pubkey %s", pubkey)
        logger.info("Contact removed: %s", pubkey)
        return self._commit(replace(self._state, user_profile=replace(profile, contacts=contacts)))

    # --- notes -------------------------------------------------------------

    def _with_note(self, note: Note) -> AppState:
        notes = dict(self._state.notes)
        notes[note.id] = note
        return replace(self._state, notes=notes)

    def create_note(self, title: str = "", content: str = "", folder_id: Optional[str] = None) -> Optional[str]:
        if folder_id is not None and folder_id not in self._state.folders:
            self._reject("create_note", "unknown folder %s", folder_id)
            return None
        note = Note(id=str(uuid.uuid4()), title=title or "", content=content or "", folder_id=folder_id)
        self._commit(self._with_note(note))
        return note.id

    def update_note(self, note_id: str, patch: Union[Mapping[str, Any], Note]) -> bool:
        """Merge ``patch`` over the stored note and replace it.

        ``patch`` may be a mapping of field names or a whole Note; the id is
        never changed by a patch.
        """
        current = self._state.notes.get(note_id) if note_id else None
        if current is None:
            return self._reject("update_note", "unknown note %s", note_id)
        if isinstance(patch, Note):
            changes = {f: getattr(patch, f) for f in _NOTE_FIELDS}
        elif isinstance(patch, Mapping):
            changes = dict(patch)
        else:
            return self._reject("update_note", "patch is not a mapping")
        changes.pop("id", None)
        unknown = set(changes) - _NOTE_FIELDS
        if unknown:
            return self._reject("update_note", "unknown fields %s", sorted(unknown))
        if "folder_id" in changes and not changes["folder_id"]:
            changes["folder_id"] = None
        folder_id = changes.get("folder_id")
        if folder_id and folder_id != current.folder_id and folder_id not in self._state.folders:
            return self._reject("update_note", "unknown folder %s", changes["folder_id"])
        updated = replace(current, **changes)
        if updated == current:
            return False
        return self._commit(self._with_note(updated))

    def delete_note(self, note_id: str) -> bool:
        if note_id not in self._state.notes:
            return self._reject("delete_note", "unknown note %s", note_id)
        notes = dict(self._state.notes)
        del notes[note_id]
        return self._commit(replace(self._state, notes=notes))

    def move_note_to_folder(self, note_id: str, folder_id: Optional[str]) -> bool:
        return self.update_note(note_id, {"folder_id": folder_id or None})

    # --- folders -------------------------------------------------------------

    def create_folder(self, name: str) -> Optional[str]:
        name = _clean(name)
        if not name:
            self._reject("create_folder", "empty name")
            return None
        folder = Folder(id=str(uuid.uuid4()), name=name)
        folders = dict(self._state.folders)
        folders[folder.id] = folder
        self._commit(replace(self._state, folders=folders))
        return folder.id

    def rename_folder(self, folder_id: str, name: str) -> bool:
        name = _clean(name)
        folder = self._state.folders.get(folder_id)
        if folder is None or not name:
            return self._reject("rename_folder", "unknown folder or empty name")
        if folder.name == name:
            return False
        folders = dict(self._state.folders)
        folders[folder_id] = replace(folder, name=name)
        return self._commit(replace(self._state, folders=folders))

    def delete_folder(self, folder_id: str) -> bool:
        """Remove a folder and unfile its notes in one step."""
        if folder_id not in self._state.folders:
            return self._reject("delete_folder", "unknown folder %s", folder_id)
        folders = dict(self._state.folders)
        del folders[folder_id]
        notes = self._state.notes
        filed = [n for n in notes.values() if n.folder_id == folder_id]
        if filed:
            notes = dict(notes)
            for note in filed:
                notes[note.id] = replace(note, folder_id=None)
        folder_filter = self._state.folder_filter
        if folder_filter == folder_id:
            folder_filter = None
        logger.info("Folder deleted: %s (%d note(s) unfiled)", folder_id, len(filed))
        return self._commit(replace(self._state, folders=folders, notes=notes, folder_filter=folder_filter))

    # --- list view -----------------------------------------------------------

    def set_search_query(self, query: str) -> bool:
        query = query if isinstance(query, str) else ""
        if query == self._state.search_query:
            return False
        return self._commit(replace(self._state, search_query=query))

    def set_folder_filter(self, folder_filter: Optional[str]) -> bool:
        """Show all notes (None), unfiled notes (models.UNFILED) or one folder."""
        folder_filter = folder_filter or None
        if folder_filter not in (None, UNFILED) and folder_filter not in self._state.folders:
            return self._reject("set_folder_filter", "unknown folder %s", folder_filter)
        if folder_filter == self._state.folder_filter:
            return False
        return self._commit(replace(self._state, folder_filter=folder_filter))
