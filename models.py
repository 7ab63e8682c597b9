"""
models.py
Value objects for the application state tree: contacts, notes, folders and the
user profile. All of them are frozen; the store replaces them instead of
mutating them so unchanged parts of the tree keep their identity.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

UNFILED = "__unfiled__"

_MARKUP = re.compile(r"<head>.*?</head>|<[^>]+>", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class Contact:
    pubkey: str
    alias: str = ""

    @property
    def display_name(self) -> str:
        return self.alias or self.pubkey


@dataclass(frozen=True)
class Folder:
    id: str
    name: str


@dataclass(frozen=True)
class Note:
    id: str
    title: str = ""
    content: str = ""
    folder_id: Optional[str] = None


@dataclass(frozen=True)
class Preferences:
    ai_enabled: bool = False
    ollama_api_endpoint: str = ""
    ollama_chat_model: str = "llama3"


@dataclass(frozen=True)
class UserProfile:
    contacts: Tuple[Contact, ...] = ()
    preferences: Preferences = field(default_factory=Preferences)

    def find_contact(self, pubkey: str) -> Optional[Contact]:
        for contact in self.contacts:
            if contact.pubkey == pubkey:
                return contact
        return None


@dataclass(frozen=True)
class AppState:
    """Root of the state tree. ``user_profile`` is None until a profile is loaded."""

    user_profile: Optional[UserProfile] = None
    notes: Dict[str, Note] = field(default_factory=dict)
    folders: Dict[str, Folder] = field(default_factory=dict)
    search_query: str = ""
    # None shows every note, UNFILED only notes without a folder, otherwise a folder id
    folder_filter: Optional[str] = None

    @property
    def ai_enabled(self) -> bool:
        if self.user_profile is None:
            return False
        return bool(self.user_profile.preferences.ai_enabled)


def folder_for_note(state: AppState, note: Optional[Note]) -> Optional[Folder]:
    """Return the folder a note is filed under, or None when it is unfiled.

    A folder id that no longer resolves is treated the same as no folder.
    """
    if note is None or not note.folder_id:
        return None
    return state.folders.get(note.folder_id)


def note_matches(note: Note, query: str) -> bool:
    """Case-insensitive match of ``query`` against the title and the text of the content."""
    query = (query or "").strip().lower()
    if not query:
        return True
    if query in note.title.lower():
        return True
    return query in _MARKUP.sub(" ", note.content).lower()


def visible_notes(state: AppState) -> List[Note]:
    """Notes passing the folder filter and search query, ordered by title."""
    wanted = state.folder_filter
    out = []
    for note in state.notes.values():
        if wanted == UNFILED:
            if folder_for_note(state, note) is not None:
                continue
        elif wanted is not None and note.folder_id != wanted:
            continue
        if note_matches(note, state.search_query):
            out.append(note)
    out.sort(key=lambda n: (n.title.lower(), n.id))
    return out
