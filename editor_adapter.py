"""
editor_adapter.py
Binds one authoring engine instance to the note being displayed.

Contract:
- A different note id tears down the current engine (pending edits are
  dropped) and builds a new one from the new note's content.
- The same note id with other changes (folders, AI flag, the note's own
  content coming back from the store) only refreshes the folder list and the
  AI controls; the engine, its cursor and its undo history survive.
- Every engine change is written back with store.update_note; the store merges
  it over the full note.
- AI results are applied only if the adapter is still bound to the same note
  and engine after the await.

The view is optional and duck-typed: set_folder_options(folders, selected_id),
set_ai_controls_visible(visible), show_placeholder(visible), set_title(text),
attach_engine(engine).
"""

from __future__ import annotations

import logging
from typing import Callable, List, Mapping, Optional

from models import AppState, Folder, Note, folder_for_note
from services.ai import NullAIService

logger = logging.getLogger("notention.editor")

TEMPLATES = {
    "Meeting Note": (
        "<h2>Meeting Note</h2><p><strong>Date:</strong></p><p><strong>Attendees:</strong></p>"
        "<p><strong>Agenda:</strong></p><p><strong>Notes:</strong></p>"
    ),
    "Todo List": "<h2>Todo List</h2><ul><li></li></ul>",
}
_TEMPLATE_CHOICES = {"1": "Meeting Note", "2": "Todo List"}


class EditorAdapter:
    def __init__(
        self,
        store,
        modal,
        engine_factory: Callable,
        ai_service=None,
        view=None,
        command_extensions: Optional[Mapping[str, Callable]] = None,
    ):
        self._store = store
        self._modal = modal
        self._engine_factory = engine_factory
        self._ai = ai_service if ai_service is not None else NullAIService()
        self._view = view
        self._command_extensions = dict(command_extensions or {})

        self._note: Optional[Note] = None
        self._engine = None
        self._folders: List[Folder] = []
        self._ai_enabled = False
        self._mounted_id: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # --- read-only state ------------------------------------------------------

    @property
    def note(self) -> Optional[Note]:
        return self._note

    @property
    def engine(self):
        return self._engine

    @property
    def folders(self) -> List[Folder]:
        return list(self._folders)

    @property
    def ai_enabled(self) -> bool:
        return self._ai_enabled

    def set_ai_service(self, ai_service) -> None:
        self._ai = ai_service if ai_service is not None else NullAIService()

    # --- lifecycle ------------------------------------------------------------

    def mount(self, note_id: Optional[str]) -> None:
        """Follow ``note_id`` in the store until unmount() or the next mount()."""
        self._release_subscription()
        self._mounted_id = note_id or None
        self._unsubscribe = self._store.subscribe(self._bind_from_state, self._select)
        self._bind_from_state(self._store.get_state())

    def unmount(self) -> None:
        self._release_subscription()
        self._mounted_id = None
        self._destroy_engine()
        self._note = None

    def _release_subscription(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _select(self, state: AppState):
        note = state.notes.get(self._mounted_id) if self._mounted_id else None
        return [note, state.folders, state.ai_enabled]

    def _bind_from_state(self, state: AppState) -> None:
        note = state.notes.get(self._mounted_id) if self._mounted_id else None
        self.bind(note, list(state.folders.values()), state.ai_enabled)

    def bind(self, note: Optional[Note], folders, ai_enabled: bool) -> None:
        self._folders = list(folders or [])
        self._ai_enabled = bool(ai_enabled)
        new_id = note.id if note is not None else None
        current_id = self._note.id if self._note is not None else None
        self._note = note
        if new_id != current_id or (note is not None and self._engine is None):
            self._rebuild()
        self._refresh_affordances()

    def _rebuild(self) -> None:
        self._destroy_engine()
        note = self._note
        if note is None:
            self._call_view("attach_engine", None)
            self._call_view("show_placeholder", True)
            return
        engine = self._engine_factory(note.content, self._command_extensions)
        engine.on_change(lambda: self._on_engine_change(engine))
        self._engine = engine
        logger.debug("Editor engine created for note %s", note.id)
        self._call_view("show_placeholder", False)
        self._call_view("set_title", note.title)
        self._call_view("attach_engine", engine)

    def _destroy_engine(self) -> None:
        engine, self._engine = self._engine, None
        if engine is not None:
            engine.destroy()
            logger.debug("Editor engine destroyed")

    def _refresh_affordances(self) -> None:
        if self._note is not None:
            state = self._store.get_state()
            folder = folder_for_note(state, self._note)
            selected = folder.id if folder is not None else None
        else:
            selected = None
        self._call_view("set_folder_options", list(self._folders), selected)
        self._call_view("set_ai_controls_visible", self._ai_enabled)

    def _call_view(self, name: str, *args) -> None:
        if self._view is None:
            return
        method = getattr(self._view, name, None)
        if method is not None:
            method(*args)

    # --- store write-back -----------------------------------------------------

    def _on_engine_change(self, engine) -> None:
        # Late notifications from a torn-down engine are dropped
        if self._note is None or engine is not self._engine:
            return
        self._store.update_note(self._note.id, {"content": engine.get_content()})

    def set_title(self, title: str) -> bool:
        if self._note is None:
            return False
        return self._store.update_note(self._note.id, {"title": title or ""})

    def set_folder(self, folder_id: Optional[str]) -> bool:
        if self._note is None:
            return False
        return self._store.move_note_to_folder(self._note.id, folder_id or None)

    # --- toolbar ----------------------------------------------------------------

    def _dispatch(self, name: str, **args) -> bool:
        if self._engine is None:
            return False
        return bool(self._engine.dispatch_command(name, **args))

    def toggle_bold(self) -> bool:
        return self._dispatch("toggle_bold")

    def toggle_italic(self) -> bool:
        return self._dispatch("toggle_italic")

    def toggle_bullet_list(self) -> bool:
        return self._dispatch("toggle_bullet_list")

    def toggle_ordered_list(self) -> bool:
        return self._dispatch("toggle_ordered_list")

    def _is_current(self, note_id: Optional[str], engine) -> bool:
        return (
            engine is not None
            and self._engine is engine
            and self._note is not None
            and self._note.id == note_id
        )

    def _context(self):
        return (self._note.id if self._note is not None else None), self._engine

    def request_tag(self) -> None:
        note_id, engine = self._context()
        if engine is None:
            return

        def on_tag(tag: str):
            if tag and self._is_current(note_id, engine):
                engine.dispatch_command("set_semantic_tag", tag=tag)

        self._modal.set_content("Add Tag", "Tag", on_tag)

    def request_key_value(self) -> None:
        note_id, engine = self._context()
        if engine is None:
            return

        def on_key(key: str):
            if not key:
                return

            def on_value(value: str):
                if value and self._is_current(note_id, engine):
                    engine.dispatch_command("insert_content", content=f"{key}::{value}")

            self._modal.set_content("Add Key-Value", "Value", on_value)

        self._modal.set_content("Add Key-Value", "Key", on_key)

    def apply_template(self, name: str) -> bool:
        content = TEMPLATES.get(name)
        if content is None:
            return False
        return self._dispatch("insert_content", content=content)

    def request_template(self) -> None:
        if self._engine is None:
            return
        labels = ", ".join(f"{k} = {v}" for k, v in sorted(_TEMPLATE_CHOICES.items()))

        def on_choice(choice: str):
            choice = (choice or "").strip()
            self.apply_template(_TEMPLATE_CHOICES.get(choice, choice))

        self._modal.set_content("Apply Template", f"Template ({labels})", on_choice)

    # --- AI ------------------------------------------------------------------------

    @property
    def ai_service(self):
        return self._ai

    def prepare_ai(self, kind: str):
        """Snapshot the bound note for one AI call.

        Returns ``(call, apply)``, or None when AI is disabled or no note is
        bound. ``call()`` builds the coroutine to await and touches no widget,
        so it may run on another thread. ``apply(result)`` must run on the GUI
        thread; it writes the result into the engine only if the same note and
        engine are still bound, and returns whether anything was applied.
        """
        if not self._ai_enabled:
            return None
        note_id, engine = self._context()
        if engine is None:
            return None
        ai = self._ai
        if kind == "auto_tag":
            text = engine.get_text()
            return (lambda: ai.auto_tag(text)), (lambda tags: self._apply_tags(note_id, engine, tags))
        if kind == "summarize":
            content = engine.get_content()
            return (lambda: ai.summarize(content)), (lambda summary: self._apply_summary(note_id, engine, summary))
        raise ValueError(f"unknown AI action: {kind}")

    def _apply_tags(self, note_id, engine, tags) -> bool:
        if not tags:
            return False
        if not self._is_current(note_id, engine):
            logger.info("Auto-tag result dropped; note %s is no longer being edited", note_id)
            return False
        return bool(engine.dispatch_command("set_semantic_tag", tag=" ".join(tags)))

    def _apply_summary(self, note_id, engine, summary) -> bool:
        if not summary:
            return False
        if not self._is_current(note_id, engine):
            logger.info("Summary dropped; note %s is no longer being edited", note_id)
            return False
        return bool(engine.dispatch_command("insert_content", content=summary))

    async def _run_ai(self, kind: str) -> bool:
        prepared = self.prepare_ai(kind)
        if prepared is None:
            return False
        call, apply = prepared
        try:
            result = await call()
        except Exception as e:
            logger.warning("AI %s failed: %s", kind, e)
            return False
        return apply(result)

    async def auto_tag(self) -> bool:
        return await self._run_ai("auto_tag")

    async def summarize(self) -> bool:
        return await self._run_ai("summarize")
