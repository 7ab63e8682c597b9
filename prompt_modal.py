"""
prompt_modal.py
One reusable text prompt that can be chained into short wizards.

ContinuationModal holds at most one pending request: a title, a label and a
continuation that receives the typed value. Confirming hands the value to the
continuation; the continuation may install the next prompt, so a multi-field
form is just a chain of continuations ("Public Key" -> "Alias" -> add contact)
with no step index anywhere. Cancelling drops the continuation.

PromptDialog is the Qt surface for the engine. The engine also works without a
surface (it then keeps the input text itself), which is how the tests drive it.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PyQt5 import QtWidgets
from PyQt5.QtCore import Qt

logger = logging.getLogger("notention.prompt")

Continuation = Callable[[str], None]


class _Pending:
    __slots__ = ("title", "label", "continuation", "fired")

    def __init__(self, title: str, label: str, continuation: Continuation):
        self.title = title
        self.label = label
        self.continuation = continuation
        self.fired = False


class ContinuationModal:
    """Single-flight prompt state machine: Idle <-> AwaitingInput."""

    def __init__(self, surface=None):
        self._surface = surface
        self._pending: Optional[_Pending] = None
        self._input = ""

    def attach_surface(self, surface) -> None:
        self._surface = surface
        if self._pending is not None:
            surface.show_prompt(self._pending.title, self._pending.label)

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    @property
    def title(self) -> str:
        return self._pending.title if self._pending else ""

    @property
    def label(self) -> str:
        return self._pending.label if self._pending else ""

    @property
    def input_value(self) -> str:
        if self._surface is not None:
            return self._surface.read_input()
        return self._input

    def set_input(self, text: str) -> None:
        if self._surface is not None:
            self._surface.set_input(text)
        else:
            self._input = text or ""

    def _clear_input(self) -> None:
        self._input = ""
        if self._surface is not None:
            self._surface.clear_input()

    def set_content(self, title: str, label: str, continuation: Continuation) -> None:
        """Show a prompt; replaces any prompt still waiting (its continuation never runs)."""
        if self._pending is not None and not self._pending.fired:
            logger.debug("Prompt %r replaced by %r", self._pending.title, title)
        self._pending = _Pending(title, label, continuation)
        self._clear_input()
        if self._surface is not None:
            self._surface.show_prompt(title, label)

    def confirm(self) -> None:
        pending = self._pending
        if pending is None or pending.fired:
            return
        pending.fired = True
        value = self.input_value
        self._clear_input()
        try:
            pending.continuation(value)
        finally:
            # A continuation that chained a new prompt leaves it installed and visible.
            if self._pending is pending:
                self._pending = None
                if self._surface is not None:
                    self._surface.hide_prompt()

    def cancel(self) -> None:
        if self._pending is None:
            return
        self._pending = None
        self._clear_input()
        if self._surface is not None:
            self._surface.hide_prompt()


class PromptDialog(QtWidgets.QDialog):
    """Non-blocking dialog backing a ContinuationModal."""

    def __init__(self, engine: ContinuationModal, parent: QtWidgets.QWidget = None):
        super().__init__(parent)
        self._engine = engine
        self.setModal(True)
        self.setMinimumWidth(360)

        v = QtWidgets.QVBoxLayout(self)
        self._title = QtWidgets.QLabel(self)
        try:
            f = self._title.font()
            f.setPointSize(f.pointSize() + 4)
            f.setBold(True)
            self._title.setFont(f)
        except Exception:
            pass
        v.addWidget(self._title)
        self._label = QtWidgets.QLabel(self)
        v.addWidget(self._label)
        self._edit = QtWidgets.QLineEdit(self)
        self._label.setBuddy(self._edit)
        v.addWidget(self._edit)

        row = QtWidgets.QHBoxLayout()
        row.addStretch(1)
        self.cancel_button = QtWidgets.QPushButton("Cancel", self)
        self.confirm_button = QtWidgets.QPushButton("Confirm", self)
        self.confirm_button.setDefault(True)
        row.addWidget(self.cancel_button)
        row.addWidget(self.confirm_button)
        v.addLayout(row)

        self.confirm_button.clicked.connect(self._engine.confirm)
        self.cancel_button.clicked.connect(self._engine.cancel)
        # Esc and the window close button go through reject()
        self.rejected.connect(self._engine.cancel)
        engine.attach_surface(self)

    # PromptSurface
    def show_prompt(self, title: str, label: str) -> None:
        self.setWindowTitle(title)
        self._title.setText(title)
        self._label.setText(label)
        self.show()
        try:
            self.raise_()
            self._edit.setFocus(Qt.OtherFocusReason)
        except Exception:
            pass

    def hide_prompt(self) -> None:
        self.hide()

    def read_input(self) -> str:
        return self._edit.text()

    def set_input(self, text: str) -> None:
        self._edit.setText(text or "")

    def clear_input(self) -> None:
        self._edit.clear()
