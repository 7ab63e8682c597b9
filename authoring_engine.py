"""
authoring_engine.py
QTextEdit-backed rich text engine used by the note editor.

The editor adapter only talks to the engine through a small surface:
construct(initial_content, command_extensions), get_content(), get_text(),
on_change(callback), dispatch_command(name, **args) and destroy(). Toolbar
commands are registered by name; callers may add or override commands through
``command_extensions`` (name -> callable(text_edit, **args)).
"""

from __future__ import annotations

import html
import logging
from typing import Callable, Dict, List, Mapping, Optional

from PyQt5 import QtWidgets
from PyQt5.QtGui import QFont, QTextCharFormat, QTextListFormat

logger = logging.getLogger("notention.engine")

DEFAULT_FONT_FAMILY = "Sans Serif"
DEFAULT_FONT_SIZE_PT = 11
TAG_BACKGROUND = "#e0f7fa"

Command = Callable[..., None]


# ----------------------------- Commands -----------------------------

def _toggle_char_format(text_edit: QtWidgets.QTextEdit, flag_attr: str):
    current = text_edit.currentCharFormat()
    fmt = QTextCharFormat()
    if flag_attr == "bold":
        on = current.fontWeight() <= QFont.Normal
        fmt.setFontWeight(QFont.Bold if on else QFont.Normal)
    elif flag_attr == "italic":
        fmt.setFontItalic(not current.fontItalic())
    cursor = text_edit.textCursor()
    if not cursor.hasSelection():
        cursor.select(cursor.WordUnderCursor)
    cursor.mergeCharFormat(fmt)
    text_edit.mergeCurrentCharFormat(fmt)


def _is_ordered_style(style) -> bool:
    return style in (
        QTextListFormat.ListDecimal,
        QTextListFormat.ListLowerAlpha,
        QTextListFormat.ListUpperAlpha,
        QTextListFormat.ListLowerRoman,
        QTextListFormat.ListUpperRoman,
    )


def _toggle_list(text_edit: QtWidgets.QTextEdit, ordered: bool):
    cursor = text_edit.textCursor()
    block = cursor.block()
    cur_list = block.textList()
    if cur_list is not None:
        # Same list kind: remove list formatting
        is_ordered = _is_ordered_style(cur_list.format().style())
        if ordered == is_ordered:
            cur_list.remove(block)
            bf = block.blockFormat()
            bf.setIndent(0)
            cursor.setBlockFormat(bf)
            return
    lf = QTextListFormat()
    lf.setIndent(1)
    lf.setStyle(QTextListFormat.ListDecimal if ordered else QTextListFormat.ListDisc)
    cursor.createList(lf)


def _insert_content(text_edit: QtWidgets.QTextEdit, content: str = ""):
    if not content:
        return
    cursor = text_edit.textCursor()
    if content.lstrip().startswith("<"):
        cursor.insertHtml(content)
    else:
        cursor.insertText(content)
    text_edit.setTextCursor(cursor)


def _set_semantic_tag(text_edit: QtWidgets.QTextEdit, tag: str = ""):
    tag = (tag or "").strip()
    if not tag:
        return
    cursor = text_edit.textCursor()
    cursor.beginEditBlock()
    try:
        if cursor.hasSelection():
            pos = max(cursor.position(), cursor.anchor())
            cursor.setPosition(pos)
        cursor.insertHtml(
            f'<span style="background-color: {TAG_BACKGROUND};">{html.escape(tag)}</span>'
        )
        # Typing after the chip continues in the plain format
        cursor.insertText(" ", QTextCharFormat())
    finally:
        cursor.endEditBlock()
    text_edit.setTextCursor(cursor)


BUILTIN_COMMANDS: Dict[str, Command] = {
    "toggle_bold": lambda te: _toggle_char_format(te, "bold"),
    "toggle_italic": lambda te: _toggle_char_format(te, "italic"),
    "toggle_bullet_list": lambda te: _toggle_list(te, ordered=False),
    "toggle_ordered_list": lambda te: _toggle_list(te, ordered=True),
    "insert_content": _insert_content,
    "set_semantic_tag": _set_semantic_tag,
}


# ----------------------------- Engine -----------------------------

class QtAuthoringEngine:
    def __init__(
        self,
        initial_content: str = "",
        command_extensions: Optional[Mapping[str, Command]] = None,
        parent: QtWidgets.QWidget = None,
    ):
        self._commands: Dict[str, Command] = dict(BUILTIN_COMMANDS)
        if command_extensions:
            self._commands.update(command_extensions)
        self._listeners: List[Callable[[], None]] = []
        self._destroyed = False

        te = QtWidgets.QTextEdit(parent)
        te.setObjectName("noteContentEdit")
        te.setAcceptRichText(True)
        try:
            te.document().setDefaultFont(QFont(DEFAULT_FONT_FAMILY, DEFAULT_FONT_SIZE_PT))
        except Exception:
            pass
        te.blockSignals(True)
        try:
            if initial_content:
                te.setHtml(initial_content)
            else:
                te.setHtml("")
        finally:
            te.blockSignals(False)
        te.document().setModified(False)
        te.textChanged.connect(self._emit_change)
        self._text_edit = te

    @property
    def widget(self) -> QtWidgets.QTextEdit:
        return self._text_edit

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def _emit_change(self):
        if self._destroyed:
            return
        for callback in list(self._listeners):
            callback()

    def on_change(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def get_content(self) -> str:
        if self._destroyed:
            return ""
        return self._text_edit.toHtml()

    def get_text(self) -> str:
        if self._destroyed:
            return ""
        return self._text_edit.toPlainText()

    def commands(self) -> List[str]:
        return sorted(self._commands)

    def dispatch_command(self, name: str, **args) -> bool:
        """Run a named command against the document; focuses the editor first."""
        if self._destroyed:
            return False
        command = self._commands.get(name)
        if command is None:
            logger.warning("Unknown editor command: %s", name)
            return False
        try:
            self._text_edit.setFocus()
        except Exception:
            pass
        command(self._text_edit, **args)
        return True

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self._listeners.clear()
        try:
            self._text_edit.textChanged.disconnect(self._emit_change)
        except Exception:
            pass
        try:
            self._text_edit.hide()
            self._text_edit.setParent(None)
            self._text_edit.deleteLater()
        except Exception:
            pass
