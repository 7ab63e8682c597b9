from PyQt5.QtGui import QFont

from authoring_engine import QtAuthoringEngine


def test_initial_content_does_not_fire_change(qapp):
    engine = QtAuthoringEngine("<p>hello</p>")
    changes = []
    engine.on_change(lambda: changes.append(1))
    assert engine.get_text() == "hello"
    assert changes == []
    engine.widget.insertPlainText("!")
    assert changes
    engine.destroy()


def test_insert_content_plain_and_html(qapp):
    engine = QtAuthoringEngine("")
    assert engine.dispatch_command("insert_content", content="status::done") is True
    engine.dispatch_command("insert_content", content="<b>bold</b>")
    assert "status::done" in engine.get_text()
    assert "bold" in engine.get_text()
    engine.destroy()


def test_semantic_tag_inserts_chip(qapp):
    engine = QtAuthoringEngine("")
    engine.dispatch_command("set_semantic_tag", tag="#work")
    assert "#work" in engine.get_text()
    assert "background-color" in engine.get_content()
    engine.destroy()


def test_bold_toggle(qapp):
    engine = QtAuthoringEngine("")
    engine.dispatch_command("toggle_bold")
    assert engine.widget.currentCharFormat().fontWeight() == QFont.Bold
    engine.dispatch_command("toggle_bold")
    assert engine.widget.currentCharFormat().fontWeight() == QFont.Normal
    engine.destroy()


def test_list_toggle_on_and_off(qapp):
    engine = QtAuthoringEngine("<p>item</p>")
    engine.dispatch_command("toggle_bullet_list")
    assert engine.widget.textCursor().block().textList() is not None
    engine.dispatch_command("toggle_bullet_list")
    assert engine.widget.textCursor().block().textList() is None
    engine.destroy()


def test_command_extensions_and_unknown_commands(qapp):
    seen = []
    engine = QtAuthoringEngine("", {"shout": lambda te, word="": seen.append(word.upper())})
    assert engine.dispatch_command("shout", word="hi") is True
    assert seen == ["HI"]
    assert engine.dispatch_command("nope") is False
    assert "shout" in engine.commands()
    engine.destroy()


def test_destroy_is_idempotent_and_silences_engine(qapp):
    engine = QtAuthoringEngine("<p>x</p>")
    changes = []
    engine.on_change(lambda: changes.append(1))
    engine.destroy()
    engine.destroy()
    assert engine.destroyed
    assert engine.get_content() == ""
    assert engine.dispatch_command("toggle_bold") is False
    assert changes == []
