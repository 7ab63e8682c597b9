"""
Pytest configuration and fixtures
"""
import os
import sys
from pathlib import Path

import pytest

# Headless Qt for widget tests
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Project root holds flat top-level modules
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from models import AppState, Contact, Folder, Note, Preferences, UserProfile  # noqa: E402


@pytest.fixture(autouse=True)
def settings_dir(tmp_path, monkeypatch):
    """Keep settings.json and logs out of the real user profile."""
    d = tmp_path / "settings"
    monkeypatch.setenv("NOTENTION_SETTINGS_DIR", str(d))
    return d


@pytest.fixture(scope="session")
def qapp():
    from PyQt5 import QtWidgets

    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app


class FakeEngine:
    """Records commands instead of editing a document."""

    instances = []

    def __init__(self, initial_content="", command_extensions=None):
        self.initial_content = initial_content
        self.content = initial_content
        self.extensions = dict(command_extensions or {})
        self.commands = []
        self.listeners = []
        self.destroy_calls = 0
        FakeEngine.instances.append(self)

    def on_change(self, callback):
        self.listeners.append(callback)

    def type(self, content):
        self.content = content
        for cb in list(self.listeners):
            cb()

    def get_content(self):
        return self.content

    def get_text(self):
        return self.content

    def dispatch_command(self, name, **args):
        self.commands.append((name, args))
        if name == "insert_content":
            self.content += args.get("content", "")
        return True

    def destroy(self):
        self.destroy_calls += 1


class FakeView:
    def __init__(self):
        self.calls = []
        self.ai_visible = None
        self.folder_options = None
        self.engine = None
        self.placeholder = None

    def set_folder_options(self, folders, selected_id):
        self.calls.append("set_folder_options")
        self.folder_options = ([f.id for f in folders], selected_id)

    def set_ai_controls_visible(self, visible):
        self.calls.append("set_ai_controls_visible")
        self.ai_visible = visible

    def show_placeholder(self, visible):
        self.placeholder = visible

    def set_title(self, text):
        self.title = text

    def attach_engine(self, engine):
        self.engine = engine


@pytest.fixture
def fake_engines():
    FakeEngine.instances = []
    yield FakeEngine
    FakeEngine.instances = []


@pytest.fixture
def fake_view():
    return FakeView()


@pytest.fixture
def sample_state():
    folder = Folder(id="f1", name="Work")
    return AppState(
        user_profile=UserProfile(contacts=(Contact("pk1", "Alice"),), preferences=Preferences()),
        notes={
            "n1": Note(id="n1", title="First", content="<p>one</p>", folder_id="f1"),
            "n2": Note(id="n2", title="Second", content="<p>two</p>"),
        },
        folders={"f1": folder},
    )


@pytest.fixture
def store(sample_state):
    from state_store import EntityStore

    return EntityStore(sample_state)
