import pytest

import settings_manager as sm
from main import MainWindow, build_initial_state
from models import AppState, Contact, Preferences, UserProfile
from services.ai import NullAIService, OllamaAIService
from state_store import EntityStore
from ui_settings import SettingsDialog


@pytest.fixture
def window(qapp, sample_state):
    store = EntityStore(sample_state)
    win = MainWindow(store)
    win.show()
    yield win
    win.close()
    win.deleteLater()


def test_build_initial_state_from_settings():
    sm.set_saved_contacts([Contact("pk1", "Alice"), Contact("pk1", "Dup"), Contact("pk2")])
    sm.set_ollama_settings(endpoint="http://localhost:11434", model="mistral")
    sm.set_ai_enabled(True)
    state = build_initial_state()
    assert [c.pubkey for c in state.user_profile.contacts] == ["pk1", "pk2"]
    assert state.user_profile.preferences == Preferences(
        ai_enabled=True, ollama_api_endpoint="http://localhost:11434", ollama_chat_model="mistral"
    )


def test_starts_with_null_ai_service_without_endpoint(window):
    assert type(window.editor.adapter.ai_service) is NullAIService
    assert not window.act_ai.isChecked()


def test_preference_change_swaps_ai_service_and_persists(window):
    store = window.store
    store.update_preferences({"ai_enabled": True, "ollama_api_endpoint": "http://host:11434"})
    service = window.editor.adapter.ai_service
    assert isinstance(service, OllamaAIService)
    assert service.endpoint == "http://host:11434"
    assert window.act_ai.isChecked()
    assert sm.get_ai_enabled() is True
    assert sm.get_ollama_settings() == {"endpoint": "http://host:11434", "model": "llama3"}


def test_menu_toggle_updates_store(window):
    window.act_ai.trigger()
    assert window.store.get_state().ai_enabled is True
    assert sm.get_ai_enabled() is True


def test_settings_dialog_round_trip(qapp, window):
    dlg = window.open_settings()
    assert isinstance(dlg, SettingsDialog)
    assert dlg.endpoint_edit.text() == ""
    assert dlg.hint_label.text() == ""
    dlg.ai_checkbox.setChecked(True)
    assert dlg.hint_label.text() != ""
    dlg.endpoint_edit.setText("http://localhost:11434")
    dlg.model_edit.setText("mistral")
    dlg.accept()
    prefs = window.store.get_state().user_profile.preferences
    assert prefs == Preferences(True, "http://localhost:11434", "mistral")
    assert window.editor.adapter.ai_service.model == "mistral"


def test_settings_dialog_cancel_changes_nothing(qapp):
    store = EntityStore(AppState(user_profile=UserProfile()))
    dlg = SettingsDialog(store)
    before = store.get_state()
    dlg.endpoint_edit.setText("http://elsewhere")
    dlg.reject()
    assert store.get_state() is before
    dlg.deleteLater()


def test_note_list_opens_note_in_editor(window):
    window.notes.note_selected.emit("n2")
    assert window.editor.adapter.note.id == "n2"


def test_contacts_are_saved_when_they_change(window):
    window.store.add_contact(Contact("pk9", "Zed"))
    assert {"pubkey": "pk9", "alias": "Zed"} in sm.get_saved_contacts()


def test_close_releases_subscriptions(qapp, sample_state):
    store = EntityStore(sample_state)
    win = MainWindow(store)
    win.show()
    assert store.subscriber_count > 0
    win.close()
    assert store.subscriber_count == 0
    assert sm.get_window_geometry() is not None
    win.deleteLater()
