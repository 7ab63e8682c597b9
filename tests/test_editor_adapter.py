import asyncio

import pytest

from editor_adapter import TEMPLATES, EditorAdapter
from models import Contact
from prompt_modal import ContinuationModal


class StubAI:
    def __init__(self, tags=None, summary="", error=None):
        self.tags = tags or []
        self.summary = summary
        self.error = error
        self.seen = []

    async def auto_tag(self, plain_text):
        self.seen.append(plain_text)
        if self.error:
            raise self.error
        return self.tags

    async def summarize(self, rich_content):
        self.seen.append(rich_content)
        if self.error:
            raise self.error
        return self.summary


class SwitchingAI(StubAI):
    """Switches the displayed note while the request is in flight."""

    def __init__(self, adapter_ref, **kw):
        super().__init__(**kw)
        self.adapter_ref = adapter_ref

    def _switch(self):
        adapter = self.adapter_ref[0]
        adapter.mount("n2" if adapter.note.id == "n1" else "n1")

    async def auto_tag(self, plain_text):
        await asyncio.sleep(0)
        self._switch()
        return ["late"]

    async def summarize(self, rich_content):
        await asyncio.sleep(0)
        self._switch()
        return "late summary"


@pytest.fixture
def modal():
    return ContinuationModal()


@pytest.fixture
def adapter(store, modal, fake_engines, fake_view):
    a = EditorAdapter(store, modal, fake_engines, ai_service=StubAI(), view=fake_view)
    yield a
    a.unmount()


def test_first_mount_creates_engine_lazily(adapter, fake_engines, fake_view):
    assert fake_engines.instances == []
    adapter.mount("n1")
    assert len(fake_engines.instances) == 1
    engine = fake_engines.instances[0]
    assert engine.initial_content == "<p>one</p>"
    assert fake_view.engine is engine
    assert fake_view.placeholder is False
    assert fake_view.title == "First"
    assert fake_view.folder_options == (["f1"], "f1")


def test_switching_note_destroys_once_and_creates_once(adapter, fake_engines):
    adapter.mount("n1")
    first = fake_engines.instances[0]
    adapter.mount("n2")
    assert first.destroy_calls == 1
    assert len(fake_engines.instances) == 2
    assert fake_engines.instances[1].initial_content == "<p>two</p>"
    assert adapter.engine is fake_engines.instances[1]


def test_no_note_shows_placeholder_without_engine(adapter, fake_engines, fake_view):
    adapter.mount(None)
    assert fake_engines.instances == []
    assert fake_view.placeholder is True
    assert fake_view.ai_visible is False


def test_ai_toggle_keeps_engine_instance(adapter, store, fake_engines, fake_view):
    adapter.mount("n1")
    engine = adapter.engine
    assert fake_view.ai_visible is False
    store.set_ai_enabled(True)
    assert fake_view.ai_visible is True
    assert adapter.engine is engine
    assert len(fake_engines.instances) == 1
    store.set_ai_enabled(False)
    assert fake_view.ai_visible is False
    assert engine.destroy_calls == 0


def test_folder_changes_refresh_options_in_place(adapter, store, fake_engines, fake_view):
    adapter.mount("n1")
    fid = store.create_folder("Home")
    assert fake_view.folder_options == (["f1", fid], "f1")
    store.delete_folder("f1")
    assert fake_view.folder_options == ([fid], None)
    assert len(fake_engines.instances) == 1


def test_unrelated_mutations_do_not_touch_editor(adapter, store, fake_view):
    adapter.mount("n1")
    fake_view.calls.clear()
    store.add_contact(Contact("pk2"))
    store.update_note("n2", {"title": "other"})
    assert fake_view.calls == []


def test_engine_changes_write_back_full_note(adapter, store):
    adapter.mount("n1")
    adapter.engine.type("<p>typed</p>")
    note = store.get_state().notes["n1"]
    assert note.content == "<p>typed</p>"
    assert note.title == "First"
    assert note.folder_id == "f1"
    # write-back must not recreate the engine
    assert adapter.engine.destroy_calls == 0


def test_pending_edits_of_old_engine_are_discarded(adapter, store, fake_engines):
    adapter.mount("n1")
    old = adapter.engine
    adapter.mount("n2")
    old.type("<p>late edit</p>")
    assert store.get_state().notes["n1"].content == "<p>one</p>"


def test_deleting_bound_note_tears_down_engine(adapter, store, fake_view):
    adapter.mount("n1")
    engine = adapter.engine
    store.delete_note("n1")
    assert engine.destroy_calls == 1
    assert adapter.engine is None
    assert fake_view.placeholder is True


def test_unmount_releases_engine_and_subscription(adapter, store):
    baseline = store.subscriber_count
    adapter.mount("n1")
    assert store.subscriber_count == baseline + 1
    engine = adapter.engine
    adapter.unmount()
    adapter.unmount()
    assert engine.destroy_calls == 1
    assert store.subscriber_count == baseline


def test_title_and_folder_inputs(adapter, store):
    adapter.mount("n2")
    assert adapter.set_title("Renamed") is True
    assert adapter.set_folder("f1") is True
    assert store.get_state().notes["n2"].title == "Renamed"
    assert store.get_state().notes["n2"].folder_id == "f1"
    assert adapter.set_folder("") is True
    assert store.get_state().notes["n2"].folder_id is None


def test_toolbar_commands_dispatch_to_engine(adapter):
    assert adapter.toggle_bold() is False
    adapter.mount("n1")
    adapter.toggle_bold()
    adapter.toggle_italic()
    adapter.toggle_bullet_list()
    adapter.toggle_ordered_list()
    names = [c[0] for c in adapter.engine.commands]
    assert names == ["toggle_bold", "toggle_italic", "toggle_bullet_list", "toggle_ordered_list"]


def test_add_tag_prompt(adapter, modal):
    adapter.mount("n1")
    adapter.request_tag()
    assert (modal.title, modal.label) == ("Add Tag", "Tag")
    modal.set_input("project")
    modal.confirm()
    assert adapter.engine.commands == [("set_semantic_tag", {"tag": "project"})]


def test_add_tag_empty_input_does_nothing(adapter, modal):
    adapter.mount("n1")
    adapter.request_tag()
    modal.confirm()
    assert adapter.engine.commands == []


def test_key_value_flow_inserts_text(adapter, modal):
    adapter.mount("n1")
    adapter.request_key_value()
    assert modal.label == "Key"
    modal.set_input("status")
    modal.confirm()
    assert modal.label == "Value"
    modal.set_input("done")
    modal.confirm()
    assert "status::done" in adapter.engine.content
    assert not modal.is_pending


def test_key_value_empty_value_inserts_nothing(adapter, modal):
    adapter.mount("n1")
    adapter.request_key_value()
    modal.set_input("status")
    modal.confirm()
    modal.confirm()
    assert adapter.engine.commands == []
    assert not modal.is_pending


def test_key_value_empty_key_stops_chain(adapter, modal):
    adapter.mount("n1")
    adapter.request_key_value()
    modal.confirm()
    assert not modal.is_pending
    assert adapter.engine.commands == []


def test_prompt_result_dropped_after_note_switch(adapter, modal, fake_engines):
    adapter.mount("n1")
    first = adapter.engine
    adapter.request_tag()
    adapter.mount("n2")
    modal.set_input("stale")
    modal.confirm()
    assert first.commands == []
    assert adapter.engine.commands == []


def test_templates(adapter, modal):
    adapter.mount("n1")
    assert adapter.apply_template("Nope") is False
    adapter.request_template()
    modal.set_input("2")
    modal.confirm()
    assert adapter.engine.commands == [("insert_content", {"content": TEMPLATES["Todo List"]})]


@pytest.mark.asyncio
async def test_ai_calls_are_gated_on_flag(adapter, store):
    adapter.set_ai_service(StubAI(tags=["a"], summary="s"))
    adapter.mount("n1")
    assert await adapter.auto_tag() is False
    assert await adapter.summarize() is False
    assert adapter.engine.commands == []


@pytest.mark.asyncio
async def test_auto_tag_applies_joined_tags(adapter, store):
    ai = StubAI(tags=["#work", "@bob"])
    adapter.set_ai_service(ai)
    store.set_ai_enabled(True)
    adapter.mount("n1")
    assert await adapter.auto_tag() is True
    assert ai.seen == ["<p>one</p>"]
    assert adapter.engine.commands == [("set_semantic_tag", {"tag": "#work @bob"})]


@pytest.mark.asyncio
async def test_summarize_inserts_summary(adapter, store):
    adapter.set_ai_service(StubAI(summary="Short."))
    store.set_ai_enabled(True)
    adapter.mount("n1")
    assert await adapter.summarize() is True
    assert adapter.engine.commands == [("insert_content", {"content": "Short."})]


@pytest.mark.asyncio
async def test_ai_failures_and_empty_results_are_silent(adapter, store):
    store.set_ai_enabled(True)
    adapter.mount("n1")
    adapter.set_ai_service(StubAI(error=RuntimeError("offline")))
    assert await adapter.auto_tag() is False
    assert await adapter.summarize() is False
    adapter.set_ai_service(StubAI())
    assert await adapter.auto_tag() is False
    assert await adapter.summarize() is False
    assert adapter.engine.commands == []


@pytest.mark.asyncio
async def test_stale_ai_result_is_dropped(store, modal, fake_engines, fake_view):
    ref = []
    adapter = EditorAdapter(store, modal, fake_engines, view=fake_view)
    ref.append(adapter)
    adapter.set_ai_service(SwitchingAI(ref))
    store.set_ai_enabled(True)
    adapter.mount("n1")
    assert await adapter.auto_tag() is False
    assert await adapter.summarize() is False
    assert all(e.commands == [] for e in fake_engines.instances)
    adapter.unmount()


def test_prepare_ai_snapshots_content_and_applies_on_current_note(adapter, store):
    adapter.mount("n1")
    assert adapter.prepare_ai("auto_tag") is None
    store.set_ai_enabled(True)
    call, apply = adapter.prepare_ai("auto_tag")
    adapter.engine.type("<p>changed</p>")
    assert asyncio.run(call()) == []
    assert adapter.ai_service.seen == ["<p>one</p>"]
    assert apply(["#x"]) is True
    assert adapter.engine.commands == [("set_semantic_tag", {"tag": "#x"})]
    with pytest.raises(ValueError):
        adapter.prepare_ai("translate")


def test_prepared_result_dropped_after_note_switch(adapter, store, fake_engines):
    store.set_ai_enabled(True)
    adapter.mount("n1")
    _call, apply = adapter.prepare_ai("summarize")
    adapter.mount("n2")
    assert apply("Late.") is False
    assert all(e.commands == [] for e in fake_engines.instances)
