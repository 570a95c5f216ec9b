import asyncio
import time

import pytest

from page_composer.exceptions import PageNotFoundError, SessionClosedError
from page_composer.models.page import Page
from page_composer.models.session import SaveStatus
from page_composer.page_store import InMemoryPageStore
from page_composer.session import EditSession
from page_composer.settings import AutosaveWindows, ComposerSettings

QUICK = ComposerSettings(autosave=AutosaveWindows(edit=0.01, reorder=0.01, settings=0.01, bulk=0.01, reset=0.01))
# Windows long enough that only explicit saves persist during a test.
MANUAL = ComposerSettings(autosave=AutosaveWindows(edit=30, reorder=30, settings=30, bulk=30, reset=30))


class SlowPageStore(InMemoryPageStore):
    def persist_page(self, page_id, page):
        time.sleep(0.1)
        return super().persist_page(page_id, page)


def make_store(store_cls=InMemoryPageStore):
    store = store_cls()
    store.create_page(Page(slug="home", title="Home", page_type="home"))
    return store


def test_open_missing_page_is_fatal():
    async def scenario():
        await EditSession.open(InMemoryPageStore(), "missing")

    with pytest.raises(PageNotFoundError):
        asyncio.run(scenario())


def test_edits_are_autosaved_after_quiet_period():
    store = make_store()

    async def scenario():
        session = await EditSession.open(store, "home", settings=QUICK)
        session.add_section("text")
        session.add_section("image")
        session.add_section("cta")
        assert session.dirty
        await asyncio.sleep(0.1)
        await session.scheduler.wait_idle()
        session.close()
        return session

    session = asyncio.run(scenario())
    stored = store.load_page("home")
    assert [section.type for section in stored.sections] == ["text", "image", "cta"]
    assert not session.dirty
    assert session.save_status is SaveStatus.saved
    assert session.last_saved is not None


def test_add_selects_new_section_and_remove_clears_selection():
    async def scenario():
        session = await EditSession.open(make_store(), "home", settings=MANUAL)
        added = session.add_section("text")
        assert session.selected_section_id == added.id
        session.remove_section(added.id)
        assert session.selected_section_id is None
        session.close()

    asyncio.run(scenario())


def test_noop_edit_does_not_mark_dirty():
    async def scenario():
        session = await EditSession.open(make_store(), "home", settings=MANUAL)
        changed = session.remove_section("does-not-exist")
        moved = session.move_section_up(0)
        session.close()
        return changed, moved, session.dirty

    assert asyncio.run(scenario()) == (False, False, False)


def test_undo_and_redo_restore_saved_snapshots():
    async def scenario():
        session = await EditSession.open(make_store(), "home", settings=MANUAL)
        session.add_section("text")
        await session.save()
        session.add_section("image")
        await session.save()
        assert len(session.history) == 3

        assert session.undo()
        assert [section.type for section in session.sections] == ["text"]
        assert session.selected_section_id is None
        assert session.dirty
        assert session.redo()
        assert [section.type for section in session.sections] == ["text", "image"]
        session.close()

    asyncio.run(scenario())


def test_saving_an_undo_restore_keeps_redo_branch():
    async def scenario():
        session = await EditSession.open(make_store(), "home", settings=MANUAL)
        session.add_section("text")
        await session.save()
        session.add_section("image")
        await session.save()

        session.undo()
        await session.save()
        assert len(session.history) == 3
        assert session.history.can_redo

        session.add_section("video")
        await session.save()
        assert not session.history.can_redo
        session.close()

    asyncio.run(scenario())


def test_edit_during_save_is_not_overwritten_by_server_copy():
    store = make_store(SlowPageStore)

    async def scenario():
        session = await EditSession.open(store, "home", settings=MANUAL)
        session.add_section("text")
        save = asyncio.create_task(session.save())
        await asyncio.sleep(0.03)
        session.add_section("image")
        assert await save
        result = [section.type for section in session.sections], session.dirty
        await session.save()
        session.close()
        return result

    types, dirty = asyncio.run(scenario())
    assert types == ["text", "image"]
    assert dirty is True
    assert [section.type for section in store.load_page("home").sections] == ["text", "image"]


def test_save_of_deleted_page_marks_session_gone():
    store = make_store()

    async def scenario():
        session = await EditSession.open(store, "home", settings=MANUAL)
        store.delete_page(session.draft.id)
        session.add_section("text")
        ok = await session.save()
        return ok, session

    ok, session = asyncio.run(scenario())
    assert ok is False
    assert session.gone
    assert session.closed
    assert session.save_status is SaveStatus.error
    assert session.notices[-1].level == "error"
    with pytest.raises(SessionClosedError):
        session.add_section("image")


def test_invalid_import_becomes_notice_and_keeps_draft():
    async def scenario():
        session = await EditSession.open(make_store(), "home", settings=MANUAL)
        session.add_section("text")
        before = session.sections
        ok = session.import_document('{"page": {}}')
        session.close()
        return ok, before, session

    ok, before, session = asyncio.run(scenario())
    assert ok is False
    assert session.sections == before
    assert session.notices[-1].message == "Invalid configuration file format"

    session.dismiss(session.notices[-1].id)
    assert session.notices == ()


def test_import_replaces_sections_with_fresh_ids():
    async def scenario():
        session = await EditSession.open(make_store(), "home", settings=MANUAL)
        session.add_section("text")
        document = session.export_document().model_dump(mode="json", by_alias=True)
        original_ids = {section.id for section in session.sections}
        assert session.import_document(document)
        session.close()
        return original_ids, session.sections

    original_ids, sections = asyncio.run(scenario())
    assert [section.type for section in sections] == ["text"]
    assert not original_ids & {section.id for section in sections}


def test_publish_saves_then_publishes():
    store = make_store()

    async def scenario():
        session = await EditSession.open(store, "home", settings=MANUAL)
        session.add_section("cta")
        ok = await session.publish()
        session.close()
        return ok, session

    ok, session = asyncio.run(scenario())
    assert ok
    assert session.draft.is_published
    assert not session.dirty
    stored = store.load_page("home")
    assert stored.is_published
    assert [section.type for section in stored.sections] == ["cta"]


def test_setting_update_and_reset():
    async def scenario():
        session = await EditSession.open(make_store(), "home", settings=MANUAL)
        session.update_setting("backgroundColor", "#000000")
        session.add_section("text")
        session.reset_page()
        session.close()
        return session.draft

    draft = asyncio.run(scenario())
    assert draft.settings.background_color == "#000000"
    assert draft.sections == ()


def test_apply_template_replaces_sections():
    async def scenario():
        session = await EditSession.open(make_store(), "home", settings=MANUAL)
        session.add_section("video")
        session.apply_template([{"type": "welcome", "title": "Hi"}, {"type": "cta"}])
        session.close()
        return session.sections

    sections = asyncio.run(scenario())
    assert [(section.type, section.position) for section in sections] == [("welcome", 0), ("cta", 1)]


def test_closed_session_ignores_save():
    async def scenario():
        session = await EditSession.open(make_store(), "home", settings=MANUAL)
        session.close()
        return await session.save()

    assert asyncio.run(scenario()) is False


def test_section_edits_flow_through_session():
    async def scenario():
        session = await EditSession.open(make_store(), "home", settings=MANUAL)
        first = session.add_section("cta")
        second = session.add_section("text")
        session.update_config(first.id, buttonText="Join")
        session.update_section(second.id, title="Body")
        copy = session.duplicate_section(first.id)
        session.reorder_sections(2, 0)
        session.toggle_section(second.id)
        session.close()
        return session, first, copy

    session, first, copy = asyncio.run(scenario())
    sections = session.sections
    assert [section.id for section in sections] == [copy.id, first.id, sections[2].id]
    assert [section.position for section in sections] == [0, 1, 2]
    assert sections[0].config == {"buttonText": "Join"}
    assert sections[2].title == "Body"
    assert sections[2].is_active is False
    assert session.validate() == {}
    rendered = session.render()
    assert len(rendered.sections) == 3


def test_undo_during_save_keeps_history_aligned_with_draft():
    store = make_store(SlowPageStore)

    async def scenario():
        session = await EditSession.open(store, "home", settings=MANUAL)
        session.add_section("text")
        await session.save()
        session.add_section("image")
        save = asyncio.create_task(session.save())
        await asyncio.sleep(0.03)
        assert session.undo()
        assert await save
        await session.save()
        session.close()
        return session

    session = asyncio.run(scenario())
    snapshots = [[section.type for section in page.sections] for page in session.history.snapshots()]
    assert snapshots == [[], ["text"]]
    assert session.history.index == 0
    assert session.history.current.sections == session.draft.sections
    assert store.load_page("home").sections == ()


def test_invalid_values_become_notices():
    async def scenario():
        session = await EditSession.open(make_store(), "home", settings=MANUAL)
        section = session.add_section("text")
        ok_section = session.update_section(section.id, is_active="sometimes")
        ok_setting = session.update_setting("sponsorBannerPosition", "sideways")
        session.close()
        return ok_section, ok_setting, session

    ok_section, ok_setting, session = asyncio.run(scenario())
    assert (ok_section, ok_setting) == (False, False)
    messages = [notice.message for notice in session.notices]
    assert messages[0].startswith("Invalid section values:")
    assert messages[1].startswith("Invalid page setting:")
    assert session.sections[0].is_active is True
    assert session.draft.settings.sponsor_banner_position == "bottom"
