import json

import pytest

from studio_core.engine.dispatcher import Dispatcher
from studio_core.infrastructure.storage.kv_store import JsonFileStore, MemoryStore
from studio_core.infrastructure.storage.session_archive import HISTORY_KEY, SessionArchive

from conftest import FakeAdapter


def _dispatcher(settings_stub):
    return Dispatcher(
        adapters={"openai": FakeAdapter("openai"), "deepseek": FakeAdapter("deepseek")},
        api_keys={"openai": "sk", "deepseek": "ds"},
        cfg=settings_stub,
    )


@pytest.mark.asyncio
async def test_save_then_load_restores_without_aliasing(tmp_path, settings_stub):
    archive = SessionArchive(JsonFileStore(root=tmp_path / ".storage"))
    d = _dispatcher(settings_stub)
    d.set_mode("reasoning")
    d.set_triple_run(True)
    await d.submit("first question")

    saved = d.snapshot()
    record_id = d.save_session(archive)
    assert record_id

    await d.submit("second question")
    d.set_mode("standard")
    d.state.transcript[0].responses["openai"] = "tampered"

    assert d.load_session(archive, record_id) is True
    assert d.state.mode == "reasoning"
    assert d.state.triple_run is True
    assert d.state.conversations.snapshot() == saved.conversations
    assert d.state.transcript == saved.transcript
    assert d.state.last_responses == saved.last_responses
    assert d.state.last_prompt == "first question"

    # 恢复后的状态再修改也不会影响归档内容
    d.state.conversations.append_turn("openai", d.state.conversations.history("openai")[0])
    assert archive.load(record_id).conversations == saved.conversations


@pytest.mark.asyncio
async def test_list_is_most_recent_first(settings_stub):
    archive = SessionArchive(MemoryStore())
    d = _dispatcher(settings_stub)
    await d.submit("a" * 80)
    first = d.save_session(archive)
    await d.submit("follow up")
    d.set_mode("reasoning")
    second = d.save_session(archive)

    summaries = archive.list()
    assert [s.id for s in summaries] == [second, first]
    assert summaries[0].turns == 2
    assert summaries[0].mode_label == "Reasoning"
    assert summaries[1].headline == "a" * 60
    assert summaries[1].mode_label == "Precision"


def test_save_with_empty_transcript_is_skipped(settings_stub):
    statuses = []
    archive = SessionArchive(MemoryStore())
    d = Dispatcher(adapters={"openai": FakeAdapter("openai")}, cfg=settings_stub, on_status=statuses.append)

    assert d.save_session(archive) is None
    assert statuses == ["Nothing to save yet."]
    assert archive.list() == []


@pytest.mark.asyncio
async def test_delete_and_missing_ids(settings_stub):
    archive = SessionArchive(MemoryStore())
    d = _dispatcher(settings_stub)
    await d.submit("hi")
    record_id = d.save_session(archive)

    archive.delete("session-does-not-exist")
    assert [s.id for s in archive.list()] == [record_id]

    archive.delete(record_id)
    assert record_id not in {s.id for s in archive.list()}
    assert archive.load(record_id) is None
    assert d.load_session(archive, record_id) is False


@pytest.mark.parametrize("raw", ["{not json", json.dumps({"id": "x"}), json.dumps([1, "two", None])])
def test_corrupt_archive_reads_as_empty(raw):
    archive = SessionArchive(MemoryStore({HISTORY_KEY: raw}))
    assert archive.list() == []
    assert archive.load("x") is None


def test_legacy_record_defaults(settings_stub):
    legacy = [{"id": "session-1", "savedAt": 1700000000000, "transcript": [{"prompt": "old", "mode": "standard"}]}]
    archive = SessionArchive(MemoryStore({HISTORY_KEY: json.dumps(legacy)}))
    d = _dispatcher(settings_stub)

    assert d.load_session(archive, "session-1") is True
    assert d.state.mode == "standard"
    assert d.state.triple_run is False
    assert d.state.conversations.history("openai") == []
    assert d.state.last_responses == {"openai": [], "deepseek": []}
    assert d.state.last_prompt == "old"
    assert archive.list()[0].headline == "old"


GOOD_RECORD = {"id": "session-good", "savedAt": 5, "transcript": [{"prompt": "fine"}], "mode": "reasoning"}


@pytest.mark.parametrize(
    "record, expected",
    [
        ({"id": "s1", "savedAt": "yesterday", "transcript": []}, (0, "Session", 0, "Precision")),
        ({"id": "s1", "savedAt": 7, "transcript": {"k": "v"}}, (7, "Session", 0, "Precision")),
        ({"id": "s1", "savedAt": 7, "transcript": [], "mode": ["x"]}, (7, "Session", 0, "Precision")),
        ({"id": "s1", "savedAt": [1], "transcript": [{"prompt": 5}, "junk"]}, (0, "Session", 2, "Precision")),
    ],
)
def test_malformed_record_fields_degrade_in_listing(record, expected):
    archive = SessionArchive(MemoryStore({HISTORY_KEY: json.dumps([record, GOOD_RECORD])}))
    summaries = archive.list()

    assert [s.id for s in summaries] == ["session-good", "s1"]
    s1 = summaries[1]
    assert (s1.saved_at, s1.headline, s1.turns, s1.mode_label) == expected
    assert summaries[0].headline == "fine"
    assert summaries[0].mode_label == "Reasoning"


@pytest.mark.parametrize("record", [{"savedAt": 1}, {"id": 42, "transcript": []}, {"id": None}])
def test_records_without_usable_id_are_skipped(record):
    archive = SessionArchive(MemoryStore({HISTORY_KEY: json.dumps([record, GOOD_RECORD])}))
    assert [s.id for s in archive.list()] == ["session-good"]


def test_load_record_with_non_string_mode(settings_stub):
    broken = {"id": "s1", "transcript": [{"prompt": "p"}], "mode": ["x"]}
    archive = SessionArchive(MemoryStore({HISTORY_KEY: json.dumps([broken])}))
    d = _dispatcher(settings_stub)
    d.set_mode("reasoning")

    assert d.load_session(archive, "s1") is True
    assert d.state.mode == "standard"
