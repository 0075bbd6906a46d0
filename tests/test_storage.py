"""Tests for the state store and snapshot (de)serialization.

WHY: The snapshot is read once at startup from a file anyone can edit.
A single bad field must not wipe the session, and a broken file must
never stop the workspace from starting.

HOW: Write raw JSON under the storage key, load it back, and check which
fields survived. Organized by concern:
  - TestStateStore: get/set/remove semantics
  - TestLoadFallbacks: whole-snapshot fallbacks
  - TestFieldFallbacks: per-field degradation
  - TestSectionRevival: per-section validation rules
  - TestRoundTrip: save → load keeps the data and the camelCase keys
"""

from __future__ import annotations

import json

import pytest

from script_workspace.config import STORAGE_KEY
from script_workspace.core.models import ScriptSection, WorkspaceSnapshot
from script_workspace.core.workspace import Workspace
from script_workspace.storage import (
    StateStore,
    clear_snapshot,
    load_snapshot,
    save_snapshot,
)


def _write_raw(store: StateStore, payload) -> None:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    store.set_item(STORAGE_KEY, text)


def _section(section_id: str = "section-0-abc", **extra) -> dict:
    data = {"id": section_id, "title": "Intro", "body": "Hello there."}
    data.update(extra)
    return data


class TestStateStore:
    def test_missing_key_returns_none(self, store):
        assert store.get_item("nothing") is None

    def test_set_then_get(self, store):
        store.set_item("key", "value")
        assert store.get_item("key") == "value"

    def test_set_overwrites(self, store):
        store.set_item("key", "first")
        store.set_item("key", "second")
        assert store.get_item("key") == "second"

    def test_remove_item(self, store):
        store.set_item("key", "value")
        store.remove_item("key")
        assert store.get_item("key") is None

    def test_remove_missing_key_is_noop(self, store):
        store.remove_item("never-written")

    def test_creates_root_directory(self, tmp_path):
        store = StateStore(tmp_path / "a" / "b")
        store.set_item("key", "value")
        assert (tmp_path / "a" / "b" / "key.json").is_file()

    def test_rejects_path_like_keys(self, store):
        with pytest.raises(ValueError):
            store.get_item("../escape")


class TestLoadFallbacks:
    def test_absent_key_gives_default(self, store):
        assert load_snapshot(store) == WorkspaceSnapshot()

    def test_unparsable_json_gives_default(self, store):
        _write_raw(store, "{not json")
        assert load_snapshot(store) == WorkspaceSnapshot()

    def test_undecodable_bytes_give_default(self, store):
        store.root.mkdir(parents=True, exist_ok=True)
        (store.root / "{}.json".format(STORAGE_KEY)).write_bytes(b'{"transcript": "\xff\xfe"}')
        assert load_snapshot(store) == WorkspaceSnapshot()

    def test_undecodable_snapshot_does_not_block_startup(self, store):
        store.root.mkdir(parents=True, exist_ok=True)
        (store.root / "{}.json".format(STORAGE_KEY)).write_bytes(b"\xff\xfe\x00garbage")
        assert Workspace.from_store(store).sections == []

    def test_non_object_gives_default(self, store):
        _write_raw(store, [1, 2, 3])
        assert load_snapshot(store) == WorkspaceSnapshot()

    def test_default_snapshot_fields(self):
        snapshot = WorkspaceSnapshot()
        assert snapshot.transcript == ""
        assert snapshot.transcribed_audio_url is None
        assert snapshot.last_uploaded_file_name is None
        assert snapshot.sections == []
        assert snapshot.batch_zip_url is None


class TestFieldFallbacks:
    def test_each_field_falls_back_independently(self, store):
        _write_raw(store, {
            "transcript": 42,
            "transcribedAudioUrl": "https://media.example/a.mp3",
            "lastUploadedFileName": ["not", "a", "string"],
            "sections": [_section()],
            "batchZipUrl": {"url": "nested"},
        })
        snapshot = load_snapshot(store)
        assert snapshot.transcript == ""
        assert snapshot.transcribed_audio_url == "https://media.example/a.mp3"
        assert snapshot.last_uploaded_file_name is None
        assert len(snapshot.sections) == 1
        assert snapshot.batch_zip_url is None

    def test_sections_not_a_list_gives_empty(self, store):
        _write_raw(store, {"transcript": "kept", "sections": {"id": "x"}})
        snapshot = load_snapshot(store)
        assert snapshot.transcript == "kept"
        assert snapshot.sections == []

    def test_missing_fields_use_defaults(self, store):
        _write_raw(store, {"transcript": "only this"})
        snapshot = load_snapshot(store)
        assert snapshot.transcript == "only this"
        assert snapshot.sections == []

    def test_extra_fields_are_ignored(self, store):
        _write_raw(store, {"transcript": "t", "somethingNew": True})
        assert load_snapshot(store).transcript == "t"


class TestSectionRevival:
    def test_is_synthesizing_is_forced_false(self, store):
        _write_raw(store, {"sections": [_section(isSynthesizing=True)]})
        assert load_snapshot(store).sections[0].is_synthesizing is False

    def test_missing_error_defaults_to_none(self, store):
        _write_raw(store, {"sections": [_section()]})
        section = load_snapshot(store).sections[0]
        assert section.error is None
        assert section.audio_url is None

    def test_terminal_results_survive(self, store):
        _write_raw(store, {"sections": [
            _section("s1", audioUrl="https://media.example/1.mp3"),
            _section("s2", error="failed"),
        ]})
        sections = load_snapshot(store).sections
        assert sections[0].audio_url == "https://media.example/1.mp3"
        assert sections[1].error == "failed"

    def test_mistyped_optional_fields_degrade(self, store):
        _write_raw(store, {"sections": [_section(audioUrl=5, error=["x"])]})
        section = load_snapshot(store).sections[0]
        assert section.audio_url is None
        assert section.error is None

    def test_malformed_sections_are_dropped(self, store):
        _write_raw(store, {"sections": [
            _section("good"),
            {"id": "no-body", "title": "T"},
            {"id": 7, "title": "T", "body": "B"},
            "not an object",
            None,
        ]})
        assert [s.id for s in load_snapshot(store).sections] == ["good"]

    def test_duplicate_ids_keep_first(self, store):
        _write_raw(store, {"sections": [
            _section("dup", title="First"),
            _section("dup", title="Second"),
        ]})
        sections = load_snapshot(store).sections
        assert len(sections) == 1
        assert sections[0].title == "First"


class TestRoundTrip:
    def test_save_then_load(self, store):
        snapshot = WorkspaceSnapshot(
            transcript="transcript text",
            transcribed_audio_url="https://media.example/src.mp3",
            last_uploaded_file_name="lecture.mp4",
            sections=[ScriptSection(id="s1", title="A", body="line1\nline2", audio_url="u")],
            batch_zip_url="https://media.example/all.zip",
        )
        save_snapshot(store, snapshot)
        assert load_snapshot(store) == snapshot

    def test_saved_json_uses_camel_case(self, store):
        save_snapshot(store, WorkspaceSnapshot(
            sections=[ScriptSection(id="s1", title="A", body="B", is_synthesizing=True)],
        ))
        data = json.loads(store.get_item(STORAGE_KEY))
        assert set(data) == {
            "transcript",
            "transcribedAudioUrl",
            "lastUploadedFileName",
            "sections",
            "batchZipUrl",
        }
        assert data["sections"][0]["isSynthesizing"] is False
        assert "audioUrl" in data["sections"][0]

    def test_non_ascii_is_stored_readably(self, store):
        save_snapshot(store, WorkspaceSnapshot(transcript="こんにちは"))
        assert "こんにちは" in store.get_item(STORAGE_KEY)

    def test_clear_snapshot(self, store):
        save_snapshot(store, WorkspaceSnapshot(transcript="x"))
        clear_snapshot(store)
        assert store.get_item(STORAGE_KEY) is None
        assert load_snapshot(store) == WorkspaceSnapshot()
