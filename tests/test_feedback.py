"""Tests for feedback records, the JSON-backed store and CSV export."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from errlens.catalog import ExplanationStyle
from errlens.errors import PersistFailed
from errlens.session.feedback import (
    FEEDBACK_QUESTIONS,
    FeedbackRecord,
    FeedbackStore,
    answer_problems,
    default_export_name,
    parse_export,
    records_to_csv,
)
from errlens.session.identity import Identity

T0 = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
ALL_YES = {q.id: True for q in FEEDBACK_QUESTIONS}


def make_record(snippet_id="snippet-1", name="list_index.py", answers=None, minutes=0,
                style=ExplanationStyle.PRAGMATIC, model="llama3.2:latest"):
    return FeedbackRecord(
        identity=Identity(snippet_id, style, model),
        snippet_name=name,
        answers=dict(ALL_YES) if answers is None else answers,
        submitted_at=T0 + timedelta(minutes=minutes),
    )


class TestAnswers:

    def test_complete_answers(self):
        assert answer_problems(ALL_YES) == []

    def test_missing_and_unknown(self):
        answers = dict(ALL_YES)
        del answers["hasHint"]
        answers["funny"] = True
        problems = answer_problems(answers)
        assert "missing answer for 'hasHint'" in problems
        assert "unknown question 'funny'" in problems

    def test_non_boolean(self):
        answers = dict(ALL_YES, correct="yes")
        assert answer_problems(answers) == ["answer for 'correct' must be yes/no"]

    def test_record_detaches_answers(self):
        answers = dict(ALL_YES)
        record = make_record(answers=answers)
        answers["correct"] = False
        assert record.answers["correct"] is True


class TestExport:

    def test_empty_is_none(self):
        assert records_to_csv([]) is None
        assert FeedbackStore().export_all() is None

    def test_header_plus_one_line_per_record(self):
        records = [make_record(minutes=i) for i in range(3)]
        text = records_to_csv(records)

        lines = text.splitlines()
        assert len(lines) == 4
        assert lines[0] == (
            "snippet_id,snippet_name,style,model,submitted_at,"
            "comprehensible,correct,improvement,hasHint,hintCorrect"
        )
        assert lines[1].startswith("snippet-1,list_index.py,pragmatic,llama3.2:latest,2026-03-01T09:30:00+00:00,")

    def test_byte_stable(self):
        records = [make_record(minutes=i) for i in range(3)]
        assert records_to_csv(records) == records_to_csv(list(records))

    def test_header_is_union_of_keys(self):
        records = [
            make_record(answers={"comprehensible": True}),
            make_record(answers={"correct": False, "comprehensible": False}),
        ]
        text = records_to_csv(records)
        header = text.splitlines()[0].split(",")
        assert header[5:] == ["comprehensible", "correct"]

        rows = parse_export(text)
        assert rows[0]["answers"] == {"comprehensible": True}
        assert rows[1]["answers"] == {"comprehensible": False, "correct": False}

    def test_round_trip_answers(self):
        answers = {"comprehensible": True, "correct": False, "improvement": True,
                   "hasHint": False, "hintCorrect": False}
        rows = parse_export(records_to_csv([make_record(answers=answers)]))
        assert rows[0]["answers"] == answers

    def test_escaping(self):
        record = make_record(name='odd, "quoted" name.py')
        rows = parse_export(records_to_csv([record]))
        assert rows[0]["snippet_name"] == 'odd, "quoted" name.py'
        assert rows[0]["style"] == "pragmatic"

    def test_default_export_name(self):
        assert default_export_name(datetime(2026, 1, 2, 3, 4, 5)) == "feedback_20260102_030405.csv"


class TestFeedbackStore:

    def test_missing_file_is_empty(self, tmp_path):
        store = FeedbackStore(tmp_path / "feedback.json")
        assert len(store) == 0
        assert not (tmp_path / "feedback.json").exists()

    def test_append_persists_and_reloads(self, tmp_path):
        path = tmp_path / "nested" / "feedback.json"
        store = FeedbackStore(path)
        store.append(make_record())
        store.append(make_record(snippet_id="snippet-2", name="division_zero.py", minutes=1))

        data = json.loads(path.read_text())
        assert [r["snippet_id"] for r in data] == ["snippet-1", "snippet-2"]
        assert store.pending == []

        reloaded = FeedbackStore(path)
        assert reloaded.records == store.records

    def test_append_keeps_records_written_by_others(self, tmp_path):
        path = tmp_path / "feedback.json"
        first = FeedbackStore(path)
        second = FeedbackStore(path)

        first.append(make_record(minutes=0))
        second.append(make_record(minutes=1))

        data = json.loads(path.read_text())
        assert len(data) == 2

    def test_multiple_records_same_identity(self, tmp_path):
        store = FeedbackStore(tmp_path / "feedback.json")
        store.append(make_record(minutes=0))
        store.append(make_record(minutes=5))
        assert len(store) == 2
        assert store.records[0].submitted_at != store.records[1].submitted_at

    def test_persist_failure_keeps_record_and_retries(self, tmp_path, monkeypatch):
        path = tmp_path / "feedback.json"
        store = FeedbackStore(path)
        original_write = store._write_atomic

        def broken_write(data):
            raise OSError("disk full")

        monkeypatch.setattr(store, "_write_atomic", broken_write)
        record = make_record()
        with pytest.raises(PersistFailed) as exc:
            store.append(record)

        assert isinstance(exc.value.cause, OSError)
        assert store.records == [record]
        assert store.pending == [record]
        assert not path.exists()

        monkeypatch.setattr(store, "_write_atomic", original_write)
        later = make_record(minutes=1)
        store.append(later)

        assert store.pending == []
        assert len(json.loads(path.read_text())) == 2

    def test_flush_retries(self, tmp_path, monkeypatch):
        store = FeedbackStore(tmp_path / "feedback.json")
        original_write = store._write_atomic

        def broken_write(data):
            raise OSError("read-only file system")

        monkeypatch.setattr(store, "_write_atomic", broken_write)
        with pytest.raises(PersistFailed):
            store.append(make_record())

        monkeypatch.setattr(store, "_write_atomic", original_write)
        store.flush()
        assert store.pending == []
        assert len(FeedbackStore(tmp_path / "feedback.json")) == 1

    def test_corrupt_file_is_not_overwritten(self, tmp_path):
        path = tmp_path / "feedback.json"
        path.write_text("{not json")

        with pytest.raises(PersistFailed):
            FeedbackStore(path)

    def test_corrupted_after_load(self, tmp_path):
        path = tmp_path / "feedback.json"
        store = FeedbackStore(path)
        path.write_text('{"records": []}')

        with pytest.raises(PersistFailed):
            store.append(make_record())
        assert path.read_text() == '{"records": []}'
        assert len(store.pending) == 1

    def test_in_memory_store(self):
        store = FeedbackStore()
        store.append(make_record())
        assert store.pending == []
        assert len(store) == 1

    def test_export_to(self, tmp_path):
        store = FeedbackStore()
        assert store.export_to(tmp_path / "empty.csv") is None
        assert not (tmp_path / "empty.csv").exists()

        store.append(make_record())
        out = store.export_to(tmp_path / "out.csv")
        assert out.read_text() == store.export_all()

    def test_export_to_unwritable_path(self, tmp_path):
        store = FeedbackStore()
        store.append(make_record())

        with pytest.raises(PersistFailed) as exc:
            store.export_to(tmp_path / "missing" / "out.csv")
        assert isinstance(exc.value.cause, OSError)

        with pytest.raises(PersistFailed):
            store.export_to(tmp_path)
        assert len(store) == 1
