"""Tests for reconciling a new answer list against stored answer records."""
import pytest

from moodle_ordering.core.errors import NotEnoughAnswers, StorageError
from moodle_ordering.core.models import AnswerItem
from moodle_ordering.services.attachments import AttachmentStore
from moodle_ordering.services.reconciler import plan_answers, apply_plan, delete_orphans
from moodle_ordering.services.storage import ANSWERS, MemoryStorage


def _seed(storage, question_id, texts):
    ids = []
    for i, text in enumerate(texts, 1):
        ids.append(storage.insert_record(ANSWERS, {"question": question_id, "fraction": i, "answer": text}))
    return ids


def _existing(storage, question_id):
    return storage.get_records(ANSWERS, {"question": question_id}, order_by="fraction")


class RecordingFiles(AttachmentStore):
    """Ghi lại thứ tự gọi để kiểm tra."""

    def __init__(self, storage=None):
        self.storage = storage
        self.calls = []

    def commit_draft_area(self, draft_id, context_id, owner_id, text=""):
        exists = self.storage.get_record(ANSWERS, {"id": owner_id}) is not None if self.storage else None
        self.calls.append(("commit", draft_id, owner_id, exists))
        return text.replace("draft", "final")

    def delete_area(self, context_id, owner_id):
        self.calls.append(("delete_area", owner_id))


class TestPlan:
    def test_reordered_items_keep_their_ids(self, storage):
        a, b, c = _seed(storage, 7, ["Alpha", "Beta", "Gamma"])
        items = [AnswerItem("Beta", stable_id=b), AnswerItem("Alpha", stable_id=a), AnswerItem("Delta")]
        plan = plan_answers(7, items, _existing(storage, 7))
        assert [p.record_id for p in plan.answers] == [b, a, None]
        assert [p.item.ordinal for p in plan.answers] == [1, 2, 3]
        assert plan.orphans == [c]

    def test_reordered_plain_texts_match_by_content(self, storage):
        a, b, c = _seed(storage, 7, ["Alpha", "Beta", "Gamma"])
        plan = plan_answers(7, ["Beta", "Alpha", "Delta"], _existing(storage, 7))
        assert [p.record_id for p in plan.answers] == [b, a, None]
        assert plan.orphans == [c]

    def test_positional_reuse_when_nothing_matches(self, storage):
        a, b, c = _seed(storage, 7, ["Alpha", "Beta", "Gamma"])
        plan = plan_answers(7, ["One", "Two"], _existing(storage, 7))
        assert [p.record_id for p in plan.answers] == [a, b]
        assert plan.orphans == [c]

    def test_positional_reuse_then_inserts(self, storage):
        (a,) = _seed(storage, 7, ["Alpha"])
        plan = plan_answers(7, ["One", "Two", "Three"], _existing(storage, 7))
        assert [p.record_id for p in plan.answers] == [a, None, None]
        assert len(plan.updates) == 1 and len(plan.inserts) == 2
        assert plan.orphans == []

    def test_blank_items_removed_and_reindexed(self):
        plan = plan_answers(None, ["", "A", "   ", "0", {"text": "<p>B</p>"}], [])
        assert [p.item.text for p in plan.answers] == ["A", "0", "B"]
        assert [p.item.ordinal for p in plan.answers] == [1, 2, 3]

    def test_not_enough_answers(self):
        with pytest.raises(NotEnoughAnswers) as exc:
            plan_answers(None, ["Only", "", "  ", "<p><br></p>"], [])
        assert exc.value.minimum == 2
        assert exc.value.found == 1

    def test_text_normalized_before_planning(self):
        plan = plan_answers(None, ['<p><img src="x" style="vertical-align:middle"></p>', "B"], [])
        assert plan.answers[0].item.text == '<img src="x" style="vertical-align:text-top">'

    def test_caller_items_not_mutated(self):
        items = [AnswerItem("  A  "), AnswerItem("B")]
        plan_answers(None, items, [])
        assert items[0].text == "  A  " and items[0].ordinal == 0


class TestApply:
    def test_writes_then_orphans_deleted_separately(self, storage):
        a, b, c = _seed(storage, 7, ["Alpha", "Beta", "Gamma"])
        files = RecordingFiles(storage)
        plan = plan_answers(7, ["Beta", "Alpha", "Delta"], _existing(storage, 7))
        saved = apply_plan(plan, storage, files, context_id=1)
        assert storage.get_record(ANSWERS, {"id": c}) is not None
        assert files.calls == []

        assert delete_orphans(plan, storage, files, context_id=1) == 1

        rows = _existing(storage, 7)
        assert [(r["id"], r["answer"], r["fraction"]) for r in rows] == [
            (b, "Beta", 1), (a, "Alpha", 2), (saved[2].stable_id, "Delta", 3),
        ]
        assert saved[2].stable_id not in (a, b, c)
        assert storage.get_record(ANSWERS, {"id": c}) is None
        assert files.calls == [("delete_area", c)]

    def test_draft_committed_after_record_exists(self, storage):
        files = RecordingFiles(storage)
        items = [AnswerItem("see draft pic", draft_id=55), AnswerItem("plain")]
        plan = plan_answers(3, items, [])
        saved = apply_plan(plan, storage, files, context_id=1)
        assert files.calls == [("commit", 55, saved[0].stable_id, True)]
        assert storage.get_record(ANSWERS, {"id": saved[0].stable_id})["answer"] == "see final pic"
        assert saved[0].draft_id is None

    def test_failed_update_reports_kind_and_id(self):
        class FailingStorage(MemoryStorage):
            def update_record(self, table, fields):
                return False

        storage = FailingStorage()
        (a,) = _seed(storage, 9, ["Alpha"])
        plan = plan_answers(9, ["Alpha", "Beta"], _existing(storage, 9))
        with pytest.raises(StorageError) as exc:
            apply_plan(plan, storage, RecordingFiles(), context_id=1)
        assert exc.value.kind == ANSWERS
        assert exc.value.record_id == a
        assert "question_answers (id=%d)" % a in str(exc.value)

    def test_failed_insert_reports_kind(self):
        class NoInsert(MemoryStorage):
            def insert_record(self, table, fields):
                return 0

        plan = plan_answers(9, ["A", "B"], [])
        with pytest.raises(StorageError, match="cannot insert record: question_answers"):
            apply_plan(plan, NoInsert(), RecordingFiles(), context_id=1)

    def test_needs_question_id(self, storage):
        plan = plan_answers(None, ["A", "B"], [])
        with pytest.raises(ValueError):
            apply_plan(plan, storage, RecordingFiles(), context_id=1)
