# -*- coding: utf-8 -*-
"""
Đối chiếu danh sách đáp án mới với các record đã lưu của 1 câu hỏi.

3 bước tách riêng:
  plan_answers()    -- thuần tính toán, KHÔNG ghi gì (báo NotEnoughAnswers tại đây)
  apply_plan()      -- ghi theo kế hoạch: update/insert → commit file nháp
  delete_orphans()  -- xoá record thừa (kèm vùng file), bước cuối của save

Chọn id cho từng mục (theo thứ tự ưu tiên):
  1) mục mang sẵn stable_id còn tồn tại → giữ id đó
  2) text (đã chuẩn hoá) trùng với 1 record chưa ai nhận → nhận record đó
  3) nếu 1) và 2) không khớp được mục nào → dùng lại id theo vị trí (id cũ theo thứ tự ordinal)
  4) còn lại → insert; record cũ không ai nhận → xoá (kèm vùng file)
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence

from moodle_ordering.core.errors import NotEnoughAnswers, StorageError
from moodle_ordering.core.models import AnswerItem, FORMAT_MOODLE
from moodle_ordering.core.text import normalize_answer_text, item_text, is_blank
from moodle_ordering.services.attachments import AttachmentStore
from moodle_ordering.services.storage import ANSWERS, Storage

MIN_ANSWERS = 2


@dataclass
class PlannedAnswer:
    item: AnswerItem
    record_id: Optional[int] = None  # None = insert

    @property
    def is_update(self) -> bool:
        return self.record_id is not None


@dataclass
class AnswerPlan:
    question_id: Optional[int]
    answers: List[PlannedAnswer] = field(default_factory=list)  # theo ordinal
    orphans: List[int] = field(default_factory=list)

    @property
    def updates(self) -> List[PlannedAnswer]:
        return [a for a in self.answers if a.is_update]

    @property
    def inserts(self) -> List[PlannedAnswer]:
        return [a for a in self.answers if not a.is_update]


def _as_item(raw: Any) -> AnswerItem:
    if isinstance(raw, AnswerItem):
        return replace(raw)
    if isinstance(raw, dict):
        return AnswerItem(
            text=item_text(raw),
            format=raw.get("format", FORMAT_MOODLE),
            stable_id=raw.get("stable_id") or raw.get("id"),
            draft_id=raw.get("draft_id") or raw.get("itemid") or None,
            feedback=raw.get("feedback") or "",
        )
    return AnswerItem(text=item_text(raw))


def plan_answers(
    question_id: Optional[int],
    items: Sequence[Any],
    existing: Sequence[Dict[str, Any]],
    minimum: int = MIN_ANSWERS,
) -> AnswerPlan:
    """
    items: AnswerItem | dict(text, format, itemid/draft_id, stable_id) | str, theo thứ tự đúng
    existing: record đã lưu, đã sắp theo ordinal cũ (fraction ASC)
    """
    survivors: List[AnswerItem] = []
    for raw in items:
        item = _as_item(raw)
        # chuẩn hoá TRƯỚC khi kiểm tra rỗng
        item.text = normalize_answer_text(item.text)
        if is_blank(item.text):
            continue
        survivors.append(item)

    if len(survivors) < minimum:
        raise NotEnoughAnswers(minimum, len(survivors))

    for i, item in enumerate(survivors):
        item.ordinal = i + 1  # ordinal = thứ tự đúng, dùng để chấm điểm

    unclaimed: List[int] = [r["id"] for r in existing]
    old_text = {r["id"]: normalize_answer_text(r.get("answer") or "") for r in existing}
    assigned: List[Optional[int]] = [None] * len(survivors)

    # 1) id mang theo
    for i, item in enumerate(survivors):
        if item.stable_id is not None and item.stable_id in unclaimed:
            assigned[i] = item.stable_id
            unclaimed.remove(item.stable_id)

    # 2) trùng nội dung
    for i, item in enumerate(survivors):
        if assigned[i] is not None:
            continue
        for rid in unclaimed:
            if old_text[rid] == item.text:
                assigned[i] = rid
                unclaimed.remove(rid)
                break

    # 3) không khớp được gì → theo vị trí
    if not any(rid is not None for rid in assigned):
        for i in range(len(survivors)):
            if not unclaimed:
                break
            assigned[i] = unclaimed.pop(0)

    plan = AnswerPlan(question_id=question_id, orphans=list(unclaimed))
    for item, rid in zip(survivors, assigned):
        item.stable_id = rid
        plan.answers.append(PlannedAnswer(item=item, record_id=rid))
    return plan


def _answer_record(question_id: int, item: AnswerItem) -> Dict[str, Any]:
    return {
        "question": question_id,
        "fraction": item.ordinal,  # ordinal gốc được lưu tường minh
        "answer": item.text,
        "answerformat": item.format,
        "feedback": item.feedback or "",
        "feedbackformat": item.feedback_format,
    }


def apply_plan(
    plan: AnswerPlan,
    storage: Storage,
    attachments: AttachmentStore,
    context_id: int,
    question_id: Optional[int] = None,
    verbose: bool = False,
) -> List[AnswerItem]:
    """Ghi kế hoạch; trả về các AnswerItem đã có stable_id, theo ordinal."""
    qid = question_id if question_id is not None else plan.question_id
    if qid is None:
        raise ValueError("apply_plan cần question_id")

    def _v(*args):
        if verbose: print("[ordering]", *args)

    saved: List[AnswerItem] = []
    for planned in plan.answers:
        item = planned.item
        record = _answer_record(qid, item)
        if planned.is_update:
            record["id"] = planned.record_id
            if not storage.update_record(ANSWERS, record):
                raise StorageError(ANSWERS, planned.record_id, "update")
            item.stable_id = planned.record_id
        else:
            new_id = storage.insert_record(ANSWERS, record)
            if not new_id:
                raise StorageError(ANSWERS, None, "insert")
            item.stable_id = new_id

        # file nháp: chỉ commit SAU khi record đã có id (id là khoá của vùng file)
        if item.draft_id:
            item.text = attachments.commit_draft_area(item.draft_id, context_id, item.stable_id, item.text)
            storage.set_field(ANSWERS, "answer", item.text, {"id": item.stable_id})
            item.draft_id = None
        saved.append(item)

    _v(f"question={qid} update={len(plan.updates)} insert={len(plan.inserts)}")
    return saved


def delete_orphans(plan: AnswerPlan, storage: Storage, attachments: AttachmentStore,
                   context_id: int, verbose: bool = False) -> int:
    """
    Xoá record thừa: vùng file trước rồi tới record.
    Phải là bước ghi cuối cùng của save (sau options/hints).
    """
    for rid in plan.orphans:
        attachments.delete_area(context_id, rid)
        storage.delete_records(ANSWERS, {"id": rid})
    if verbose and plan.orphans:
        print("[ordering]", f"delete={plan.orphans}")
    return len(plan.orphans)
