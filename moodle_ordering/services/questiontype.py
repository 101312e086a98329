# -*- coding: utf-8 -*-
from __future__ import annotations
import base64
from typing import Any, Dict, List, Optional

from moodle_ordering.core import codec
from moodle_ordering.core.config import Settings
from moodle_ordering.core.errors import MissingQuestionData, NotEnoughAnswers, StorageError
from moodle_ordering.core.exporter import export_gift, export_xml
from moodle_ordering.core.models import (
    AnswerItem, FeedbackText, OrderingQuestion, SaveResult, COMBINED_FEEDBACK_FIELDS, FORMAT_MOODLE, FORMAT_HTML,
)
from moodle_ordering.core.parser import import_gift, import_xml_question
from moodle_ordering.services.attachments import AttachmentStore
from moodle_ordering.services.reconciler import apply_plan, delete_orphans, plan_answers
from moodle_ordering.services.storage import ANSWERS, HINTS, OPTIONS, QUESTIONS, Storage

NOTICE_NOT_ENOUGH = "not enough answers"
NO_RESPONSE = "[No response]"


class OrderingQuestionType:
    """
    Điểm vào chính cho câu hỏi ordering:
      save / load / delete, import_clause (GIFT), export_gift / export_xml,
      get_possible_responses.
    Mỗi lần save chạy trong 1 transaction của storage; save cùng 1 câu hỏi
    song song phải được phía gọi tuần tự hoá.
    """

    def __init__(self, storage: Storage, attachments: AttachmentStore, settings: Optional[Settings] = None):
        self.storage = storage
        self.attachments = attachments
        self.settings = settings or Settings()

    def _v(self, *args):
        if self.settings.verbose: print("[ordering]", *args)

    # ========== save ==========
    def save(self, question: OrderingQuestion) -> SaveResult:
        existing: List[Dict[str, Any]] = []
        if question.id is not None:
            existing = self.storage.get_records(ANSWERS, {"question": question.id}, order_by="fraction")

        # kiểm tra đủ đáp án trước khi ghi bất cứ thứ gì
        try:
            plan = plan_answers(question.id, question.answers, existing, self.settings.min_answers)
        except NotEnoughAnswers as e:
            self._v(f"notice: {e}")
            return SaveResult(notice=NOTICE_NOT_ENOUGH, minimum=e.minimum)

        try:
            with self.storage.transaction():
                qid = self._save_question_record(question)
                saved = apply_plan(plan, self.storage, self.attachments, question.context_id,
                                   question_id=qid, verbose=self.settings.verbose)
                count = self._clamp_count(int(question.config.select_count), len(saved))
                self._save_options(qid, question, count)
                self._save_hints(qid, question)
                # record thừa xoá cuối cùng
                delete_orphans(plan, self.storage, self.attachments, question.context_id,
                               verbose=self.settings.verbose)
        except StorageError as e:
            self._v(f"error: {e}")
            return SaveResult(error=str(e))

        question.id = qid
        question.answers = saved
        question.config.select_count = count
        return SaveResult(ok=True, question_id=qid, answer_ids=[a.stable_id for a in saved])

    def _save_question_record(self, question: OrderingQuestion) -> int:
        record = {
            "qtype": "ordering",
            "name": question.name,
            "questiontext": question.questiontext,
            "questiontextformat": question.questiontext_format,
            "generalfeedback": question.generalfeedback,
            "contextid": question.context_id,
            "category": question.category_path or "",
            "defaultgrade": question.defaultgrade,
            "penalty": question.penalty,
            "hidden": question.hidden,
        }
        if question.id is not None and self.storage.get_record(QUESTIONS, {"id": question.id}):
            record["id"] = question.id
            if not self.storage.update_record(QUESTIONS, record):
                raise StorageError(QUESTIONS, question.id, "update")
            return question.id
        new_id = self.storage.insert_record(QUESTIONS, record)
        if not new_id:
            raise StorageError(QUESTIONS, None, "insert")
        return new_id

    def _clamp_count(self, count: int, n: int) -> int:
        if count > n:
            return n
        if count < 1:
            return min(self.settings.default_select_count, n)
        return count

    def _save_options(self, qid: int, question: OrderingQuestion, count: int) -> None:
        cfg = question.config
        options: Dict[str, Any] = {
            "questionid": qid,
            "layouttype": int(codec.decode(codec.LAYOUT, cfg.layout)),
            "selecttype": int(codec.decode(codec.SELECT, cfg.select_type)),
            "selectcount": count,
            "gradingtype": int(codec.decode(codec.GRADING, cfg.grading_type)),
            "shownumcorrect": int(question.shownumcorrect),
        }
        question.ensure_combined_feedback()
        for f in COMBINED_FEEDBACK_FIELDS:
            fb = question.combined_feedback[f]
            options[f] = fb.text
            options[f + "format"] = fb.format

        # upsert theo questionid
        current = self.storage.get_record(OPTIONS, {"questionid": qid})
        if current:
            options["id"] = current["id"]
            if not self.storage.update_record(OPTIONS, options):
                raise StorageError(OPTIONS, current["id"], "update")
        elif not self.storage.insert_record(OPTIONS, options):
            raise StorageError(OPTIONS, None, "insert")

    def _save_hints(self, qid: int, question: OrderingQuestion) -> None:
        self.storage.delete_records(HINTS, {"questionid": qid})
        for hint in question.hints:
            if hint and hint.strip():
                if not self.storage.insert_record(HINTS, {"questionid": qid, "hint": hint, "hintformat": FORMAT_HTML}):
                    raise StorageError(HINTS, None, "insert")

    # ========== load / delete ==========
    def load(self, question_id: int) -> OrderingQuestion:
        qrec = self.storage.get_record(QUESTIONS, {"id": question_id})
        if not qrec:
            raise MissingQuestionData(f"Missing question {question_id}")
        options = self.storage.get_record(OPTIONS, {"questionid": question_id})
        if not options:
            raise MissingQuestionData(f"Missing question options for ordering question {question_id}")
        # "fraction" giữ thứ tự đúng của các mục
        answers = self.storage.get_records(ANSWERS, {"question": question_id}, order_by="fraction")
        if not answers:
            raise MissingQuestionData(f"Missing question answers for ordering question {question_id}")

        q = OrderingQuestion(
            id=question_id,
            name=qrec.get("name", ""),
            questiontext=qrec.get("questiontext", ""),
            questiontext_format=qrec.get("questiontextformat", FORMAT_HTML),
            generalfeedback=qrec.get("generalfeedback", ""),
            context_id=qrec.get("contextid", self.settings.context_id),
            category_path=qrec.get("category") or None,
            defaultgrade=qrec.get("defaultgrade", 1.0),
            penalty=qrec.get("penalty", 0.3333333),
            hidden=qrec.get("hidden", 0),
            config=codec.decode_config(options.get("layouttype"), options.get("selecttype"),
                                       options.get("selectcount"), options.get("gradingtype"),
                                       default_count=min(self.settings.default_select_count, len(answers))),
            shownumcorrect=options.get("shownumcorrect", 1),
        )
        q.answers = [
            AnswerItem(text=r.get("answer", ""), format=r.get("answerformat", FORMAT_MOODLE),
                       stable_id=r["id"], ordinal=r.get("fraction", 0),
                       feedback=r.get("feedback", ""), feedback_format=r.get("feedbackformat", FORMAT_MOODLE))
            for r in answers
        ]
        for f in COMBINED_FEEDBACK_FIELDS:
            q.combined_feedback[f] = FeedbackText(text=options.get(f) or "",
                                                  format=options.get(f + "format", FORMAT_MOODLE))
        q.hints = [h.get("hint", "") for h in self.storage.get_records(HINTS, {"questionid": question_id}, order_by="id")]
        return q

    def delete(self, question_id: int, context_id: Optional[int] = None) -> None:
        if context_id is None:
            qrec = self.storage.get_record(QUESTIONS, {"id": question_id}) or {}
            context_id = qrec.get("contextid", self.settings.context_id)
        with self.storage.transaction():
            for r in self.storage.get_records(ANSWERS, {"question": question_id}):
                self.attachments.delete_area(context_id, r["id"])
            self.storage.delete_records(ANSWERS, {"question": question_id})
            self.storage.delete_records(OPTIONS, {"questionid": question_id})
            self.storage.delete_records(HINTS, {"questionid": question_id})
            self.storage.delete_records(QUESTIONS, {"id": question_id})
        self._v(f"deleted question={question_id}")

    # ========== import / export ==========
    def import_clause(self, raw_text: str) -> Optional[OrderingQuestion]:
        return import_gift(raw_text, self.settings)

    def import_xml(self, xml_text: str) -> Optional[OrderingQuestion]:
        return import_xml_question(xml_text, self.settings)

    def export_gift(self, question: OrderingQuestion) -> str:
        return export_gift(question)

    def export_xml(self, question: OrderingQuestion, with_files: bool = True) -> str:
        files = {}
        if with_files:
            for ans in question.answers:
                if ans.stable_id is None:
                    continue
                area = self.attachments.list_area(question.context_id, ans.stable_id)
                if area:
                    files[ans.stable_id] = [(name, base64.b64encode(data).decode("ascii")) for name, data in area]
        return export_xml(question, files)

    # ========== báo cáo ==========
    def get_possible_responses(self, question: OrderingQuestion) -> Dict[int, Dict[int, str]]:
        """
        {question_id: {0: "[No response]", 1: "1: mục A, 2: mục B, ..."}}
        Mỗi vị trí được chấm kèm nội dung mục đúng ở vị trí đó.
        """
        ordered = sorted(question.answers, key=lambda a: a.ordinal or 0)
        positions = [f"{i}: {a.text}" for i, a in enumerate(ordered, 1)]
        key = question.id if question.id is not None else 0
        return {key: {0: NO_RESPONSE, 1: ", ".join(positions)}}
