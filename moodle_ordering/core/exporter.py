# -*- coding: utf-8 -*-
import re as _re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from moodle_ordering.core import codec
from moodle_ordering.core.models import (
    OrderingQuestion, AnswerItem, COMBINED_FEEDBACK_FIELDS, FORMAT_NAMES, FORMAT_HTML,
)
from moodle_ordering.moodle_questions.MoodleQuiz import MoodleQuiz
from moodle_ordering.moodle_questions.ordering import OrderingXmlQuestion

# answer stable_id → [(tên file, nội dung base64)]
AnswerFiles = Dict[int, List[Tuple[str, str]]]


def _sorted_answers(question: OrderingQuestion) -> List[AnswerItem]:
    # ordinal = thứ tự đúng; ordinal 0 (chưa gán) giữ nguyên thứ tự nhập
    return sorted(question.answers, key=lambda a: a.ordinal or 0)


def _one_line(s: str) -> str:
    return _re.sub(r"\s*\n\s*", " ", (s or "").strip())


# ========= GIFT =========
def export_gift(question: OrderingQuestion) -> str:
    layout, select, count, grading = codec.encode_config(question.config)
    out = ""
    if question.name:
        out += f"::{_one_line(question.name).replace('::', ':')}::"
    out += f"{question.questiontext}{{>{count} {select} {layout} {grading}\n"
    for ans in _sorted_answers(question):
        out += f"{_one_line(ans.text)}\n"
    out += "}"
    return out


def export_gift_file(questions: Iterable[OrderingQuestion], gift_out: str) -> str:
    blocks = []
    last_cat = None
    for q in questions:
        if q.category_path and q.category_path != last_cat:
            blocks.append(f"$CATEGORY: {q.category_path}")
            last_cat = q.category_path
        blocks.append(export_gift(q))
    Path(Path(gift_out).parent or ".").mkdir(parents=True, exist_ok=True)
    Path(gift_out).write_text("\n\n".join(blocks) + "\n", encoding="utf-8")
    return gift_out


# ========= Moodle XML =========
def _fmt(code: int) -> str:
    return FORMAT_NAMES.get(code, "html")


def build_xml_question(question: OrderingQuestion, files: Optional[AnswerFiles] = None) -> OrderingXmlQuestion:
    layout, select, count, grading = codec.encode_config(question.config)
    files = files or {}
    answers = []
    for i, ans in enumerate(_sorted_answers(question), 1):
        answers.append({
            "text": ans.text,
            "fraction": ans.ordinal or i,
            "format": _fmt(ans.format),
            "feedback_html": ans.feedback,
            "feedback_format": _fmt(ans.feedback_format),
            "files": files.get(ans.stable_id, []) if ans.stable_id is not None else [],
        })
    question.ensure_combined_feedback()
    combined = {
        f: {"text": question.combined_feedback[f].text, "format": _fmt(question.combined_feedback[f].format)}
        for f in COMBINED_FEEDBACK_FIELDS
    }
    return OrderingXmlQuestion(
        question.name,
        question.questiontext,
        answers,
        layouttype=layout,
        selecttype=select,
        selectcount=count,
        gradingtype=grading,
        generalfeedback_html=question.generalfeedback,
        questiontext_format=_fmt(FORMAT_HTML if question.questiontext_format is None else question.questiontext_format),
        combined_feedback=combined,
        shownumcorrect=bool(question.shownumcorrect),
        hints=question.hints,
        defaultgrade=question.defaultgrade,
        penalty=question.penalty,
        hidden=question.hidden,
        category_path=question.category_path,
    )


def export_xml(question: OrderingQuestion, files: Optional[AnswerFiles] = None) -> str:
    """1 khối <question type="ordering"> (không có <quiz>)."""
    return build_xml_question(question, files).to_xml()


def _build_quiz(questions: Iterable[OrderingQuestion]) -> MoodleQuiz:
    quiz = MoodleQuiz()
    for q in questions:
        quiz.add_question(build_xml_question(q), category=q.category_path)
    return quiz


def export_quiz_xml(questions: Iterable[OrderingQuestion]) -> str:
    return _build_quiz(questions).to_xml()


def build_quiz_xml_file(questions: Iterable[OrderingQuestion], xml_out: str = "output_questions/moodle.xml") -> str:
    quiz = _build_quiz(questions)
    quiz.export(xml_out)
    print(f"✅ Xuất XML Moodle: {xml_out} | Ordering: {len(quiz)}")
    return xml_out
