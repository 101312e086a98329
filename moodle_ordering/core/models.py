# -*- coding: utf-8 -*-
from __future__ import annotations
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Dict, Any, Tuple

FORMAT_MOODLE = 0
FORMAT_HTML = 1
FORMAT_PLAIN = 2
FORMAT_MARKDOWN = 4

# tên format dùng trong Moodle XML (<answer format="html">)
FORMAT_NAMES = {FORMAT_MOODLE: "moodle_auto_format", FORMAT_HTML: "html",
                FORMAT_PLAIN: "plain_text", FORMAT_MARKDOWN: "markdown"}

COMBINED_FEEDBACK_FIELDS = ("correctfeedback", "partiallycorrectfeedback", "incorrectfeedback")


class Layout(IntEnum):
    VERTICAL = 0
    HORIZONTAL = 1


class SelectType(IntEnum):
    ALL = 0
    RANDOM = 1
    CONTIGUOUS = 2


class GradingType(IntEnum):
    ALL_OR_NOTHING = -1
    ABSOLUTE_POSITION = 0
    RELATIVE_NEXT_EXCLUDE_LAST = 1
    RELATIVE_NEXT_INCLUDE_LAST = 2
    RELATIVE_ONE_PREVIOUS_AND_NEXT = 3
    RELATIVE_ALL_PREVIOUS_AND_NEXT = 4
    LONGEST_ORDERED_SUBSET = 5
    LONGEST_CONTIGUOUS_SUBSET = 6


@dataclass
class OrderingConfig:
    layout: Layout = Layout.VERTICAL
    select_type: SelectType = SelectType.RANDOM
    select_count: int = 3
    grading_type: GradingType = GradingType.RELATIVE_NEXT_EXCLUDE_LAST


@dataclass
class FeedbackText:
    text: str = ""
    format: int = FORMAT_MOODLE
    draft_id: Optional[int] = None


@dataclass
class AnswerItem:
    """
    1 mục cần sắp xếp.
    - stable_id: id record đã lưu (None = mục mới)
    - ordinal: vị trí đúng, bắt đầu từ 1 (chính là "fraction" trong Moodle)
    - draft_id: vùng file nháp đi kèm (ảnh trong đáp án), commit sau khi có id
    """
    text: str = ""
    format: int = FORMAT_MOODLE
    stable_id: Optional[int] = None
    ordinal: int = 0
    draft_id: Optional[int] = None
    feedback: str = ""
    feedback_format: int = FORMAT_MOODLE


@dataclass
class OrderingQuestion:
    name: str = ""
    questiontext: str = ""
    questiontext_format: int = FORMAT_HTML
    generalfeedback: str = ""
    id: Optional[int] = None
    context_id: int = 1
    category_path: Optional[str] = None
    defaultgrade: float = 1.0
    penalty: float = 0.3333333
    hidden: int = 0
    config: OrderingConfig = field(default_factory=OrderingConfig)
    answers: List[AnswerItem] = field(default_factory=list)
    combined_feedback: Dict[str, FeedbackText] = field(default_factory=dict)
    shownumcorrect: int = 1
    hints: List[str] = field(default_factory=list)

    def ensure_combined_feedback(self) -> None:
        """Đảm bảo đủ 3 trường feedback tổng hợp (rỗng nếu chưa có)."""
        for f in COMBINED_FEEDBACK_FIELDS:
            if f not in self.combined_feedback or self.combined_feedback[f] is None:
                self.combined_feedback[f] = FeedbackText()


@dataclass
class ParsedClause:
    question_name: str
    questiontext: str
    raw_config_tokens: Tuple[str, str, str, str]  # (count, select, layout, grading)
    item_lines: List[str] = field(default_factory=list)


@dataclass
class SaveResult:
    ok: bool = False
    notice: Optional[str] = None
    minimum: Optional[int] = None
    error: Optional[str] = None
    question_id: Optional[int] = None
    answer_ids: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {"ok": True}
        if self.notice:
            return {"notice": self.notice, "minimum": self.minimum}
        return {"error": self.error}
