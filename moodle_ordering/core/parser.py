# -*- coding: utf-8 -*-
"""
Import câu hỏi ordering từ GIFT và Moodle XML.

GIFT (mở rộng cho ordering):
    ::Tên::Nội dung câu hỏi {>3 RANDOM VERTICAL RELATIVE
    Mục 1
    Mục 2
    Mục 3
    }
Các token cấu hình đều tuỳ chọn, thiếu thì lấy mặc định (xem core/codec.py).
Khối không khớp mẫu → trả None (để bộ import thử loại câu hỏi khác).
"""
from __future__ import annotations
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Tuple, Union

from moodle_ordering.core import codec
from moodle_ordering.core.config import Settings
from moodle_ordering.core.models import (
    AnswerItem, FeedbackText, OrderingQuestion, ParsedClause,
    COMBINED_FEEDBACK_FIELDS, FORMAT_MOODLE, FORMAT_HTML, FORMAT_NAMES,
)

DEFAULT_QUESTION_NAME = Settings().default_question_name


# ========= Regex GIFT =========
def _token_group(name: str, tokens) -> str:
    # token dài thử trước; phải có khoảng trắng hoặc '}' theo sau (để "Hello" không bị đọc thành "H")
    alts = "|".join(re.escape(t) for t in sorted(tokens, key=len, reverse=True))
    return rf"(?:(?P<{name}>(?i:{alts}))(?=[\s}}]))?[ \t]*"


_GIFT_RE = re.compile(
    r"^(?P<name>.*?)\s*\{>[ \t]*"
    r"(?:(?P<count>\d+)(?=[\s}]))?[ \t]*"
    + _token_group("select", codec.TOKENS[codec.SELECT])
    + _token_group("layout", codec.TOKENS[codec.LAYOUT])
    + _token_group("grading", codec.TOKENS[codec.GRADING])
    + r"\s*(?P<items>.*?)\s*\}\s*$",
    flags=re.S,
)

_TITLE_RE = re.compile(r"^\s*::(?P<title>.*?)::(?P<rest>.*)$", flags=re.S)
_CATEGORY_RE = re.compile(r"^\s*\$CATEGORY:\s*(?P<path>.*?)\s*$")


def fix_question_name(name: str, default_name: str = "", max_length: int = 42,
                      fallback: str = DEFAULT_QUESTION_NAME) -> str:
    """
    - Tên rỗng → default_name → fallback.
    - Dài hơn max_length → cắt ở khoảng trắng cuối cùng trước giới hạn + " ...".
    """
    name = name or ""
    if not name.strip():
        name = default_name or fallback
    if len(name) > max_length:
        name = name[:max_length]
        m = re.search(r"\s\S*$", name)
        if m and m.start() > 0:
            name = name[:m.start()]
        name += " ..."
    return name


def parse_gift_clause(text: str, max_name_length: int = 42,
                      default_name: str = DEFAULT_QUESTION_NAME) -> Optional[ParsedClause]:
    text = (text or "").replace("\r\n", "\n")
    title = ""
    mt = _TITLE_RE.match(text)
    if mt:
        title = mt.group("title").strip()
        text = mt.group("rest")

    m = _GIFT_RE.match(text.strip())
    if not m:
        return None  # không phải ordering

    questiontext = m.group("name").strip()
    tokens = tuple((m.group(k) or "").strip() for k in ("count", "select", "layout", "grading"))

    lines = [ln.strip() for ln in m.group("items").split("\n")]
    lines = [ln for ln in lines if ln]  # bỏ dòng trống

    qname = fix_question_name(title, questiontext, max_name_length, default_name)
    return ParsedClause(question_name=qname, questiontext=questiontext,
                        raw_config_tokens=tokens, item_lines=lines)


def import_gift(text: str, settings: Optional[Settings] = None) -> Optional[OrderingQuestion]:
    settings = settings or Settings()
    clause = parse_gift_clause(text, settings.max_name_length, settings.default_question_name)
    if clause is None:
        return None

    count_tok, select_tok, layout_tok, grading_tok = clause.raw_config_tokens
    n = len(clause.item_lines)

    # selectcount chỉ giữ khi 2 < count <= số mục
    if count_tok.isdigit() and 2 < int(count_tok) <= n:
        count = int(count_tok)
    else:
        count = min(settings.default_select_count, n)

    q = OrderingQuestion(
        name=clause.question_name,
        questiontext=clause.questiontext,
        questiontext_format=FORMAT_MOODLE,
        context_id=settings.context_id,
        config=codec.decode_config(layout_tok, select_tok, count, grading_tok),
    )
    # ordinal tạm, sẽ gán lại khi lưu
    q.answers = [AnswerItem(text=line, format=FORMAT_MOODLE, ordinal=i)
                 for i, line in enumerate(clause.item_lines, 1)]
    q.ensure_combined_feedback()
    return q


# ========= Tách file GIFT nhiều câu =========
def split_gift_clauses(text: str) -> List[Tuple[Optional[str], str]]:
    """
    Trả list (category, block). Các câu cách nhau bởi dòng trống hoặc kết thúc ở "}".
    Bỏ dòng comment "//" ; "$CATEGORY:" đổi category cho các câu phía sau.
    """
    out: List[Tuple[Optional[str], str]] = []
    category: Optional[str] = None
    buf: List[str] = []
    depth = 0

    def _flush():
        block = "\n".join(buf).strip()
        if block:
            out.append((category, block))
        buf.clear()

    for line in (text or "").replace("\r\n", "\n").split("\n"):
        if depth == 0:
            if not line.strip():
                _flush()  # dòng trống ngoài ngoặc = hết 1 câu
                continue
            if line.strip().startswith("//"):
                continue
            mc = _CATEGORY_RE.match(line)
            if mc:
                category = mc.group("path") or None
                continue
        prev = ""
        for ch in line:
            if prev != "\\":
                if ch == "{":
                    depth += 1
                elif ch == "}" and depth > 0:
                    depth -= 1
            prev = ch
        buf.append(line)
        if depth == 0 and "}" in line:
            _flush()
    _flush()
    return out


def import_gift_file(path: Union[str, Path], settings: Optional[Settings] = None) -> Tuple[List[OrderingQuestion], int]:
    """→ (các câu ordering, số khối bị bỏ qua)."""
    text = Path(path).read_text(encoding="utf-8")
    questions: List[OrderingQuestion] = []
    skipped = 0
    for category, block in split_gift_clauses(text):
        q = import_gift(block, settings)
        if q is None:
            skipped += 1
            continue
        q.category_path = category
        questions.append(q)
    return questions, skipped


# ========= Moodle XML =========
_FORMAT_BY_NAME = {v: k for k, v in FORMAT_NAMES.items()}


def _format_of(el: Optional[ET.Element], default: int = FORMAT_HTML) -> int:
    if el is None:
        return default
    return _FORMAT_BY_NAME.get((el.get("format") or "").strip().lower(), default)


def _text_of(el: Optional[ET.Element], path: str = "text", default: str = "") -> str:
    if el is None:
        return default
    found = el.find(path)
    if found is None or found.text is None:
        return default
    return found.text


def _field(q: ET.Element, tag: str, default):
    el = q.find(tag)
    if el is None or el.text is None or not el.text.strip():
        return default
    return el.text.strip()


def import_xml_question(data: Union[str, ET.Element], settings: Optional[Settings] = None) -> Optional[OrderingQuestion]:
    settings = settings or Settings()
    q = ET.fromstring(data.strip()) if isinstance(data, str) else data
    if q.tag != "question" or (q.get("type") or "").strip() != "ordering":
        return None

    qt_el = q.find("questiontext")
    new = OrderingQuestion(
        name=_text_of(q.find("name")).strip(),
        questiontext=_text_of(qt_el),
        questiontext_format=_format_of(qt_el),
        generalfeedback=_text_of(q.find("generalfeedback")),
        context_id=settings.context_id,
    )
    new.defaultgrade = float(_field(q, "defaultgrade", 1.0))
    new.penalty = float(_field(q, "penalty", 0.3333333))
    new.hidden = int(_field(q, "hidden", 0))

    new.name = fix_question_name(new.name, new.questiontext, settings.max_name_length,
                                 settings.default_question_name)

    # selecttype/selectcount trước đây tên là logical/studentsee
    if q.find("selecttype") is not None:
        select_tag, count_tag = "selecttype", "selectcount"
    else:
        select_tag, count_tag = "logical", "studentsee"
    answer_els = q.findall("answer")
    new.config = codec.decode_config(
        _field(q, "layouttype", "VERTICAL"),
        _field(q, select_tag, "RANDOM"),
        _field(q, count_tag, None),
        _field(q, "gradingtype", "RELATIVE"),
        default_count=min(settings.default_select_count, len(answer_els)),
    )

    for i, ans in enumerate(answer_els, 1):
        fb = ans.find("feedback")
        new.answers.append(AnswerItem(
            text=_text_of(ans),
            format=_format_of(ans, FORMAT_MOODLE),
            ordinal=i,
            feedback=_text_of(fb),
            feedback_format=_format_of(fb, FORMAT_MOODLE),
        ))

    for f in COMBINED_FEEDBACK_FIELDS:
        el = q.find(f)
        if el is not None:
            new.combined_feedback[f] = FeedbackText(text=_text_of(el), format=_format_of(el))
    new.ensure_combined_feedback()
    new.shownumcorrect = 1 if q.find("shownumcorrect") is not None else 0
    new.hints = [_text_of(h) for h in q.findall("hint")]
    return new


def import_xml(text: str, settings: Optional[Settings] = None) -> List[OrderingQuestion]:
    """Đọc cả file <quiz>; câu không phải ordering bị bỏ qua."""
    root = ET.fromstring(text.strip())
    nodes = [root] if root.tag == "question" else root.findall("question")
    out: List[OrderingQuestion] = []
    category: Optional[str] = None
    for node in nodes:
        if node.get("type") == "category":
            category = _text_of(node.find("category")).strip() or None
            continue
        q = import_xml_question(node, settings)
        if q is not None:
            q.category_path = category
            out.append(q)
    return out
