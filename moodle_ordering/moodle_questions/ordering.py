# -*- coding: utf-8 -*-
from typing import List, Optional, Dict, Any
from .utils import xml_escape, cdata


class OrderingXmlQuestion:
    """
    ORDERING
    - KHÔNG chèn category bên trong to_xml().
    - answers: List[Dict[str, Any]] theo thứ tự đúng, keys:
        - text: str
        - fraction: int (vị trí, bắt đầu từ 1)
        - format: str ("html" | "moodle_auto_format" | ...)
        - feedback_html: str (optional, chỉ xuất khi khác rỗng)
        - files: List[(name, base64)] (optional)
    - layouttype / selecttype / gradingtype: token đã encode (VERTICAL, RANDOM, ...)
    """
    def __init__(
        self,
        name: str,
        questiontext_html: str,
        answers: List[Dict[str, Any]],
        layouttype: str = "VERTICAL",
        selecttype: str = "RANDOM",
        selectcount: int = 3,
        gradingtype: str = "RELATIVE_NEXT_EXCLUDE_LAST",
        generalfeedback_html: str = "",
        questiontext_format: str = "html",
        combined_feedback: Optional[Dict[str, Dict[str, str]]] = None,
        shownumcorrect: bool = True,
        hints: Optional[List[str]] = None,
        defaultgrade: float = 1.0,
        penalty: float = 0.3333333,
        hidden: int = 0,
        category_path: Optional[str] = None,
    ):
        self.name = name
        self.qtype = "ordering"
        self.questiontext_html = questiontext_html or ""
        self.questiontext_format = questiontext_format or "html"
        self.answers = answers or []
        self.layouttype = layouttype
        self.selecttype = selecttype
        self.selectcount = int(selectcount)
        self.gradingtype = gradingtype
        self.generalfeedback_html = generalfeedback_html or ""
        self.combined_feedback = combined_feedback or {}
        self.shownumcorrect = bool(shownumcorrect)
        self.hints = hints or []
        self.defaultgrade = float(defaultgrade)
        self.penalty = float(penalty)
        self.hidden = int(hidden)
        self.category_path = category_path  # để builder sử dụng

    def options_xml(self) -> List[str]:
        """Phần riêng của ordering (dùng lại cho export 1 câu)."""
        lines = []
        lines.append(f'  <layouttype>{xml_escape(self.layouttype)}</layouttype>')
        lines.append(f'  <selecttype>{xml_escape(self.selecttype)}</selecttype>')
        lines.append(f'  <selectcount>{self.selectcount}</selectcount>')
        lines.append(f'  <gradingtype>{xml_escape(self.gradingtype)}</gradingtype>')
        for tag in ("correctfeedback", "partiallycorrectfeedback", "incorrectfeedback"):
            fb = self.combined_feedback.get(tag) or {}
            lines.append(f'  <{tag} format="{xml_escape(fb.get("format") or "html")}">')
            lines.append(f'    <text>{cdata(fb.get("text", ""))}</text>')
            lines.append(f'  </{tag}>')
        if self.shownumcorrect:
            lines.append('  <shownumcorrect/>')

        for ans in self.answers:
            fmt = xml_escape(ans.get("format") or "html")
            lines.append(f'  <answer fraction="{int(ans.get("fraction", 0))}" format="{fmt}">')
            lines.append(f'    <text>{cdata(ans.get("text", ""))}</text>')
            for fname, b64 in ans.get("files") or []:
                lines.append(f'    <file name="{xml_escape(fname)}" path="/" encoding="base64">{b64}</file>')
            feedback_html = (ans.get("feedback_html") or "").strip()
            if feedback_html:  # thường không có feedback
                lines.append(f'    <feedback format="{xml_escape(ans.get("feedback_format") or "html")}">')
                lines.append(f'      <text>{cdata(feedback_html)}</text>')
                lines.append('    </feedback>')
            lines.append('  </answer>')

        for hint in self.hints:
            lines.append('  <hint format="html">')
            lines.append(f'    <text>{cdata(hint)}</text>')
            lines.append('  </hint>')
        return lines

    def to_xml(self) -> str:
        # KHÔNG render category ở đây
        lines = []
        lines.append(f'<question type="{self.qtype}">')
        lines.append(f'  <name><text>{xml_escape(self.name)}</text></name>')
        lines.append(f'  <questiontext format="{xml_escape(self.questiontext_format)}">')
        lines.append(f'    <text>{cdata(self.questiontext_html)}</text>')
        lines.append('  </questiontext>')
        lines.append('  <generalfeedback format="html">')
        lines.append(f'    <text>{cdata(self.generalfeedback_html)}</text>')
        lines.append('  </generalfeedback>')
        lines.append(f'  <defaultgrade>{self.defaultgrade:g}</defaultgrade>')
        lines.append(f'  <penalty>{self.penalty}</penalty>')
        lines.append(f'  <hidden>{self.hidden}</hidden>')
        lines.extend(self.options_xml())
        lines.append('</question>')
        return "\n".join(lines)
