# -*- coding: utf-8 -*-
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .utils import xml_escape


def category_block(path: str) -> str:
    return (
        '<question type="category">\n'
        f'  <category><text>{xml_escape(path)}</text></category>\n'
        '</question>'
    )


class MoodleQuiz:
    """
    Gom các khối <question> thành 1 file <quiz>.
    add_question(q, category=...) tự chèn khối category khi category đổi so với câu trước.
    """

    def __init__(self):
        self._blocks: List[str] = []
        self._count = 0
        self._category: Optional[str] = None

    @staticmethod
    def _clean_category(cat) -> str:
        cat = str(cat or "").strip().strip("/")
        return "" if cat == "0" else cat

    def add_category(self, cat) -> None:
        cat = self._clean_category(cat)
        if not cat or cat == self._category:
            return
        self._blocks.append(category_block(cat))
        self._category = cat

    def add_question(self, q_obj, category: Optional[str] = None) -> None:
        """q_obj: có .to_xml() hoặc là chuỗi XML sẵn."""
        if category:
            self.add_category(category)
        self._blocks.append(q_obj if isinstance(q_obj, str) else q_obj.to_xml())
        self._count += 1

    def __len__(self) -> int:
        return self._count

    def to_xml(self) -> str:
        return "\n".join(['<?xml version="1.0" encoding="UTF-8"?>', "<quiz>", *self._blocks, "</quiz>"])

    def export(self, filepath: str) -> None:
        p = Path(filepath)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(self.to_xml(), encoding="utf-8")
