# -*- coding: utf-8 -*-
from typing import Optional

_XML_ENTITIES = str.maketrans({
    "&": "&amp;", "<": "&lt;", ">": "&gt;", '"': "&quot;", "'": "&apos;",
})


def xml_escape(s: Optional[str]) -> str:
    """Dùng cho tên câu hỏi, category, thuộc tính (chỗ không bọc CDATA)."""
    return (s or "").translate(_XML_ENTITIES)


def cdata(s: Optional[str]) -> str:
    """Bọc CDATA; tách ']]>' nếu nội dung có sẵn chuỗi này."""
    s = (s or "").replace("]]>", "]]]]><![CDATA[>")
    return f"<![CDATA[{s}]]>"
