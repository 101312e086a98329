# -*- coding: utf-8 -*-
import re
from typing import Any

# <p>...</p> đơn giản → text thường (bỏ cả các <br> thừa ở cuối đoạn)
_P_RE = re.compile(r"^\s*<p>\s*(.*?)(\s*<br\s*/?>)*\s*</p>\s*$", flags=re.S)

# chuẩn hoá vertical-align của thẻ <img>
_IMG_RE = re.compile(r"(<img[^>]*)\bvertical-align:\s*[a-zA-Z0-9_-]+([^>]*>)")
_IMG_ALIGN = "vertical-align:text-top"


def strip_redundant_paragraph(text: str) -> str:
    text = text or ""
    if text.count("<p>") == 1:
        text = _P_RE.sub(r"\1", text)
    return text.strip()


def normalize_image_alignment(text: str) -> str:
    return _IMG_RE.sub(lambda m: f"{m.group(1)}{_IMG_ALIGN}{m.group(2)}", text or "")


def normalize_answer_text(text: str) -> str:
    """Bỏ <p> thừa → chuẩn hoá ảnh → trim. Dùng trước khi kiểm tra rỗng."""
    return normalize_image_alignment(strip_redundant_paragraph(text)).strip()


def item_text(item: Any) -> str:
    if isinstance(item, dict):
        return str(item.get("text") or "")
    if isinstance(item, str):
        return item
    if item is None:
        return ""
    return str(getattr(item, "text", "") or "")


def is_blank(item: Any) -> bool:
    # chỉ rỗng sau khi trim mới là blank, "0" vẫn là đáp án hợp lệ
    return item_text(item).strip() == ""
