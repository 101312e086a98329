# -*- coding: utf-8 -*-
"""
Ánh xạ 2 chiều giữa enum cấu hình (layout / select / grading) và token chữ
dùng trong GIFT và Moodle XML.

- decode(): luôn trả về 1 giá trị (token lạ/rỗng → mặc định của từng loại).
- encode(): trả token chuẩn để export; giá trị ngoài enum → CodecError.
"""
from __future__ import annotations
from typing import Dict, Tuple, Union, Any

from moodle_ordering.core.errors import CodecError
from moodle_ordering.core.models import Layout, SelectType, GradingType, OrderingConfig

LAYOUT = "layout"
SELECT = "select"
GRADING = "grading"

_ENUMS = {LAYOUT: Layout, SELECT: SelectType, GRADING: GradingType}

# ========= Bảng token → enum =========
_DECODE: Dict[str, Dict[str, Any]] = {
    LAYOUT: {
        "HORIZONTAL": Layout.HORIZONTAL, "HORI": Layout.HORIZONTAL, "H": Layout.HORIZONTAL, "1": Layout.HORIZONTAL,
        "VERTICAL": Layout.VERTICAL, "VERT": Layout.VERTICAL, "V": Layout.VERTICAL, "0": Layout.VERTICAL,
    },
    SELECT: {
        "ALL": SelectType.ALL, "EXACT": SelectType.ALL,
        "RANDOM": SelectType.RANDOM, "REL": SelectType.RANDOM,
        "CONTIGUOUS": SelectType.CONTIGUOUS, "CONTIG": SelectType.CONTIGUOUS,
    },
    GRADING: {
        "ALL_OR_NOTHING": GradingType.ALL_OR_NOTHING,
        "ABS": GradingType.ABSOLUTE_POSITION,
        "ABSOLUTE": GradingType.ABSOLUTE_POSITION,
        "ABSOLUTE_POSITION": GradingType.ABSOLUTE_POSITION,
        "REL": GradingType.RELATIVE_NEXT_EXCLUDE_LAST,
        "RELATIVE": GradingType.RELATIVE_NEXT_EXCLUDE_LAST,
        "RELATIVE_NEXT_EXCLUDE_LAST": GradingType.RELATIVE_NEXT_EXCLUDE_LAST,
        "RELATIVE_NEXT_INCLUDE_LAST": GradingType.RELATIVE_NEXT_INCLUDE_LAST,
        "RELATIVE_ONE_PREVIOUS_AND_NEXT": GradingType.RELATIVE_ONE_PREVIOUS_AND_NEXT,
        "RELATIVE_ALL_PREVIOUS_AND_NEXT": GradingType.RELATIVE_ALL_PREVIOUS_AND_NEXT,
        "LONGEST_ORDERED_SUBSET": GradingType.LONGEST_ORDERED_SUBSET,
        "LONGEST_CONTIGUOUS_SUBSET": GradingType.LONGEST_CONTIGUOUS_SUBSET,
    },
}

_DEFAULTS = {
    LAYOUT: Layout.VERTICAL,
    SELECT: SelectType.RANDOM,
    GRADING: GradingType.RELATIVE_NEXT_EXCLUDE_LAST,
}

# ========= Bảng enum → token chuẩn (export) =========
_ENCODE: Dict[str, Dict[Any, str]] = {
    LAYOUT: {Layout.VERTICAL: "VERTICAL", Layout.HORIZONTAL: "HORIZONTAL"},
    SELECT: {SelectType.ALL: "ALL", SelectType.RANDOM: "RANDOM", SelectType.CONTIGUOUS: "CONTIGUOUS"},
    GRADING: {g: g.name for g in GradingType},
}

# token dùng được trong GIFT header (cho regex của parser)
TOKENS = {kind: tuple(table) for kind, table in _DECODE.items()}


def _check_tables() -> None:
    # encode phải là nghịch đảo trái của decode, nếu lệch thì import thất bại ngay
    for kind, enum_cls in _ENUMS.items():
        for member in enum_cls:
            token = _ENCODE[kind].get(member)
            if token is None or _DECODE[kind].get(token) is not member:
                raise CodecError(f"{kind}: token {token!r} does not decode back to {member!r}")


def decode(kind: str, token: Union[str, int, None]):
    """Token (không phân biệt hoa thường, đã trim) → enum. Không bao giờ lỗi."""
    enum_cls = _ENUMS[kind]
    if isinstance(token, enum_cls):
        return token
    if isinstance(token, int) and not isinstance(token, bool):
        # record trong DB lưu số nguyên
        try:
            return enum_cls(token)
        except ValueError:
            return _DEFAULTS[kind]
    key = str(token or "").strip().upper()
    return _DECODE[kind].get(key, _DEFAULTS[kind])


def encode(kind: str, value) -> str:
    enum_cls = _ENUMS[kind]
    try:
        member = enum_cls(value)
    except ValueError:
        raise CodecError(f"{kind}: value {value!r} is outside {enum_cls.__name__}")
    return _ENCODE[kind][member]


def decode_count(token: Union[str, int, None], default: int = 3) -> int:
    if isinstance(token, bool) or token is None:
        return default
    if isinstance(token, int):
        return token
    s = str(token).strip()
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return int(float(s))
    except (ValueError, OverflowError):
        return default


def decode_config(layout, select, count, grading, default_count: int = 3) -> OrderingConfig:
    return OrderingConfig(
        layout=decode(LAYOUT, layout),
        select_type=decode(SELECT, select),
        select_count=decode_count(count, default_count),
        grading_type=decode(GRADING, grading),
    )


def encode_config(config: OrderingConfig) -> Tuple[str, str, int, str]:
    """→ (layout, select, count, grading) theo thứ tự của export."""
    return (
        encode(LAYOUT, config.layout),
        encode(SELECT, config.select_type),
        int(config.select_count),
        encode(GRADING, config.grading_type),
    )


_check_tables()
