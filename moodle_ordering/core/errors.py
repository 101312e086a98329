# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Optional


class OrderingError(Exception):
    """Lỗi gốc của package."""


class CodecError(OrderingError):
    """Giá trị enum không thuộc bảng mã hoá (lỗi nội bộ, không phải lỗi người dùng)."""


class NotEnoughAnswers(OrderingError):
    def __init__(self, minimum: int = 2, found: int = 0):
        self.minimum = minimum
        self.found = found
        super().__init__(f"not enough answers: need at least {minimum}, got {found}")


class StorageError(OrderingError):
    """Ghi 1 record thất bại. Giữ lại loại record + id để báo cho người dùng."""

    def __init__(self, kind: str, record_id: Optional[int] = None, action: str = "update"):
        self.kind = kind
        self.record_id = record_id
        self.action = action
        if record_id is None:
            msg = f"cannot {action} record: {kind}"
        else:
            msg = f"cannot {action} record: {kind} (id={record_id})"
        super().__init__(msg)


class MissingQuestionData(OrderingError):
    pass
