# -*- coding: utf-8 -*-
"""
Lớp lưu trữ record (thay cho $DB của Moodle).

Chỉ cần vài thao tác: get/insert/update/set_field/delete theo bảng + bộ lọc
bằng nhau, và transaction() để gom nhiều lần ghi của 1 lần save.
"""
from __future__ import annotations
import copy
import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

QUESTIONS = "question"
ANSWERS = "question_answers"
OPTIONS = "qtype_ordering_options"
HINTS = "question_hints"

Record = Dict[str, Any]


class Storage:
    """Giao diện tối thiểu; các hàm ghi trả False/0 khi thất bại (giống $DB)."""

    def get_records(self, table: str, filters: Optional[Record] = None, order_by: Optional[str] = None) -> List[Record]:
        raise NotImplementedError

    def get_record(self, table: str, filters: Record) -> Optional[Record]:
        rows = self.get_records(table, filters, order_by="id")
        return rows[0] if rows else None

    def insert_record(self, table: str, fields: Record) -> int:
        raise NotImplementedError

    def update_record(self, table: str, fields: Record) -> bool:
        raise NotImplementedError

    def set_field(self, table: str, field: str, value: Any, filters: Record) -> bool:
        raise NotImplementedError

    def delete_records(self, table: str, filters: Record) -> int:
        raise NotImplementedError

    @contextmanager
    def transaction(self) -> Iterator[None]:
        yield


def _matches(row: Record, filters: Optional[Record]) -> bool:
    return all(row.get(k) == v for k, v in (filters or {}).items())


class MemoryStorage(Storage):
    def __init__(self, tables: Optional[Dict[str, Dict[int, Record]]] = None):
        self._tables: Dict[str, Dict[int, Record]] = tables or {}
        self._next_id: Dict[str, int] = {
            t: (max(rows) + 1 if rows else 1) for t, rows in self._tables.items()
        }
        self._tx_depth = 0

    # ---------- đọc ----------
    def get_records(self, table, filters=None, order_by=None):
        rows = [copy.deepcopy(r) for r in self._tables.get(table, {}).values() if _matches(r, filters)]
        if order_by:
            # thứ tự phụ theo id để kết quả ổn định khi trùng giá trị
            rows.sort(key=lambda r: (r.get(order_by) is None, r.get(order_by) or 0, r.get("id", 0)))
        return rows

    # ---------- ghi ----------
    def insert_record(self, table, fields):
        rows = self._tables.setdefault(table, {})
        new_id = self._next_id.get(table, 1)
        self._next_id[table] = new_id + 1
        row = {k: v for k, v in fields.items() if k != "id"}
        row["id"] = new_id
        rows[new_id] = copy.deepcopy(row)
        self._changed()
        return new_id

    def update_record(self, table, fields):
        rid = fields.get("id")
        rows = self._tables.get(table, {})
        if rid not in rows:
            return False
        rows[rid].update(copy.deepcopy(fields))
        self._changed()
        return True

    def set_field(self, table, field, value, filters):
        hit = False
        for row in self._tables.get(table, {}).values():
            if _matches(row, filters):
                row[field] = value
                hit = True
        if hit:
            self._changed()
        return hit

    def delete_records(self, table, filters):
        rows = self._tables.get(table, {})
        doomed = [rid for rid, r in rows.items() if _matches(r, filters)]
        for rid in doomed:
            del rows[rid]
        if doomed:
            self._changed()
        return len(doomed)

    # ---------- transaction ----------
    @contextmanager
    def transaction(self):
        if self._tx_depth:
            # transaction lồng nhau → gộp vào transaction ngoài cùng
            yield
            return
        snapshot = (copy.deepcopy(self._tables), dict(self._next_id))
        self._tx_depth = 1
        try:
            yield
        except BaseException:
            self._tables, self._next_id = snapshot
            raise
        finally:
            self._tx_depth = 0
        self._changed()

    def _changed(self) -> None:
        """Hook cho lớp con (ghi file)."""


# ========== JSON file ==========
def _read_json(p: Path):
    with open(p, "r", encoding="utf-8") as f:
        return json.load(f)

def _write_json(p: Path, obj):
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)


class JsonFileStorage(MemoryStorage):
    """
    Lưu toàn bộ bảng vào 1 file JSON: {"table": [record, ...]}.
    Mỗi lần ghi (hoặc khi transaction kết thúc) thì ghi lại file.
    """
    def __init__(self, path: str, verbose: bool = False):
        self.path = Path(path)
        self.verbose = verbose
        tables: Dict[str, Dict[int, Record]] = {}
        if self.path.exists() and self.path.stat().st_size > 0:
            data = _read_json(self.path)
            for table, rows in (data or {}).items():
                tables[table] = {int(r["id"]): r for r in rows}
        super().__init__(tables)

    def _v(self, *args):
        if self.verbose: print("[storage]", *args)

    def _changed(self) -> None:
        if self._tx_depth:
            return  # chờ transaction xong mới ghi
        _write_json(self.path, {t: list(rows.values()) for t, rows in self._tables.items()})
        self._v(f"saved {self.path}")
