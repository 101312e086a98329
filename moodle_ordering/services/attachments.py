# -*- coding: utf-8 -*-
"""
Kho file đính kèm của đáp án (ảnh trong nội dung mục sắp xếp).

Vùng nháp (draft) → commit vào vùng cố định theo (context_id, answer id).
Cấu trúc thư mục:
    <root>/draft/<draft_id>/<file>
    <root>/<context_id>/question/answer/<owner_id>/<file>
"""
from __future__ import annotations
import re
import shutil
from pathlib import Path
from typing import List, Tuple

PLUGINFILE = "@@PLUGINFILE@@"


class AttachmentStore:
    def commit_draft_area(self, draft_id: int, context_id: int, owner_id: int, text: str = "") -> str:
        """Chuyển file nháp sang vùng cố định, trả về text đã đổi link."""
        raise NotImplementedError

    def delete_area(self, context_id: int, owner_id: int) -> None:
        raise NotImplementedError

    def list_area(self, context_id: int, owner_id: int) -> List[Tuple[str, bytes]]:
        return []


class LocalAttachmentStore(AttachmentStore):
    def __init__(self, root: str, verbose: bool = False):
        self.root = Path(root)
        self.verbose = verbose

    def _v(self, *args):
        if self.verbose: print("[files]", *args)

    # ---------- đường dẫn ----------
    def draft_dir(self, draft_id: int) -> Path:
        return self.root / "draft" / str(int(draft_id))

    def area_dir(self, context_id: int, owner_id: int) -> Path:
        return self.root / str(int(context_id)) / "question" / "answer" / str(int(owner_id))

    # ---------- draft ----------
    def save_draft_file(self, draft_id: int, filename: str, data: bytes) -> str:
        """Ghi 1 file vào vùng nháp, trả về URL nháp để chèn vào text."""
        d = self.draft_dir(draft_id)
        d.mkdir(parents=True, exist_ok=True)
        name = Path(filename).name
        (d / name).write_bytes(data)
        return f"draftfile.php/{int(draft_id)}/{name}"

    def commit_draft_area(self, draft_id, context_id, owner_id, text=""):
        src = self.draft_dir(draft_id)
        dst = self.area_dir(context_id, owner_id)
        if dst.exists():
            shutil.rmtree(dst)  # vùng cố định = đúng nội dung nháp
        dst.mkdir(parents=True, exist_ok=True)
        n = 0
        if src.exists():
            for f in sorted(src.iterdir()):
                if f.is_file():
                    shutil.copy2(f, dst / f.name)
                    n += 1
            shutil.rmtree(src)
        self._v(f"commit draft={draft_id} -> answer={owner_id} ({n} file)")
        # .../draftfile.php/<draft_id>/abc.png → @@PLUGINFILE@@/abc.png
        pattern = re.compile(r"[^\s\"'<>]*draftfile\.php/" + str(int(draft_id)) + r"/")
        return pattern.sub(PLUGINFILE + "/", text or "")

    def delete_area(self, context_id, owner_id):
        d = self.area_dir(context_id, owner_id)
        if d.exists():
            shutil.rmtree(d)
            self._v(f"delete area answer={owner_id}")

    def list_area(self, context_id, owner_id):
        d = self.area_dir(context_id, owner_id)
        if not d.exists():
            return []
        return [(f.name, f.read_bytes()) for f in sorted(d.iterdir()) if f.is_file()]

