import json
import os
from dataclasses import dataclass
from pathlib import Path

_DEFAULT = {
    "max_name_length": 42,
    "default_question_name": "Drag the following items into the correct order.",
    "min_answers": 2,
    "default_select_count": 6,
    "store_path": "ordering_store.json",
    "files_dir": "ordering_files",
    "context_id": 1,
    "verbose": True,
}

# biến môi trường ghi đè (giống APPWORD_MAX_SIDE bên uploader)
_ENV = {
    "max_name_length": ("MOODLE_ORDERING_MAX_NAME", int),
    "min_answers": ("MOODLE_ORDERING_MIN_ANSWERS", int),
    "store_path": ("MOODLE_ORDERING_STORE", str),
    "files_dir": ("MOODLE_ORDERING_FILES", str),
    "verbose": ("MOODLE_ORDERING_VERBOSE", lambda s: s.strip().lower() in ("1", "true", "yes", "on")),
}


def load_config(path: str | None):
    if not path: cfg = dict(_DEFAULT)
    else:
        p = Path(path)
        if not p.exists(): cfg = dict(_DEFAULT)
        else:
            try: cfg = {**_DEFAULT, **json.loads(p.read_text(encoding="utf-8"))}
            except Exception: cfg = dict(_DEFAULT)
    for key, (env, conv) in _ENV.items():
        raw = os.getenv(env)
        if raw:
            try: cfg[key] = conv(raw)
            except ValueError: pass
    return cfg


@dataclass
class Settings:
    max_name_length: int = 42
    default_question_name: str = _DEFAULT["default_question_name"]
    min_answers: int = 2
    default_select_count: int = 6
    store_path: str = "ordering_store.json"
    files_dir: str = "ordering_files"
    context_id: int = 1
    verbose: bool = True

    @classmethod
    def load(cls, path: str | None = None) -> "Settings":
        cfg = load_config(path)
        known = {k: v for k, v in cfg.items() if k in cls.__dataclass_fields__}
        return cls(**known)
