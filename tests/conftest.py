import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if ROOT.as_posix() not in sys.path:
    sys.path.insert(0, ROOT.as_posix())

from moodle_ordering.core.config import Settings
from moodle_ordering.services.attachments import LocalAttachmentStore
from moodle_ordering.services.questiontype import OrderingQuestionType
from moodle_ordering.services.storage import MemoryStorage

RANK_CLAUSE = "Rank these{>3 RANDOM VERTICAL RELATIVE\nFirst\nSecond\nThird\n}"


@pytest.fixture
def settings():
    return Settings(verbose=False)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def files(tmp_path: Path):
    return LocalAttachmentStore(str(tmp_path / "files"))


@pytest.fixture
def qtype(storage, files, settings):
    return OrderingQuestionType(storage, files, settings)


@pytest.fixture
def rank_clause():
    return RANK_CLAUSE
