"""Tests for GIFT and Moodle XML export."""
import itertools
import xml.etree.ElementTree as ET

import pytest

from moodle_ordering.core.exporter import export_gift, export_xml, export_quiz_xml, build_quiz_xml_file
from moodle_ordering.core.models import (
    AnswerItem, Layout, OrderingConfig, OrderingQuestion, SelectType, GradingType, FORMAT_HTML, FORMAT_MOODLE,
)
from moodle_ordering.core.parser import import_gift, import_xml_question


def _question(**kw):
    q = OrderingQuestion(
        name="Rank these",
        questiontext="Rank these",
        config=OrderingConfig(Layout.VERTICAL, SelectType.RANDOM, 3, GradingType.RELATIVE_NEXT_EXCLUDE_LAST),
        answers=[AnswerItem("Second", ordinal=2, stable_id=11),
                 AnswerItem("First", ordinal=1, stable_id=10),
                 AnswerItem("Third", ordinal=3, stable_id=12)],
    )
    for k, v in kw.items():
        setattr(q, k, v)
    return q


class TestGift:
    def test_exact_output(self):
        assert export_gift(_question()) == (
            "::Rank these::Rank these{>3 RANDOM VERTICAL RELATIVE_NEXT_EXCLUDE_LAST\n"
            "First\nSecond\nThird\n}"
        )

    @pytest.mark.parametrize("layout,select,grading", list(itertools.product(Layout, SelectType, GradingType)))
    def test_import_reads_back_every_config(self, layout, select, grading):
        q = _question(config=OrderingConfig(layout, select, 3, grading))
        back = import_gift(export_gift(q))
        assert back.config == q.config
        assert [a.text for a in back.answers] == ["First", "Second", "Third"]
        assert back.name == "Rank these"


class TestXml:
    def test_block_fields(self):
        q = _question(config=OrderingConfig(Layout.HORIZONTAL, SelectType.ALL, 3, GradingType.ALL_OR_NOTHING))
        root = ET.fromstring(export_xml(q))
        assert root.get("type") == "ordering"
        assert root.findtext("layouttype") == "HORIZONTAL"
        assert root.findtext("selecttype") == "ALL"
        assert root.findtext("selectcount") == "3"
        assert root.findtext("gradingtype") == "ALL_OR_NOTHING"
        answers = root.findall("answer")
        assert [a.get("fraction") for a in answers] == ["1", "2", "3"]
        assert [a.findtext("text") for a in answers] == ["First", "Second", "Third"]
        assert root.find("correctfeedback") is not None

    def test_feedback_only_when_non_empty(self):
        q = _question()
        q.answers[0].feedback = "  "
        q.answers[1].feedback = "Starts here"
        answers = ET.fromstring(export_xml(q)).findall("answer")
        assert answers[0].find("feedback").findtext("text") == "Starts here"
        assert answers[1].find("feedback") is None
        assert answers[2].find("feedback") is None

    def test_special_characters_survive(self):
        q = _question(name='A & B <"quoted">')
        q.answers[1].text = "x < y ]]> z"
        back = import_xml_question(export_xml(q))
        assert back.name == 'A & B <"quoted">'
        assert back.answers[0].text == "x < y ]]> z"

    def test_answer_files_embedded(self):
        xml = export_xml(_question(), files={10: [("pic.png", "aGk=")]})
        first = ET.fromstring(xml).findall("answer")[0]
        f = first.find("file")
        assert f.get("name") == "pic.png" and f.text == "aGk="

    def test_xml_round_trip(self):
        q = _question(config=OrderingConfig(Layout.HORIZONTAL, SelectType.CONTIGUOUS, 3,
                                            GradingType.LONGEST_CONTIGUOUS_SUBSET),
                      questiontext_format=FORMAT_HTML, hints=["Think"])
        back = import_xml_question(export_xml(q))
        assert back.config == q.config
        assert [a.text for a in back.answers] == ["First", "Second", "Third"]
        assert back.hints == ["Think"]

    def test_gift_import_keeps_moodle_auto_format_through_xml(self):
        q = import_gift("Rank these{>3 RANDOM VERTICAL RELATIVE\nFirst\nSecond\nThird\n}")
        xml = export_xml(q)
        assert '<questiontext format="moodle_auto_format">' in xml
        assert import_xml_question(xml).questiontext_format == FORMAT_MOODLE

    def test_quiz_with_categories(self, tmp_path):
        q1 = _question(category_path="top/a")
        q2 = _question(category_path="top/a")
        q3 = _question(category_path="top/b")
        root = ET.fromstring(export_quiz_xml([q1, q2, q3]))
        types = [q.get("type") for q in root.findall("question")]
        assert types == ["category", "ordering", "ordering", "category", "ordering"]

        out = build_quiz_xml_file([q1], xml_out=str(tmp_path / "out" / "moodle.xml"))
        assert "<quiz>" in (tmp_path / "out" / "moodle.xml").read_text(encoding="utf-8")
        assert out.endswith("moodle.xml")
