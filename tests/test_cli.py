import json

from typer.testing import CliRunner

from moodle_ordering.cli import app

runner = CliRunner()

GIFT = (
    "$CATEGORY: top/ordering\n"
    "::Rank::Rank these{>3 RANDOM VERTICAL RELATIVE\nFirst\nSecond\nThird\n}\n"
    "\n"
    "::Other::2+2 = {=4 ~5}\n"
)


def _config(tmp_path):
    cfg = tmp_path / "settings.json"
    cfg.write_text(json.dumps({
        "store_path": str(tmp_path / "store.json"),
        "files_dir": str(tmp_path / "files"),
        "verbose": False,
    }), encoding="utf-8")
    return str(cfg)


def test_gift2xml(tmp_path):
    src = tmp_path / "quiz.gift.txt"
    src.write_text(GIFT, encoding="utf-8")
    out = tmp_path / "moodle.xml"
    result = runner.invoke(app, ["gift2xml", str(src), "--xml-out", str(out), "--config", _config(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "ordering=1 skipped=1" in result.output
    text = out.read_text(encoding="utf-8")
    assert '<question type="ordering">' in text
    assert "top/ordering" in text


def test_save_show_delete(tmp_path):
    cfg = _config(tmp_path)
    src = tmp_path / "quiz.gift.txt"
    src.write_text(GIFT, encoding="utf-8")

    result = runner.invoke(app, ["save", str(src), "--config", cfg])
    assert result.exit_code == 0, result.output
    assert "OK    question=1" in result.output

    result = runner.invoke(app, ["show", "1", "--config", cfg])
    assert result.exit_code == 0, result.output
    assert "{>3 RANDOM VERTICAL RELATIVE_NEXT_EXCLUDE_LAST\nFirst\nSecond\nThird\n}" in result.output

    result = runner.invoke(app, ["show", "1", "--format", "xml", "--config", cfg])
    assert "<gradingtype>RELATIVE_NEXT_EXCLUDE_LAST</gradingtype>" in result.output

    result = runner.invoke(app, ["delete", "1", "--config", cfg])
    assert result.exit_code == 0
    result = runner.invoke(app, ["show", "1", "--config", cfg])
    assert result.exit_code == 1


def test_save_reports_notice(tmp_path):
    src = tmp_path / "one.gift.txt"
    src.write_text("Lonely{>ALL\nonly\n}\n", encoding="utf-8")
    result = runner.invoke(app, ["save", str(src), "--config", _config(tmp_path)])
    assert result.exit_code == 1
    assert "not enough answers" in result.output


def test_xml2gift(tmp_path):
    src = tmp_path / "quiz.gift.txt"
    src.write_text(GIFT, encoding="utf-8")
    xml = tmp_path / "moodle.xml"
    cfg = _config(tmp_path)
    runner.invoke(app, ["gift2xml", str(src), "--xml-out", str(xml), "--config", cfg])
    gift = tmp_path / "back.gift.txt"
    result = runner.invoke(app, ["xml2gift", str(xml), "--gift-out", str(gift), "--config", cfg])
    assert result.exit_code == 0, result.output
    text = gift.read_text(encoding="utf-8")
    assert text.startswith("$CATEGORY: top/ordering")
    assert "::Rank::Rank these{>3 RANDOM VERTICAL RELATIVE_NEXT_EXCLUDE_LAST" in text
