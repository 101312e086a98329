import typer
from pathlib import Path
from typing import Optional
from moodle_ordering.core.config import Settings
from moodle_ordering.core.errors import MissingQuestionData
from moodle_ordering.core.exporter import build_quiz_xml_file, export_gift_file
from moodle_ordering.core.parser import import_gift_file, import_xml
from moodle_ordering.services.attachments import LocalAttachmentStore
from moodle_ordering.services.questiontype import OrderingQuestionType
from moodle_ordering.services.storage import JsonFileStorage

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _service(config: Optional[Path]) -> OrderingQuestionType:
    settings = Settings.load(str(config) if config else None)
    storage = JsonFileStorage(settings.store_path, verbose=settings.verbose)
    files = LocalAttachmentStore(settings.files_dir, verbose=settings.verbose)
    return OrderingQuestionType(storage, files, settings)


def _read_questions(src: Path, settings: Settings):
    if src.suffix.lower() == ".xml":
        return import_xml(src.read_text(encoding="utf-8"), settings), 0
    return import_gift_file(src, settings)


@app.command()
def gift2xml(gift_file: Path, xml_out: Path = Path("output_questions/moodle.xml"), config: Optional[Path] = None):
    settings = Settings.load(str(config) if config else None)
    questions, skipped = import_gift_file(gift_file, settings)
    xp = build_quiz_xml_file(questions, xml_out=str(xml_out))
    typer.echo(f"XML: {xp} | ordering={len(questions)} skipped={skipped}")


@app.command()
def xml2gift(xml_file: Path, gift_out: Path = Path("output_questions/ordering.gift.txt"), config: Optional[Path] = None):
    settings = Settings.load(str(config) if config else None)
    questions = import_xml(xml_file.read_text(encoding="utf-8"), settings)
    gp = export_gift_file(questions, str(gift_out))
    typer.echo(f"GIFT: {gp} | ordering={len(questions)}")


@app.command()
def save(src: Path, config: Optional[Path] = None):
    """Import file GIFT/XML rồi lưu từng câu ordering vào store."""
    svc = _service(config)
    questions, skipped = _read_questions(src, svc.settings)
    failed = 0
    for q in questions:
        res = svc.save(q)
        if res.ok:
            typer.echo(f"OK    question={res.question_id} answers={res.answer_ids} | {q.name}")
        elif res.notice:
            failed += 1
            typer.echo(f"SKIP  {q.name} :: {res.notice} (minimum={res.minimum})")
        else:
            failed += 1
            typer.echo(f"FAIL  {q.name} :: {res.error}")
    typer.echo(f"Done  saved={len(questions) - failed} failed={failed} skipped={skipped}")
    if failed:
        raise typer.Exit(code=1)


@app.command()
def show(question_id: int, fmt: str = typer.Option("gift", "--format", help="gift | xml"), config: Optional[Path] = None):
    svc = _service(config)
    try:
        q = svc.load(question_id)
    except MissingQuestionData as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    typer.echo(svc.export_xml(q) if fmt.lower() == "xml" else svc.export_gift(q))


@app.command()
def delete(question_id: int, config: Optional[Path] = None):
    svc = _service(config)
    svc.delete(question_id)
    typer.echo(f"Deleted question={question_id}")


if __name__ == "__main__":
    app()
