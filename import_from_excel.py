# import_from_excel.py
# Loads the question bank from an xlsx sheet.
# Columns: Question | Op1..Op4 | CorrectOp | Difficulty | Category
# CorrectOp is either the option number (1-4) or the option text.
import os
import logging

import click
import openpyxl
from flask.cli import with_appcontext

from extensions import db
from models import Question

logger = logging.getLogger("quiz.import")

XLSX_PATH = os.path.join("data", "questions.xlsx")
MAX_OPTIONS = 4


def read_xlsx(path):
    wb = openpyxl.load_workbook(path, read_only=True)
    sheet = wb.active

    rows = []
    headers = None

    for i, row in enumerate(sheet.iter_rows(values_only=True), start=1):
        if i == 1:
            headers = [str(x).strip() if x else "" for x in row]
            logger.debug("XLSX headers: %s", headers)
            continue

        rowdict = {}
        for h, val in zip(headers, row):
            rowdict[h] = "" if val is None else str(val)
        rows.append((i, rowdict))

    wb.close()
    return rows


def normalize_difficulty(raw):
    try:
        diff = int(float(raw))
    except (TypeError, ValueError):
        return 1
    return max(1, min(10, diff))


def normalize_choices(row):
    choices = []
    for i in range(1, MAX_OPTIONS + 1):
        val = row.get(f"Op{i}", "").strip()
        if val:
            choices.append(val)
    return choices


def resolve_correct(raw, choices, row):
    raw = (raw or "").strip()
    if raw.isdigit():
        # option numbers refer to the sheet columns, not the compacted list
        return row.get(f"Op{int(raw)}", "").strip() or None
    return raw if raw in choices else None


def import_rows(rows):
    """Add every valid row; returns ``(added, skipped)``."""
    added = 0
    skipped = []

    for lineno, row in rows:
        prompt = row.get("Question", "").strip()
        if not prompt:
            skipped.append((lineno, "Missing Question"))
            continue

        choices = normalize_choices(row)
        if len(choices) < 2:
            skipped.append((lineno, "Need at least 2 options"))
            continue

        correct = resolve_correct(row.get("CorrectOp"), choices, row)
        if not correct:
            skipped.append((lineno, "CorrectOp does not match an option"))
            continue

        q = Question(
            prompt=prompt,
            correct_answer=correct,
            difficulty=normalize_difficulty(row.get("Difficulty", "1")),
            category=row.get("Category", "").strip() or "general",
        )
        q.choices = choices
        db.session.add(q)
        added += 1

    db.session.commit()
    return added, skipped


@click.command("import-questions")
@click.argument("path", default=XLSX_PATH, type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_questions_command(path):
    rows = read_xlsx(path)
    click.echo(f"Found {len(rows)} question rows in {path}")

    added, skipped = import_rows(rows)

    click.echo(f"Added: {added}")
    click.echo(f"Skipped: {len(skipped)}")
    for lineno, reason in skipped:
        click.echo(f"  line {lineno}: {reason}")
