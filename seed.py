# seed.py
# Loads a small demo question bank, a few questions per difficulty level.
# Run with: flask --app app seed-questions [--reset]

import click
from flask.cli import with_appcontext

from extensions import db
from models import Question

DEMO_QUESTIONS = [
    # (difficulty, category, prompt, choices, correct)
    (1, "math", "What is 2 + 2?", ["3", "4", "5", "6"], "4"),
    (1, "geography", "What is the capital of France?", ["Paris", "Rome", "Madrid", "Berlin"], "Paris"),
    (2, "math", "What is 7 x 6?", ["36", "42", "48", "49"], "42"),
    (2, "science", "What gas do plants absorb from the air?", ["Oxygen", "Nitrogen", "Carbon dioxide", "Helium"], "Carbon dioxide"),
    (3, "math", "What is 15% of 200?", ["20", "25", "30", "35"], "30"),
    (3, "geography", "Which river flows through Cairo?", ["Nile", "Amazon", "Danube", "Ganges"], "Nile"),
    (4, "science", "What is the chemical symbol for sodium?", ["So", "Sd", "Na", "Sn"], "Na"),
    (4, "history", "In which year did World War II end?", ["1943", "1944", "1945", "1946"], "1945"),
    (5, "math", "What is the square root of 169?", ["11", "12", "13", "14"], "13"),
    (5, "science", "How many bones are in the adult human body?", ["196", "206", "216", "226"], "206"),
    (6, "math", "What is 2 to the power of 10?", ["512", "1000", "1024", "2048"], "1024"),
    (6, "geography", "What is the capital of Australia?", ["Sydney", "Melbourne", "Canberra", "Perth"], "Canberra"),
    (7, "science", "What is the speed of light in km/s (approx.)?", ["150,000", "300,000", "450,000", "600,000"], "300,000"),
    (7, "history", "Who was the first emperor of Rome?", ["Julius Caesar", "Augustus", "Nero", "Trajan"], "Augustus"),
    (8, "math", "What is the derivative of x^3?", ["x^2", "3x^2", "3x", "x^3/3"], "3x^2"),
    (8, "science", "Which particle carries the electromagnetic force?", ["Gluon", "Photon", "W boson", "Graviton"], "Photon"),
    (9, "math", "What is the sum of the interior angles of a hexagon?", ["540", "620", "720", "900"], "720"),
    (9, "history", "The Treaty of Westphalia was signed in which year?", ["1618", "1648", "1688", "1715"], "1648"),
    (10, "math", "What is the integral of 1/x dx?", ["x", "ln|x| + C", "1/x^2", "e^x"], "ln|x| + C"),
    (10, "science", "What is the half-life of carbon-14 (approx.)?", ["570 years", "5,730 years", "57,300 years", "573,000 years"], "5,730 years"),
]


def seed_questions(reset=False):
    """Insert the demo bank; returns the number of questions added."""
    if reset:
        Question.query.delete()
        db.session.commit()

    existing = {q.prompt for q in Question.query.all()}
    added = 0
    for difficulty, category, prompt, choices, correct in DEMO_QUESTIONS:
        if prompt in existing:
            continue
        q = Question(prompt=prompt, difficulty=difficulty, category=category, correct_answer=correct)
        q.choices = choices
        db.session.add(q)
        added += 1

    db.session.commit()
    return added


@click.command("seed-questions")
@click.option("--reset", is_flag=True, help="Delete every question before seeding.")
@with_appcontext
def seed_questions_command(reset):
    added = seed_questions(reset=reset)
    click.echo(f"Seed complete: {added} question(s) added.")


if __name__ == "__main__":
    from app import create_app
    with create_app().app_context():
        print(f"Seed complete: {seed_questions()} question(s) added.")
