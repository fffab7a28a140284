import os
import sys
import random
import uuid

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app
from config import Config
from extensions import db
from models import Question, UserState
from quiz.cache import QuizCache
from quiz.service import QuizService

USER_ID = "6f1c2a52-3f1e-4d0b-9d55-2f6f0f3b8a11"
OTHER_USER_ID = "0b7e3f0e-9a57-4c4e-8a7e-1c2d3e4f5a6b"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    REDIS_URL = None
    LOG_LEVEL = 'WARNING'
    LOG_DIR = None


@pytest.fixture
def app():
    app = create_app(TestConfig, cache=QuizCache())
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app):
    return QuizService(db.session, app.extensions["quiz_cache"], rng=random.Random(7))


@pytest.fixture
def questions(app):
    """Two questions per difficulty level; the right answer is always 'right'."""
    bank = []
    for difficulty in range(1, 11):
        for i in range(2):
            q = Question(
                prompt=f"Question {difficulty}.{i}",
                correct_answer="right",
                difficulty=difficulty,
                category="general",
            )
            q.choices = ["right", "wrong", "other", "none"]
            db.session.add(q)
            bank.append(q)
    db.session.commit()
    return bank


def question_at(bank, difficulty, index=0):
    return [q for q in bank if q.difficulty == difficulty][index]


@pytest.fixture
def make_state(app):
    def _make(user_id=USER_ID, **overrides):
        state = UserState.default_for(user_id)
        for name, value in overrides.items():
            setattr(state, name, value)
        db.session.add(state)
        db.session.commit()
        return state
    return _make


def new_key():
    return str(uuid.uuid4())
