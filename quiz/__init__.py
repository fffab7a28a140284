from flask import Blueprint, current_app

from extensions import db
from .service import QuizService

quiz_bp = Blueprint("quiz", __name__)
leaderboard_bp = Blueprint("leaderboard", __name__)


def get_quiz_service():
    return QuizService(db.session, current_app.extensions["quiz_cache"])


from . import routes  # noqa: E402,F401
