import atexit
from datetime import datetime, timezone

from flask import Flask, jsonify
from config import Config
from extensions import db
from errors import register_error_handlers
from logging_config import setup_logging
from quiz import quiz_bp, leaderboard_bp
from quiz.cache import QuizCache
from seed import seed_questions_command
from import_from_excel import import_questions_command


def create_app(config_class=Config, cache=None):
    app = Flask(__name__)
    app.config.from_object(config_class)

    setup_logging(
        app,
        log_level=app.config.get("LOG_LEVEL", "INFO"),
        log_dir=app.config.get("LOG_DIR"),
        json_format=app.config.get("LOG_JSON", False),
    )

    db.init_app(app)

    # The cache is built once per process and closed at exit.
    if cache is None:
        cache = QuizCache.from_config(app.config)
        atexit.register(cache.close)
    app.extensions["quiz_cache"] = cache

    register_error_handlers(app)
    app.register_blueprint(quiz_bp, url_prefix="/v1/quiz")
    app.register_blueprint(leaderboard_bp, url_prefix="/v1/leaderboard")

    app.cli.add_command(seed_questions_command)
    app.cli.add_command(import_questions_command)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})

    with app.app_context():
        db.create_all()

    return app

if __name__ == "__main__":
    create_app().run(debug=True)
