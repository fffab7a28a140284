# config.py
import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-change-me"

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or \
        "sqlite:///" + os.path.join(BASE_DIR, "quizapp.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Redis is optional; without it every read goes to the database
    REDIS_URL = os.environ.get("REDIS_URL")
    STATE_CACHE_TTL = int(os.environ.get("STATE_CACHE_TTL", 60))
    QUESTION_POOL_CACHE_TTL = int(os.environ.get("QUESTION_POOL_CACHE_TTL", 300))
    LEADERBOARD_CACHE_TTL = int(os.environ.get("LEADERBOARD_CACHE_TTL", 10))

    LEADERBOARD_DEFAULT_LIMIT = 50
    LEADERBOARD_MAX_LIMIT = 100

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_DIR = os.environ.get("LOG_DIR")  # console only when unset
    LOG_JSON = os.environ.get("LOG_JSON", "").lower() in ("1", "true", "yes")
