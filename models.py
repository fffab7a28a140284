# models.py
from extensions import db
from datetime import datetime, timezone
import json
import uuid

DEFAULT_DIFFICULTY = 3.0


def utcnow():
    # naive UTC, which is what sqlite hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id():
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


def _parse_iso(value):
    return datetime.fromisoformat(value) if value else None


class UserState(db.Model):
    __tablename__ = "user_state"

    user_id = db.Column(db.String(36), primary_key=True)
    current_difficulty = db.Column(db.Float, nullable=False, default=DEFAULT_DIFFICULTY)
    streak = db.Column(db.Integer, nullable=False, default=0)
    max_streak = db.Column(db.Integer, nullable=False, default=0)
    total_score = db.Column(db.Float, nullable=False, default=0.0)
    total_answers = db.Column(db.Integer, nullable=False, default=0)
    correct_answers = db.Column(db.Integer, nullable=False, default=0)
    momentum = db.Column(db.Float, nullable=False, default=0.0)
    recent_correct = db.Column(db.Float, nullable=False, default=0.0)
    recent_total = db.Column(db.Integer, nullable=False, default=0)
    state_version = db.Column(db.Integer, nullable=False, default=1)
    last_question_id = db.Column(db.String(36))
    last_answer_at = db.Column(db.DateTime)
    # end of the inactivity already charged to the streak; cleared by each answer
    streak_decayed_at = db.Column(db.DateTime)
    updated_at = db.Column(db.DateTime, default=utcnow)

    CACHED_FIELDS = (
        "user_id", "current_difficulty", "streak", "max_streak", "total_score",
        "total_answers", "correct_answers", "momentum", "recent_correct",
        "recent_total", "state_version", "last_question_id",
    )

    @classmethod
    def default_for(cls, user_id):
        return cls(
            user_id=user_id,
            current_difficulty=DEFAULT_DIFFICULTY,
            streak=0,
            max_streak=0,
            total_score=0.0,
            total_answers=0,
            correct_answers=0,
            momentum=0.0,
            recent_correct=0.0,
            recent_total=0,
            state_version=1,
            updated_at=utcnow(),
        )

    def to_dict(self):
        data = {name: getattr(self, name) for name in self.CACHED_FIELDS}
        data["last_answer_at"] = _iso(self.last_answer_at)
        data["streak_decayed_at"] = _iso(self.streak_decayed_at)
        return data

    @classmethod
    def from_dict(cls, data):
        # Detached copy rebuilt from the cache; never added to the session.
        fields = {name: data.get(name) for name in cls.CACHED_FIELDS}
        fields["last_answer_at"] = _parse_iso(data.get("last_answer_at"))
        fields["streak_decayed_at"] = _parse_iso(data.get("streak_decayed_at"))
        return cls(**fields)

    def __repr__(self):
        return f"<UserState {self.user_id} v{self.state_version}>"


class Question(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    prompt = db.Column(db.Text, nullable=False)
    choices_json = db.Column(db.Text, nullable=False, default="[]")
    correct_answer = db.Column(db.String(500), nullable=False)
    difficulty = db.Column(db.Integer, nullable=False, default=3, index=True)
    category = db.Column(db.String(100), nullable=False, default="general")
    created_at = db.Column(db.DateTime, default=utcnow)

    @property
    def choices(self):
        try:
            return json.loads(self.choices_json or "[]")
        except ValueError:
            return []

    @choices.setter
    def choices(self, value):
        self.choices_json = json.dumps(list(value or []), ensure_ascii=False)

    def to_dict(self):
        return {
            "id": self.id,
            "prompt": self.prompt,
            "choices": self.choices,
            "correct_answer": self.correct_answer,
            "difficulty": self.difficulty,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data):
        q = cls(
            id=data["id"],
            prompt=data["prompt"],
            correct_answer=data["correct_answer"],
            difficulty=data["difficulty"],
            category=data.get("category") or "general",
        )
        q.choices = data.get("choices") or []
        return q


class AnswerSubmission(db.Model):
    """One row per accepted answer; doubles as the idempotency guard."""
    __tablename__ = "answer_log"
    __table_args__ = (
        db.UniqueConstraint("user_id", "idempotency_key", name="uq_answer_log_user_key"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    idempotency_key = db.Column(db.String(64), nullable=False)
    question_id = db.Column(db.String(36), nullable=False)
    answer = db.Column(db.Text, nullable=False)
    correct = db.Column(db.Boolean, nullable=False)
    score_delta = db.Column(db.Float, nullable=False, default=0.0)
    difficulty_at_answer = db.Column(db.Float, nullable=False)
    streak_at_answer = db.Column(db.Integer, nullable=False)
    answered_at = db.Column(db.DateTime, nullable=False, default=utcnow)
