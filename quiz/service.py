"""
Quiz service: the operations the HTTP layer drives.

``submit_answer`` is the only writer of answer outcomes. It walks

    DEDUP_CHECK -> VERSION_CHECK -> SCORE_AND_LOOKUP -> COMMIT -> RESPOND

and commits the conditional state write together with the answer-log row in
a single transaction, so a submission is either fully applied or not at all.
A retried submission with the same idempotency key is answered from the log
without running the transition again.
"""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from types import SimpleNamespace
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import NotFound, PersistenceFailure, VersionConflict
from models import AnswerSubmission, utcnow
from .adaptive import charged_until, decay_anchor, decay_streak, process_answer
from .leaderboard import Leaderboard
from .metrics import build_metrics
from .repositories import QuestionRepository, StateRepository, SubmissionRepository
from .selector import QuestionSelector

logger = logging.getLogger(__name__)

ENGINE_FIELDS = (
    "current_difficulty", "streak", "max_streak", "total_score", "total_answers",
    "correct_answers", "momentum", "recent_correct", "recent_total", "state_version",
)


def _camel(name):
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass
class NextQuestion:
    question_id: str
    difficulty: int
    prompt: str
    choices: List[str]
    category: str
    session_id: str
    state_version: int
    current_score: float
    current_streak: int
    max_streak: int
    current_difficulty: float

    def to_dict(self):
        return {_camel(k): v for k, v in asdict(self).items()}


@dataclass
class SubmissionResult:
    correct: bool
    new_difficulty: float
    new_streak: int
    score_delta: float
    total_score: float
    state_version: int
    max_streak: int
    leaderboard_rank_score: Optional[int] = None
    leaderboard_rank_streak: Optional[int] = None
    replayed: bool = False

    def to_dict(self):
        return {_camel(k): v for k, v in asdict(self).items()}


class QuizService:
    def __init__(self, session, cache, rng=None, with_ranks=True):
        self.session = session
        self.cache = cache
        self.states = StateRepository(session, cache)
        self.questions = QuestionRepository(session, cache)
        self.submissions = SubmissionRepository(session)
        self.leaderboard = Leaderboard(session, cache)
        self.selector = QuestionSelector(self.questions, rng=rng)
        self.with_ranks = with_ranks

    @contextmanager
    def _storage(self, action):
        try:
            yield
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("%s failed: %s", action, e)
            raise PersistenceFailure() from e

    # ---------------------------------------------------------------
    # fetch-next-question
    # ---------------------------------------------------------------
    def get_next_question(self, user_id, session_id=None, now=None):
        now = now or utcnow()
        with self._storage("get_next_question"):
            state = self.states.get_or_create(user_id, use_cache=True)
            state = self._apply_decay(user_id, state, now)
            question = self.selector.next(user_id, state.current_difficulty,
                                          exclude_id=state.last_question_id)

        if question is None:
            raise NotFound("No questions available", resource="question")

        return NextQuestion(
            question_id=question.id,
            difficulty=question.difficulty,
            prompt=question.prompt,
            choices=question.choices,
            category=question.category,
            session_id=session_id or str(uuid.uuid4()),
            state_version=state.state_version,
            current_score=float(state.total_score),
            current_streak=state.streak,
            max_streak=state.max_streak,
            current_difficulty=float(state.current_difficulty),
        )

    def _apply_decay(self, user_id, state, now):
        anchor = decay_anchor(state.last_answer_at, state.streak_decayed_at)
        streak, applied = decay_streak(state.streak, anchor, now)
        if not applied:
            return state

        version, old_streak = state.state_version, state.streak
        fields = {
            "streak": streak,
            "streak_decayed_at": charged_until(anchor, now),
            "state_version": version + 1,
        }
        if self.states.compare_and_set(user_id, version, fields):
            self.session.commit()
            self.states.invalidate(user_id, version + 1)
            logger.info("Streak decayed for user %s: %s -> %s", user_id, old_streak, streak)
        else:
            # a concurrent write won; use whatever it left behind
            self.session.rollback()
            self.states.invalidate(user_id)
            logger.info("Skipped streak decay for user %s, state moved past v%s",
                        user_id, version)
        return self.states.get(user_id)

    # ---------------------------------------------------------------
    # submit-answer
    # ---------------------------------------------------------------
    def submit_answer(self, user_id, question_id, answer, expected_version,
                      idempotency_key, now=None):
        now = now or utcnow()
        with self._storage("submit_answer"):
            # DEDUP_CHECK
            existing = self.submissions.get(user_id, idempotency_key)
            if existing is not None:
                return self._replay(user_id, existing)

            # VERSION_CHECK
            state = self.states.get(user_id)
            if state is None:
                raise NotFound("Unknown user", resource="user")
            if state.state_version != expected_version:
                self.states.invalidate(user_id, state.state_version)
                logger.info("Version conflict for user %s: expected v%s, stored v%s",
                            user_id, expected_version, state.state_version)
                raise VersionConflict(expected_version, state.state_version)

            # snapshot the inputs as of the checked version
            engine_state = SimpleNamespace(**{f: getattr(state, f) for f in ENGINE_FIELDS})
            anchor = decay_anchor(state.last_answer_at, state.streak_decayed_at)
            streak_before, _ = decay_streak(state.streak, anchor, now)
            engine_state.streak = streak_before

            # SCORE_AND_LOOKUP
            question = self.questions.get(question_id)
            if question is None:
                raise NotFound("Question not found", resource="question")
            correct = answer == question.correct_answer
            fields, delta = process_answer(engine_state, correct)
            fields["last_question_id"] = question.id
            fields["last_answer_at"] = now
            fields["streak_decayed_at"] = None

            record = AnswerSubmission(
                user_id=user_id,
                idempotency_key=idempotency_key,
                question_id=question.id,
                answer=answer,
                correct=correct,
                score_delta=delta,
                difficulty_at_answer=engine_state.current_difficulty,
                streak_at_answer=streak_before,
                answered_at=now,
            )

            # COMMIT
            if not self.states.compare_and_set(user_id, expected_version, fields):
                self.session.rollback()
                self.states.invalidate(user_id)
                # the winner may have been an earlier copy of this same submission
                existing = self.submissions.get(user_id, idempotency_key)
                if existing is not None:
                    return self._replay(user_id, existing)
                logger.info("Conditional write lost for user %s at v%s", user_id, expected_version)
                raise VersionConflict(expected_version)

            try:
                self.submissions.create(record)
            except IntegrityError:
                self.session.rollback()
                self.states.invalidate(user_id)
                existing = self.submissions.get(user_id, idempotency_key)
                if existing is None:
                    raise
                return self._replay(user_id, existing)

            self.session.commit()

        self.states.invalidate(user_id, fields["state_version"])
        self.leaderboard.invalidate()
        logger.debug("User %s answered %s (%s), +%s, now v%s", user_id, question_id,
                     "correct" if correct else "wrong", delta, fields["state_version"])

        # RESPOND
        with self._storage("rank lookup"):
            rank_score, rank_streak = self._ranks(user_id)
        return SubmissionResult(
            correct=correct,
            new_difficulty=fields["current_difficulty"],
            new_streak=fields["streak"],
            score_delta=delta,
            total_score=fields["total_score"],
            state_version=fields["state_version"],
            max_streak=fields["max_streak"],
            leaderboard_rank_score=rank_score,
            leaderboard_rank_streak=rank_streak,
        )

    def _replay(self, user_id, record):
        logger.info("Replaying submission %s for user %s", record.idempotency_key, user_id)
        state = self.states.get(user_id)
        if state is None:
            raise NotFound("Unknown user", resource="user")
        rank_score, rank_streak = self._ranks(user_id)
        return SubmissionResult(
            correct=record.correct,
            new_difficulty=float(state.current_difficulty),
            new_streak=state.streak,
            score_delta=float(record.score_delta),
            total_score=float(state.total_score),
            state_version=state.state_version,
            max_streak=state.max_streak,
            leaderboard_rank_score=rank_score,
            leaderboard_rank_streak=rank_streak,
            replayed=True,
        )

    def _ranks(self, user_id):
        if not self.with_ranks:
            return None, None
        score_rank, _ = self.leaderboard.rank_of(user_id, "score")
        streak_rank, _ = self.leaderboard.rank_of(user_id, "streak")
        return score_rank, streak_rank

    # ---------------------------------------------------------------
    # read-metrics
    # ---------------------------------------------------------------
    def get_metrics(self, user_id):
        with self._storage("get_metrics"):
            state = self.states.get(user_id, use_cache=True)
            if state is None:
                raise NotFound("User metrics not found", resource="user")
            history = self.submissions.history(user_id)
        return build_metrics(state, history)

    def get_leaderboard(self, kind, user_id=None, limit=50):
        with self._storage("get_leaderboard"):
            return self.leaderboard.top(kind, user_id=user_id, limit=limit)
