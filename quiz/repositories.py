"""
Storage collaborators for the quiz service.

Apart from create-if-absent, repositories never commit; the service owns
the transaction boundary.
"""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from models import UserState, Question, AnswerSubmission, utcnow
from .cache import user_state_key, question_pool_key

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 10


class StateRepository:
    def __init__(self, session, cache):
        self.session = session
        self.cache = cache

    def get(self, user_id, use_cache=False):
        """Fetch the user's state, optionally through the read-through cache."""
        if use_cache:
            cached = self.cache.get(user_state_key(user_id))
            if cached:
                return UserState.from_dict(cached)

        state = self.session.get(UserState, user_id, populate_existing=True)
        if state is not None and use_cache:
            self.cache.set_unless_superseded(user_state_key(user_id), state.to_dict(),
                                             self.cache.state_ttl, state.state_version)
        return state

    def get_or_create(self, user_id, use_cache=False):
        state = self.get(user_id, use_cache=use_cache)
        if state is not None:
            return state

        self.session.add(UserState.default_for(user_id))
        try:
            self.session.commit()
            logger.info("Created state for user %s", user_id)
        except IntegrityError:
            # another request created it first
            self.session.rollback()
        return self.get(user_id)

    def compare_and_set(self, user_id, expected_version, fields):
        """
        Conditionally write ``fields`` when the stored version still equals
        ``expected_version``. Returns False when another writer got there first.
        """
        values = dict(fields)
        values["updated_at"] = utcnow()
        stmt = (
            update(UserState)
            .where(UserState.user_id == user_id)
            .where(UserState.state_version == expected_version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return result.rowcount == 1

    def invalidate(self, user_id, version=None):
        """
        Evict the cached state. With the committed ``version``, readers still
        holding an older row are also kept from putting it back.
        """
        if version is None:
            self.cache.delete(user_state_key(user_id))
        else:
            self.cache.retire(user_state_key(user_id), version, self.cache.state_ttl)


class QuestionRepository:
    def __init__(self, session, cache):
        self.session = session
        self.cache = cache

    def get(self, question_id):
        return self.session.get(Question, question_id)

    def in_band(self, low, high):
        key = question_pool_key(f"{low}-{high}")
        cached = self.cache.get(key)
        if cached:
            return [Question.from_dict(d) for d in cached]

        stmt = select(Question).where(Question.difficulty.between(low, high))
        pool = list(self.session.scalars(stmt))
        if pool:
            self.cache.set(key, [q.to_dict() for q in pool], self.cache.pool_ttl)
        return pool

    def sample(self, limit=DEFAULT_SAMPLE_SIZE):
        stmt = select(Question).order_by(func.random()).limit(limit)
        return list(self.session.scalars(stmt))


class SubmissionRepository:
    def __init__(self, session):
        self.session = session

    def get(self, user_id, idempotency_key):
        stmt = select(AnswerSubmission).filter_by(
            user_id=user_id, idempotency_key=idempotency_key)
        return self.session.scalars(stmt).first()

    def create(self, record):
        """Insert once; raises IntegrityError when the key was already used."""
        self.session.add(record)
        self.session.flush()
        return record

    def history(self, user_id):
        stmt = (
            select(AnswerSubmission)
            .filter_by(user_id=user_id)
            .order_by(AnswerSubmission.answered_at.desc(), AnswerSubmission.id.desc())
        )
        return list(self.session.scalars(stmt))
