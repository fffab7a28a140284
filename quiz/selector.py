import logging
import random

from .adaptive import MIN_DIFFICULTY, MAX_DIFFICULTY, round_half_up

logger = logging.getLogger(__name__)


class QuestionSelector:
    """
    Pick the next question near the user's difficulty.
    """

    def __init__(self, questions, rng=None):
        self.questions = questions
        self.rng = rng or random.Random()

    def next(self, user_id, current_difficulty, exclude_id=None):
        target = int(round_half_up(current_difficulty, 0))
        low = max(MIN_DIFFICULTY, target - 1)
        high = min(MAX_DIFFICULTY, target + 1)

        pool = self.questions.in_band(low, high)
        if not pool:
            # nothing in the band: any questions at all
            logger.info("No questions in band %s-%s for user %s, sampling", low, high, user_id)
            pool = self.questions.sample()
        if not pool:
            return None

        # Never repeat the previous question unless it is the only one left
        available = [q for q in pool if q.id != exclude_id] or pool

        exact = [q for q in available if q.difficulty == target]
        return self.rng.choice(exact or available)
