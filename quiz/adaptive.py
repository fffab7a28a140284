"""
Adaptive scoring engine.

Pure functions only: no database, no clock, no identifiers. The service layer
feeds them the persisted state and writes back what they return.

Difficulty moves through a hysteresis band: a decaying momentum accumulator
must cross +/-MOMENTUM_THRESHOLD before difficulty changes by half a step,
which keeps single answers from bouncing the user between two levels. A
rolling accuracy window overrides the band with a full step when recent
performance is extreme.
"""

from collections import namedtuple
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
import math

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10
MAX_STREAK_MULTIPLIER = 5
STREAK_MULTIPLIER_STEP = 0.5
BASE_POINTS_PER_DIFFICULTY = 10

MOMENTUM_DECAY = 0.7
MOMENTUM_LIMIT = 3
MOMENTUM_THRESHOLD = 1.5
CORRECT_IMPULSE = 0.6
INCORRECT_IMPULSE = -0.8  # lowering is easier than raising
HYSTERESIS_STEP = 0.5

RECENT_WINDOW = 10
OVERRIDE_MIN_SAMPLES = 5
OVERRIDE_HIGH_ACCURACY = 0.9
OVERRIDE_LOW_ACCURACY = 0.2
OVERRIDE_STEP = 1

STREAK_DECAY_PERIOD_SECONDS = 30 * 60
STREAK_DECAY_RATE = 0.5

Adaptation = namedtuple("Adaptation", "difficulty momentum recent_correct recent_total")


def round_half_up(value, places=2):
    """Round half away from zero. Used for every 2-decimal quantity."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def clamp(value, low, high):
    return max(low, min(high, value))


def streak_multiplier(streak):
    return min(1 + streak * STREAK_MULTIPLIER_STEP, MAX_STREAK_MULTIPLIER)


def score_delta(difficulty, streak, correct):
    """
    Points for one answer.

    ``streak`` is the streak *before* this answer, so the first correct answer
    of a run earns the base multiplier.
    """
    if not correct:
        return 0.0
    return round_half_up(difficulty * BASE_POINTS_PER_DIFFICULTY * streak_multiplier(streak))


def decay_periods(since, now):
    """Whole decay periods between ``since`` and ``now``."""
    if since is None:
        return 0
    elapsed = (now - since).total_seconds()
    return max(0, int(elapsed // STREAK_DECAY_PERIOD_SECONDS))


def decay_anchor(last_answer_at, streak_decayed_at=None):
    """
    The instant inactivity is measured from.

    Once a decay has been written, the periods it charged are not charged
    again: ``streak_decayed_at`` marks the end of the last charged period and
    takes over from ``last_answer_at`` until the next answer clears it.
    """
    if streak_decayed_at is not None and (
            last_answer_at is None or streak_decayed_at > last_answer_at):
        return streak_decayed_at
    return last_answer_at


def charged_until(anchor, now):
    """End of the last whole period between ``anchor`` and ``now``."""
    return anchor + timedelta(seconds=decay_periods(anchor, now) * STREAK_DECAY_PERIOD_SECONDS)


def decay_streak(streak, last_answer_at, now):
    """
    Halve the streak for every whole 30-minute period of inactivity.

    Returns ``(new_streak, applied)``; ``applied`` is True only when the
    floored value actually differs.
    """
    if not streak or last_answer_at is None:
        return streak, False

    periods = decay_periods(last_answer_at, now)
    if periods == 0:
        return streak, False

    decayed = math.floor(streak * (1 - STREAK_DECAY_RATE) ** periods)
    return decayed, decayed != streak


def _update_window(recent_correct, recent_total, correct):
    new_total = min(recent_total + 1, RECENT_WINDOW)
    if recent_total >= RECENT_WINDOW:
        # approximate dropping the oldest sample
        recent_correct = round_half_up(recent_correct * (RECENT_WINDOW - 1) / RECENT_WINDOW)
    if correct:
        recent_correct += 1
    return recent_correct, new_total


def adapt_difficulty(state, correct):
    """
    Compute the next difficulty, momentum and rolling window for one answer.

    ``state`` is anything exposing ``current_difficulty``, ``momentum``,
    ``recent_correct`` and ``recent_total``.
    """
    recent_correct, recent_total = _update_window(
        state.recent_correct or 0, state.recent_total or 0, correct)

    impulse = CORRECT_IMPULSE if correct else INCORRECT_IMPULSE
    momentum = (state.momentum or 0) * MOMENTUM_DECAY + impulse
    momentum = round_half_up(clamp(momentum, -MOMENTUM_LIMIT, MOMENTUM_LIMIT))

    difficulty = state.current_difficulty

    if momentum >= MOMENTUM_THRESHOLD:
        difficulty = min(MAX_DIFFICULTY, round_half_up(difficulty + HYSTERESIS_STEP))
        momentum = 0.0
    elif momentum <= -MOMENTUM_THRESHOLD:
        difficulty = max(MIN_DIFFICULTY, round_half_up(difficulty - HYSTERESIS_STEP))
        momentum = 0.0

    # Extreme accuracy overrides the band result for this answer.
    if recent_total >= OVERRIDE_MIN_SAMPLES:
        accuracy = recent_correct / recent_total
        if accuracy > OVERRIDE_HIGH_ACCURACY and difficulty < MAX_DIFFICULTY:
            difficulty = min(MAX_DIFFICULTY, difficulty + OVERRIDE_STEP)
            momentum = 0.0
        elif accuracy < OVERRIDE_LOW_ACCURACY and difficulty > MIN_DIFFICULTY:
            difficulty = max(MIN_DIFFICULTY, difficulty - OVERRIDE_STEP)
            momentum = 0.0

    return Adaptation(float(difficulty), momentum, recent_correct, recent_total)


def process_answer(state, correct):
    """
    Apply one answer to ``state`` and return ``(fields, score_delta)``.

    ``fields`` holds every column the transition changes, ready for a
    conditional write. The input state is not modified.
    """
    delta = score_delta(state.current_difficulty, state.streak, correct)
    new_streak = state.streak + 1 if correct else 0
    adaptation = adapt_difficulty(state, correct)

    fields = {
        "current_difficulty": adaptation.difficulty,
        "streak": new_streak,
        "max_streak": max(state.max_streak, new_streak),
        "total_score": round_half_up(state.total_score + delta),
        "total_answers": state.total_answers + 1,
        "correct_answers": state.correct_answers + (1 if correct else 0),
        "momentum": adaptation.momentum,
        "recent_correct": adaptation.recent_correct,
        "recent_total": adaptation.recent_total,
        "state_version": state.state_version + 1,
    }
    return fields, delta
