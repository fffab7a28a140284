"""
Tests for the adaptive scoring engine.

Covers:
- score delta and streak multiplier cap
- momentum hysteresis and the rolling-window override
- streak decay after inactivity
- the composed answer transition
"""

import random
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from quiz.adaptive import (
    adapt_difficulty, charged_until, decay_anchor, decay_streak, process_answer,
    round_half_up, score_delta, streak_multiplier,
)


def make_state(**overrides):
    fields = dict(
        current_difficulty=3.0, streak=0, max_streak=0, total_score=0.0,
        total_answers=0, correct_answers=0, momentum=0.0, recent_correct=0.0,
        recent_total=0, state_version=1,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def apply(state, fields):
    for name, value in fields.items():
        setattr(state, name, value)
    return state


class TestRounding:

    def test_half_rounds_away_from_zero(self):
        assert round_half_up(2.675) == 2.68
        assert round_half_up(-1.005) == -1.01
        assert round_half_up(2.5, 0) == 3.0
        assert round_half_up(0.5, 0) == 1.0

    def test_plain_values_unchanged(self):
        assert round_half_up(1.31) == 1.31
        assert round_half_up(0) == 0.0


class TestScoreDelta:

    @pytest.mark.parametrize("difficulty", [1, 3, 5.5, 10])
    @pytest.mark.parametrize("streak", [0, 1, 7, 50])
    def test_incorrect_always_zero(self, difficulty, streak):
        assert score_delta(difficulty, streak, False) == 0

    def test_first_correct_uses_base_multiplier(self):
        assert score_delta(3, 0, True) == 30.0

    def test_streak_multiplier(self):
        assert score_delta(3, 4, True) == 90.0
        assert score_delta(3.5, 1, True) == 52.5

    def test_multiplier_capped_at_five(self):
        assert streak_multiplier(8) == 5
        assert streak_multiplier(20) == 5
        assert score_delta(5, 20, True) == 250.0


class TestAdaptDifficulty:

    def test_single_wrong_answer_does_not_move_difficulty(self):
        result = adapt_difficulty(make_state(), False)
        assert result.difficulty == 3.0
        assert result.momentum == -0.8

    def test_no_ping_pong_after_alternating_answers(self):
        state = make_state()
        for correct in [False, True, False, True]:
            result = adapt_difficulty(state, correct)
            assert result.difficulty == 3.0
            state.momentum = result.momentum
            state.recent_correct = result.recent_correct
            state.recent_total = result.recent_total

    def test_three_wrong_answers_lower_by_half_step(self):
        state = make_state()
        momenta = []
        for _ in range(3):
            result = adapt_difficulty(state, False)
            momenta.append(result.momentum)
            state.current_difficulty = result.difficulty
            state.momentum = result.momentum
            state.recent_correct = result.recent_correct
            state.recent_total = result.recent_total
        assert momenta == [-0.8, -1.36, 0.0]
        assert state.current_difficulty == 2.5

    def test_ten_correct_answers_raise_difficulty_early(self):
        state = make_state()
        difficulties = []
        for _ in range(10):
            fields, _ = process_answer(state, True)
            apply(state, fields)
            difficulties.append(state.current_difficulty)

        # momentum crosses the band on the 4th answer, override kicks in on the 5th
        assert difficulties[:3] == [3.0, 3.0, 3.0]
        assert difficulties[3] == 3.5
        assert difficulties[4] == 4.5
        assert any(d > 3.0 for d in difficulties[:9])

    def test_low_accuracy_override(self):
        state = make_state(current_difficulty=5.0, recent_total=4, recent_correct=0.0)
        result = adapt_difficulty(state, False)
        assert result.difficulty == 4.0
        assert result.momentum == 0.0

    def test_override_takes_priority_over_band(self):
        state = make_state(current_difficulty=5.0, momentum=-1.0,
                           recent_total=4, recent_correct=0.0)
        result = adapt_difficulty(state, False)
        # band drops half a step, then the override drops a full one
        assert result.difficulty == 3.5
        assert result.momentum == 0.0

    def test_override_does_not_exceed_max(self):
        state = make_state(current_difficulty=10.0, recent_total=10, recent_correct=10.0)
        result = adapt_difficulty(state, True)
        assert result.difficulty == 10.0
        assert result.momentum == 0.6

    def test_full_window_decays_before_adding(self):
        state = make_state(recent_total=10, recent_correct=7.0)
        assert adapt_difficulty(state, True).recent_correct == 7.3
        assert adapt_difficulty(state, False).recent_correct == 6.3
        assert adapt_difficulty(state, True).recent_total == 10

    def test_window_fills_up_to_ten(self):
        state = make_state(recent_total=3, recent_correct=2.0)
        result = adapt_difficulty(state, True)
        assert result.recent_total == 4
        assert result.recent_correct == 3.0

    def test_bounds_hold_for_random_sequences(self):
        rng = random.Random(42)
        for _ in range(20):
            state = make_state(current_difficulty=float(rng.randint(1, 10)))
            for _ in range(60):
                fields, _ = process_answer(state, rng.random() < rng.random())
                apply(state, fields)
                assert -3 <= state.momentum <= 3
                assert 1 <= state.current_difficulty <= 10
                assert state.recent_total <= 10

    def test_bottom_clamp(self):
        state = make_state(current_difficulty=1.0, momentum=-1.0)
        result = adapt_difficulty(state, False)
        assert result.difficulty == 1.0


class TestStreakDecay:
    NOW = datetime(2026, 1, 1, 12, 0, 0)

    def test_two_full_periods(self):
        assert decay_streak(8, self.NOW - timedelta(minutes=65), self.NOW) == (2, True)

    def test_under_threshold(self):
        assert decay_streak(8, self.NOW - timedelta(minutes=20), self.NOW) == (8, False)

    def test_no_streak_or_no_history(self):
        assert decay_streak(0, self.NOW - timedelta(hours=5), self.NOW) == (0, False)
        assert decay_streak(5, None, self.NOW) == (5, False)

    def test_exactly_one_period(self):
        assert decay_streak(1, self.NOW - timedelta(minutes=30), self.NOW) == (0, True)
        assert decay_streak(1, self.NOW - timedelta(minutes=29, seconds=59), self.NOW) == (1, False)

    def test_long_gap_floors_to_zero(self):
        assert decay_streak(40, self.NOW - timedelta(days=1), self.NOW) == (0, True)

    def test_anchor_moves_to_charged_period(self):
        last = self.NOW - timedelta(minutes=65)
        assert decay_anchor(last) == last
        assert charged_until(last, self.NOW) == self.NOW - timedelta(minutes=5)

        charged = charged_until(last, self.NOW)
        assert decay_anchor(last, charged) == charged
        # the same gap is not charged twice
        assert decay_streak(2, charged, self.NOW + timedelta(seconds=5)) == (2, False)
        assert decay_streak(2, charged, self.NOW + timedelta(minutes=25)) == (1, True)

    def test_newer_answer_outranks_old_decay_mark(self):
        charged = self.NOW - timedelta(hours=2)
        last = self.NOW - timedelta(minutes=10)
        assert decay_anchor(last, charged) == last
        assert decay_anchor(None, charged) == charged
        assert decay_anchor(None) is None


class TestProcessAnswer:

    def test_score_uses_streak_before_increment(self):
        state = make_state(streak=4, max_streak=4)
        fields, delta = process_answer(state, True)
        assert delta == 90.0
        assert fields["streak"] == 5
        assert fields["max_streak"] == 5

    def test_wrong_answer_resets_streak_but_keeps_max(self):
        state = make_state(streak=6, max_streak=9, total_score=120.5,
                           total_answers=10, correct_answers=8)
        fields, delta = process_answer(state, False)
        assert delta == 0
        assert fields["streak"] == 0
        assert fields["max_streak"] == 9
        assert fields["total_score"] == 120.5
        assert fields["total_answers"] == 11
        assert fields["correct_answers"] == 8

    def test_version_increments_by_one(self):
        fields, _ = process_answer(make_state(state_version=41), True)
        assert fields["state_version"] == 42

    def test_total_score_rounded(self):
        state = make_state(total_score=10.005, current_difficulty=1.0)
        fields, delta = process_answer(state, False)
        assert fields["total_score"] == 10.01

    def test_input_state_untouched(self):
        state = make_state()
        process_answer(state, True)
        assert state.streak == 0
        assert state.state_version == 1

    def test_counters_and_max_streak_invariants(self):
        rng = random.Random(3)
        state = make_state()
        previous_max = previous_score = 0
        for _ in range(200):
            fields, _ = process_answer(state, rng.random() < 0.6)
            apply(state, fields)
            assert state.max_streak >= previous_max
            assert state.total_score >= previous_score
            assert state.correct_answers <= state.total_answers
            previous_max, previous_score = state.max_streak, state.total_score
        assert state.total_answers == 200
        assert state.state_version == 201
