from .adaptive import MIN_DIFFICULTY, MAX_DIFFICULTY, RECENT_WINDOW, round_half_up


def build_metrics(state, history):
    """
    Project the user's state and answer log into the metrics payload.

    ``history`` must be ordered newest first.
    """
    histogram = [0] * (MAX_DIFFICULTY - MIN_DIFFICULTY + 1)
    for record in history:
        bucket = int(round_half_up(record.difficulty_at_answer, 0))
        if MIN_DIFFICULTY <= bucket <= MAX_DIFFICULTY:
            histogram[bucket - MIN_DIFFICULTY] += 1

    # oldest first, like a timeline
    recent = [bool(r.correct) for r in reversed(history[:RECENT_WINDOW])]

    accuracy = 0
    if state.total_answers:
        accuracy = int(round_half_up(state.correct_answers / state.total_answers * 100, 0))

    return {
        "currentDifficulty": float(state.current_difficulty),
        "streak": state.streak,
        "maxStreak": state.max_streak,
        "totalScore": float(state.total_score),
        "accuracy": accuracy,
        "totalAnswers": state.total_answers,
        "correctAnswers": state.correct_answers,
        "momentum": float(state.momentum),
        "recentCorrect": float(state.recent_correct),
        "recentTotal": state.recent_total,
        "difficultyHistogram": histogram,
        "recentPerformance": recent,
    }
