from flask import request, jsonify

from . import quiz_bp, leaderboard_bp, get_quiz_service
from .schemas import (
    NextQuestionQuery, SubmitAnswerBody, MetricsQuery, LeaderboardQuery, parse
)


def _query_args():
    # blank query params count as missing
    return {k: v for k, v in request.args.items() if v != ""}


# -------------------------------
# API: NEXT QUESTION
# -------------------------------
@quiz_bp.route("/next", methods=["GET"])
def next_question():
    query = parse(NextQuestionQuery, _query_args())
    result = get_quiz_service().get_next_question(
        str(query.userId),
        session_id=str(query.sessionId) if query.sessionId else None,
    )
    return jsonify(result.to_dict())


# -------------------------------
# API: SUBMIT ANSWER
# -------------------------------
@quiz_bp.route("/answer", methods=["POST"])
def submit_answer():
    body = parse(SubmitAnswerBody, request.get_json(silent=True))
    result = get_quiz_service().submit_answer(
        str(body.userId),
        str(body.questionId),
        body.answer,
        body.stateVersion,
        str(body.answerIdempotencyKey),
    )
    return jsonify(result.to_dict())


# -------------------------------
# API: METRICS
# -------------------------------
@quiz_bp.route("/metrics", methods=["GET"])
def metrics():
    query = parse(MetricsQuery, _query_args())
    return jsonify(get_quiz_service().get_metrics(str(query.userId)))


# -------------------------------
# API: LEADERBOARDS
# -------------------------------
def _leaderboard(kind):
    query = parse(LeaderboardQuery, _query_args())
    user_id = str(query.userId) if query.userId else None
    return jsonify(get_quiz_service().get_leaderboard(kind, user_id=user_id, limit=query.limit))


@leaderboard_bp.route("/score", methods=["GET"])
def score_leaderboard():
    return _leaderboard("score")


@leaderboard_bp.route("/streak", methods=["GET"])
def streak_leaderboard():
    return _leaderboard("streak")
