"""
Score and streak leaderboards computed from ``user_state``.

Ranks use competition ranking: 1 + the number of users with a strictly
greater value, so tied users share a rank.
"""

from sqlalchemy import func, select

from models import UserState
from .cache import LEADERBOARD_KEYS

COLUMNS = {
    "score": UserState.total_score,
    "streak": UserState.max_streak,
}
CACHED_DEPTH = 100


def _value(kind, raw):
    return float(raw) if kind == "score" else int(raw)


class Leaderboard:
    def __init__(self, session, cache, depth=CACHED_DEPTH):
        self.session = session
        self.cache = cache
        self.depth = depth

    def rank_of(self, user_id, kind):
        """Return ``(rank, value)`` for the user, or ``(None, None)``."""
        column = COLUMNS[kind]
        value = self.session.scalar(select(column).where(UserState.user_id == user_id))
        if value is None:
            return None, None
        ahead = self.session.scalar(
            select(func.count()).select_from(UserState).where(column > value))
        return ahead + 1, _value(kind, value)

    def _top_entries(self, kind):
        # the cached list is always the full depth; callers slice it
        cached = self.cache.get(LEADERBOARD_KEYS[kind])
        if cached is not None:
            return cached

        column = COLUMNS[kind]
        rows = self.session.execute(
            select(UserState.user_id, column)
            .order_by(column.desc(), UserState.user_id)
            .limit(self.depth)
        ).all()

        entries = []
        previous, rank = None, 0
        for index, (uid, raw) in enumerate(rows, start=1):
            value = _value(kind, raw)
            if value != previous:
                rank, previous = index, value
            entries.append({"rank": rank, "userId": uid, "value": value})

        self.cache.set(LEADERBOARD_KEYS[kind], entries, self.cache.leaderboard_ttl)
        return entries

    def top(self, kind, user_id=None, limit=50):
        entries = [dict(e, isCurrentUser=bool(user_id) and e["userId"] == user_id)
                   for e in self._top_entries(kind)[:limit]]

        user_rank = user_value = None
        if user_id:
            mine = next((e for e in entries if e["isCurrentUser"]), None)
            if mine:
                user_rank, user_value = mine["rank"], mine["value"]
            else:
                user_rank, user_value = self.rank_of(user_id, kind)

        return {"entries": entries, "userRank": user_rank, "userValue": user_value}

    def invalidate(self):
        self.cache.delete(*LEADERBOARD_KEYS.values())
