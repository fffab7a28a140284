"""
Advisory Redis cache.

The database is always the system of record. Any redis failure is logged and
treated as a miss so that a broken cache only costs latency.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)


def user_state_key(user_id):
    return f"user:state:{user_id}"


def version_floor_key(key):
    return f"{key}:floor"


def question_pool_key(difficulty):
    return f"questions:pool:{difficulty}"


LEADERBOARD_KEYS = {
    "score": "leaderboard:score",
    "streak": "leaderboard:streak",
}


class QuizCache:
    """JSON get/set/delete over an optional redis client."""

    def __init__(self, client=None, state_ttl=60, pool_ttl=300, leaderboard_ttl=10):
        self.client = client
        self.state_ttl = state_ttl
        self.pool_ttl = pool_ttl
        self.leaderboard_ttl = leaderboard_ttl

    @classmethod
    def from_config(cls, config):
        url = config.get("REDIS_URL")
        client = None
        if url:
            client = redis.from_url(url, socket_timeout=1, socket_connect_timeout=1)
            logger.info("Redis cache enabled")
        return cls(
            client,
            state_ttl=config.get("STATE_CACHE_TTL", 60),
            pool_ttl=config.get("QUESTION_POOL_CACHE_TTL", 300),
            leaderboard_ttl=config.get("LEADERBOARD_CACHE_TTL", 10),
        )

    @property
    def enabled(self):
        return self.client is not None

    def get(self, key):
        if self.client is None:
            return None
        try:
            raw = self.client.get(key)
        except redis.RedisError as e:
            logger.warning("Cache get failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable cache entry %s", key)
            return None

    def set(self, key, value, ttl):
        if self.client is None:
            return
        try:
            self.client.setex(key, ttl, json.dumps(value))
        except redis.RedisError as e:
            logger.warning("Cache set failed for %s: %s", key, e)

    def set_unless_superseded(self, key, value, ttl, version):
        """
        Fill ``key`` with ``value`` at ``version`` unless a writer has already
        retired that version.

        The floor key is watched, so a writer that retires the entry between
        our check and our write aborts the fill.
        """
        if self.client is None:
            return False
        floor = version_floor_key(key)
        try:
            with self.client.pipeline() as pipe:
                pipe.watch(floor)
                newest = pipe.get(floor)
                if newest is not None and int(newest) > version:
                    logger.debug("Not caching %s at v%s, v%s is committed", key, version, int(newest))
                    return False
                pipe.multi()
                pipe.setex(key, ttl, json.dumps(value))
                pipe.execute()
                return True
        except redis.WatchError:
            logger.debug("Cache fill for %s raced a commit, skipped", key)
            return False
        except redis.RedisError as e:
            logger.warning("Cache set failed for %s: %s", key, e)
            return False

    def retire(self, key, version, ttl):
        """Drop ``key`` and record ``version`` as the newest committed one."""
        if self.client is None:
            return
        try:
            with self.client.pipeline() as pipe:
                pipe.setex(version_floor_key(key), ttl, version)
                pipe.delete(key)
                pipe.execute()
        except redis.RedisError as e:
            logger.warning("Cache retire failed for %s: %s", key, e)

    def delete(self, *keys):
        if self.client is None or not keys:
            return
        try:
            self.client.delete(*keys)
        except redis.RedisError as e:
            logger.warning("Cache delete failed for %s: %s", ", ".join(keys), e)

    def close(self):
        if self.client is None:
            return
        try:
            self.client.close()
        except redis.RedisError as e:
            logger.warning("Closing redis client failed: %s", e)
        self.client = None
