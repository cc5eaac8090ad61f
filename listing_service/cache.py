import json

import redis

from listing_service.logger import logger

GENERATION_KEY = "products:generation"


class ProductCache:
    """
    Redis-backed cache for product listings.

    Entries are keyed by a generation counter that every product write bumps.
    A listing read against generation N is stored under generation N, so a
    read that races a write can never be served after that write. Retired
    generations simply expire after the TTL.

    Without a client every lookup misses and every write is dropped, so the
    service runs straight against the database.
    """

    def __init__(self, client=None, ttl=60):
        self.client = client
        self.ttl = ttl

    @classmethod
    def from_url(cls, url, ttl=60):
        if not url:
            return cls(None, ttl)
        return cls(redis.Redis.from_url(url, decode_responses=True), ttl)

    @property
    def enabled(self):
        return self.client is not None

    @staticmethod
    def key_for(generation, search=None):
        if search:
            return f"products:{generation}:search:{search.casefold()}"
        return f"products:{generation}:all"

    def generation(self):
        """Current generation, or None when caching is unavailable."""
        if not self.enabled:
            return None
        try:
            return int(self.client.get(GENERATION_KEY) or 0)
        except redis.RedisError as e:
            logger.warning("Product cache generation read failed", extra={'error': str(e)})
            return None

    def get(self, search=None, generation=None):
        if generation is None or not self.enabled:
            return None
        try:
            cached = self.client.get(self.key_for(generation, search))
        except redis.RedisError as e:
            logger.warning("Product cache read failed", extra={'search': search, 'error': str(e)})
            return None
        if cached is None:
            return None
        return json.loads(cached)

    def set(self, products, search=None, generation=None):
        if generation is None or not self.enabled:
            return
        try:
            self.client.setex(self.key_for(generation, search), self.ttl, json.dumps(products))
        except redis.RedisError as e:
            logger.warning("Product cache write failed", extra={'search': search, 'error': str(e)})

    def invalidate(self):
        if not self.enabled:
            return
        try:
            self.client.incr(GENERATION_KEY)
        except redis.RedisError as e:
            logger.warning("Product cache invalidation failed", extra={'error': str(e)})
