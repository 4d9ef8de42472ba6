import fnmatch
import heapq
import time


class MemoryCache:
    """
    In-process stand-in for the redis client, used when redis cannot be reached.
    Implements the subset of the redis.asyncio API the cache repositories use,
    with the same per-key expiry semantics. Expired keys are swept on every write,
    so keys that are never read again do not pile up.
    """

    def __init__(self):
        self.cache = {}
        self.expirations = {}
        self._deadlines = []

    def client(self):
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None

    def _forget(self, key):
        self.cache.pop(key, None)
        self.expirations.pop(key, None)

    def _expired(self, key) -> bool:
        expires_at = self.expirations.get(key)
        if expires_at is not None and time.monotonic() >= expires_at:
            self._forget(key)
            return True
        return False

    def _sweep(self, now):
        while self._deadlines and self._deadlines[0][0] <= now:
            expires_at, key = heapq.heappop(self._deadlines)
            # Stale entry when the key was rewritten with a later deadline
            if self.expirations.get(key) == expires_at:
                self._forget(key)

    async def get(self, key):
        if self._expired(key):
            return None
        return self.cache.get(key)

    async def set(self, key, value, ex=None):
        now = time.monotonic()
        self.cache[key] = value
        if ex:
            expires_at = now + ex
            self.expirations[key] = expires_at
            heapq.heappush(self._deadlines, (expires_at, key))
        else:
            self.expirations.pop(key, None)
        self._sweep(now)
        return True

    async def delete(self, *keys) -> int:
        deleted = 0
        for key in keys:
            if key in self.cache and not self._expired(key):
                deleted += 1
            self._forget(key)
        return deleted

    async def exists(self, key) -> int:
        if self._expired(key):
            return 0
        return 1 if key in self.cache else 0

    async def keys(self, pattern='*') -> list:
        return [key for key in list(self.cache)
                if not self._expired(key) and fnmatch.fnmatchcase(key, pattern)]

    async def aclose(self):
        return None
