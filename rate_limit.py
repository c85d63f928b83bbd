# rate_limit.py
import math
import time

from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

DEFAULT_LIMIT = "30/minute"
RATE_LIMIT_MESSAGE = "Te veel verzoeken; probeer het over een minuut opnieuw."

# counter namespace inside the storage
SCOPE = "api"


class ApiRateLimiter:
    """
    Fixed window per client key on top of `limits`. A key's window starts at
    its first request and resets once the window has passed.
    """

    def __init__(self, limit: str = DEFAULT_LIMIT, storage=None):
        self.item = parse(limit)
        self.storage = storage if storage is not None else MemoryStorage()
        self.strategy = FixedWindowRateLimiter(self.storage)

    def hit(self, key: str) -> bool:
        """Record one request; False when it goes over the limit."""
        return self.strategy.hit(self.item, SCOPE, key)

    def retry_after(self, key: str) -> int:
        reset_time, remaining = self.strategy.get_window_stats(self.item, SCOPE, key)
        return max(0, math.ceil(reset_time - time.time()))

    def reset(self) -> None:
        self.storage.reset()
