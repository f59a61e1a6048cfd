# checkout/services/rate_limiter.py
import redis
from redis.exceptions import RedisError

from checkout.domain.errors import RateLimitedError
from checkout.utils.retry import redis_retry
from checkout.utils.settings import REDIS_URL, INITIATE_RATE_LIMIT, INITIATE_RATE_WINDOW_SECONDS
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

# INCR and start the window on the first hit, in one atomic step
_HIT_LUA = """
local count = redis.call('INCR', KEYS[1])
if count == 1 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
end
return count
"""


class RateLimiter:
    """
    Fixed window counter per (scope, user) kept in redis.
    Fails open when redis is unreachable.
    """

    def __init__(
        self,
        url: str | None = None,
        limit: int | None = None,
        window_seconds: int | None = None,
        client=None,
    ):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.limit = limit or INITIATE_RATE_LIMIT
        self.window_seconds = window_seconds or INITIATE_RATE_WINDOW_SECONDS

    @redis_retry()
    def _hit(self, key: str) -> int:
        return int(self.redis.eval(_HIT_LUA, 1, key, self.window_seconds))

    def check(self, scope: str, user_id: int) -> None:
        key = f"ratelimit:{scope}:{user_id}"
        try:
            count = self._hit(key)
        except RedisError as e:
            logger.warning(f"Rate limiter unavailable for {key}, allowing request: {e}")
            return

        if count > self.limit:
            logger.info(f"Rate limit hit for {key}: {count}/{self.limit}")
            raise RateLimitedError()
