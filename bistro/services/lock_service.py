import uuid
from contextlib import contextmanager

import redis

from bistro.domain.errors import ConflictError
from bistro.utils.retry import redis_retry
from bistro.utils.settings import REDIS_URL, CART_LOCK_TTL_SECONDS
from bistro.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun - zwalniamy tylko wlasny lock
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    -lock na mutacje koszyka jednego usera
    -zwalnianie tylko przez wlasciciela tokena (lua)
    -TTL zeby padniety proces nie zablokowal koszyka na stale
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(user_id: int) -> str:
        return f"cart:user:{user_id}:lock"

    @redis_retry()
    def acquire_cart_lock(self, user_id: int, token: str, ttl: int = CART_LOCK_TTL_SECONDS) -> bool:
        key = self._key(user_id)
        logger.debug(f"Acquire lock {key}")
        #SET cart:user:1:lock "<token>" NX EX 5
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release_cart_lock(self, user_id: int, token: str) -> bool:
        key = self._key(user_id)
        logger.debug(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def cart_lock(self, user_id: int):
        token = uuid.uuid4().hex
        if not self.acquire_cart_lock(user_id, token):
            logger.info(f"Koszyk usera {user_id} jest wlasnie modyfikowany")
            raise ConflictError("Cart is being updated, please retry")
        try:
            yield
        finally:
            self.release_cart_lock(user_id, token)
