# storefront/services/idempotency_service.py
import uuid

import redis
from redis.exceptions import RedisError

from storefront.domain.errors import DependencyError
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, IDEMPOTENCY_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nikt nie wcisnie sie miedzy GET a DEL
#wiec zwalniamy tylko wlasny claim, nie cudzy zalozony po wygasnieciu TTL


class IdempotencyService:
    """
    -rejestracja Idempotency-Key dla skladania zamowienia (SET NX EX)
    -zwalnianie klucza gdy checkout sie nie udal
    """

    def __init__(
        self,
        url: str | None = None,
        ttl: int | None = None,
        client: redis.Redis | None = None,
    ):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl or IDEMPOTENCY_TTL_SECONDS

    @staticmethod
    def _key(user_id: str, idempotency_key: str) -> str:
        return f"checkout:{user_id}:{idempotency_key}"

    def claim(self, user_id: str, idempotency_key: str) -> str | None:
        """Token claimu albo None gdy klucz jest juz zajety."""
        token = uuid.uuid4().hex
        try:
            acquired = self._set_nx(self._key(user_id, idempotency_key), token)
        except RedisError as e:
            logger.error(f"Redis unavailable while claiming idempotency key: {e}")
            raise DependencyError("Idempotency store unavailable") from e
        return token if acquired else None

    def release(self, user_id: str, idempotency_key: str, token: str) -> bool:
        try:
            return self._compare_and_delete(self._key(user_id, idempotency_key), token)
        except RedisError as e:
            # klucz i tak wygasnie po TTL
            logger.warning(f"Failed to release idempotency key {idempotency_key}: {e}")
            return False

    @redis_retry()
    def _set_nx(self, key: str, token: str) -> bool:
        logger.info(f"Claim idempotency key {key}")
        #SET checkout:42:abc "<token>" NX EX 600
        return bool(self.redis.set(name=key, value=token, nx=True, ex=self.ttl))

    @redis_retry()
    def _compare_and_delete(self, key: str, token: str) -> bool:
        logger.info(f"Release idempotency key {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
