import uuid

import redis

from storefront.utils.logging import get_logger
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje atomowo przez lua, skrypt dziala jako jedna nieprzerywalna operacja
#nie mozna wcisnac sie miedzy GET a DEL, wiec tu jest get + porownanie + del wszystko naraz


class LockService:
    """
    -lock na sesje checkoutu (dwa webhooki tej samej sesji naraz)
    -throttle (np. ponowne wyslanie maila weryfikacyjnego)
    -atomowosc przy pomocy lua
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def acquire_session_lock(self, session_id: str, ttl: int) -> str | None:
        """Zwraca token wlasciciela albo None gdy lock trzyma ktos inny."""
        key = f"checkout_session:{session_id}:lock"
        owner = uuid.uuid4().hex
        logger.info(f"Acquire lock {key}")
        #SET checkout_session:cs_123:lock "<owner>" NX EX 60
        acquired = self.redis.set(
            name=key,
            value=owner,
            nx=True, #not eXists
            ex=ttl, #wygasa sam, nie trzeba recznie czyscic po crashu workera
        )
        return owner if acquired else None

    @redis_retry()
    def release_session_lock(self, session_id: str, owner: str) -> bool:
        key = f"checkout_session:{session_id}:lock"
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)

    @redis_retry()
    def throttle(self, key: str, ttl: int) -> bool:
        """True jesli akcja dozwolona, False jesli byla juz w ciagu ttl sekund."""
        return bool(self.redis.set(name=f"throttle:{key}", value="1", nx=True, ex=ttl))
