"""Per-payment locks.

Serialize reconciliation of the same payment id across processes (Celery
workers, overlapping beat ticks). Within one process the monitor already skips
payment ids that are in flight.
"""

import logging
import secrets
from abc import ABC, abstractmethod

import redis.asyncio as redis

logger = logging.getLogger(__name__)

# Delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class PaymentLock(ABC):
    """Lock keyed by payment id."""

    @abstractmethod
    async def acquire(self, payment_id: str) -> str | None:
        """Try to take the lock.

        Returns:
            Lock token to pass to ``release``, or None if held elsewhere
        """
        pass

    @abstractmethod
    async def release(self, payment_id: str, token: str) -> None:
        """Release a lock taken with ``acquire``."""
        pass


class RedisPaymentLock(PaymentLock):
    """Redis ``SET NX EX`` lock with compare-and-delete release.

    The TTL bounds how long a crashed worker can block a payment.
    """

    KEY_PREFIX = "payment_monitor:lock"

    def __init__(self, client: redis.Redis, ttl_seconds: int = 60):
        self._client = client
        self._ttl_seconds = ttl_seconds

    def _key(self, payment_id: str) -> str:
        return f"{self.KEY_PREFIX}:{payment_id}"

    async def acquire(self, payment_id: str) -> str | None:
        token = secrets.token_hex(16)
        acquired = await self._client.set(
            self._key(payment_id), token, nx=True, ex=self._ttl_seconds
        )
        return token if acquired else None

    async def release(self, payment_id: str, token: str) -> None:
        await self._client.eval(_RELEASE_SCRIPT, 1, self._key(payment_id), token)
