from typing import List, Optional
from fastapi import HTTPException, Request, status
from limits import RateLimitItem, parse_many
from limits.storage import Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter
from app.core.config import settings
from app.core.logging_config import logger


class RateLimiter:
    """
    Per-route, per-client request limits on top of the `limits` package.

    Counters live in whatever storage `storage_uri` names: "memory://" keeps
    them in the worker process, "redis://host:6379" shares them between
    workers. Expired windows are evicted by the storage.
    """

    def __init__(
        self,
        storage_uri: str = "memory://",
        enabled: bool = True,
        storage: Optional[Storage] = None
    ):
        self.storage = storage or storage_from_string(storage_uri)
        self.strategy = FixedWindowRateLimiter(self.storage)
        self.enabled = enabled

    def check(self, route: str, client: str, items: List[RateLimitItem]) -> bool:
        """
        Count one request against every limit.

        Returns:
            False if any limit's window is already full
        """
        if not self.enabled:
            return True

        allowed = True
        for item in items:
            if not self.strategy.hit(item, route, client):
                allowed = False
        return allowed

    def reset(self) -> None:
        self.storage.reset()

    def limit(self, route: str, limit_string: str):
        """
        Build a FastAPI dependency enforcing `limit_string` on a route.

        Args:
            route: Name used to key the counters
            limit_string: Limits in `limits` notation, e.g. "3/second;5/10 seconds;10/minute"

        Raises:
            HTTPException 429: If the client exceeded any limit
        """
        items = parse_many(limit_string)

        def dependency(request: Request) -> None:
            client = request.client.host if request.client else "unknown"
            if not self.check(route, client, items):
                logger.warning(f"Rate limit exceeded: route={route}, client={client}")
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail="Too many requests"
                )

        return dependency


rate_limiter = RateLimiter(
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
)
