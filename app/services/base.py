"""
Shared plumbing for services that talk to the review store
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from app.core.config import config
from app.core.errors import StoreUnavailable
from app.core.logger import logger
from app.repositories.base import ReviewStore

T = TypeVar("T")


class StoreBackedService:
    """Base class bounding every store call with the configured timeout"""

    def __init__(self, store: ReviewStore, timeout: Optional[float] = None):
        self.store = store
        self.timeout = timeout or config.store_timeout_seconds

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"Store call timed out: {operation}",
                metadata={
                    "event": "store_timeout",
                    "operation": operation,
                    "timeoutSeconds": self.timeout,
                }
            )
            raise StoreUnavailable(
                f"Review store did not respond within {self.timeout}s during {operation}",
                details={"operation": operation}
            )
