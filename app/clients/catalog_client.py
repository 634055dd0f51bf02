"""
Catalog Publisher
Pushes per-product rating aggregates to the catalog service as product
metafields, via Dapr service invocation.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import config
from app.core.errors import CatalogPublishFailed
from app.core.logger import logger
from app.middleware.trace_context import current_traceparent, get_trace_id
from app.models.aggregate import Aggregate, PublishResult


class CatalogPublisher(ABC):
    """Contract for publishing a product's rating aggregate"""

    @abstractmethod
    async def publish(self, product_id: str, aggregate: Aggregate) -> PublishResult:
        """
        Upsert rating and count for the product. Republishing identical values
        must be harmless. Raises CatalogPublishFailed; never retries.
        """


class DaprCatalogPublisher(CatalogPublisher):
    """Publishes aggregates to the catalog service through the Dapr sidecar"""

    SUCCESS_CODES = (200, 201, 204)

    def __init__(
        self,
        app_id: Optional[str] = None,
        timeout: Optional[float] = None,
        dapr_http_port: Optional[int] = None,
    ):
        self.app_id = app_id or config.catalog_app_id
        self.timeout = timeout or config.catalog_timeout_seconds
        self.base_url = f"http://localhost:{dapr_http_port or config.dapr_http_port}"
        self.namespace = config.catalog_metafield_namespace

    def build_metafields(self, product_id: str, aggregate: Aggregate) -> List[Dict[str, Any]]:
        return [
            {
                "ownerId": product_id,
                "namespace": self.namespace,
                "key": config.catalog_rating_key,
                "value": aggregate.display_rating,
                "type": "number_decimal",
            },
            {
                "ownerId": product_id,
                "namespace": self.namespace,
                "key": config.catalog_count_key,
                "value": str(aggregate.count),
                "type": "number_integer",
            },
        ]

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "dapr-app-id": config.service_name}
        traceparent = current_traceparent()
        if traceparent:
            headers["traceparent"] = traceparent
            headers["X-Correlation-ID"] = get_trace_id()
        return headers

    def _failed(self, product_id: str, aggregate: Aggregate, reason: str, **metadata) -> CatalogPublishFailed:
        logger.error(
            f"Failed to publish review aggregate for product {product_id}: {reason}",
            metadata={
                "event": "catalog_publish_failed",
                "productId": product_id,
                "rating": aggregate.display_rating,
                "count": aggregate.count,
                "targetService": self.app_id,
                **metadata,
            }
        )
        return CatalogPublishFailed(
            f"Catalog rejected aggregate for product {product_id}: {reason}",
            details={
                "product_id": product_id,
                "rating": aggregate.display_rating,
                "count": aggregate.count,
            }
        )

    async def publish(self, product_id: str, aggregate: Aggregate) -> PublishResult:
        url = f"{self.base_url}/v1.0/invoke/{self.app_id}/method/api/products/{product_id}/metafields"
        payload = {"metafields": self.build_metafields(product_id, aggregate)}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload, headers=self._headers())
        except httpx.TimeoutException:
            raise self._failed(product_id, aggregate, "request timeout", timeoutSeconds=self.timeout)
        except httpx.HTTPError as e:
            raise self._failed(product_id, aggregate, f"cannot reach catalog: {e}")

        if response.status_code not in self.SUCCESS_CODES:
            raise self._failed(
                product_id, aggregate, f"status {response.status_code}",
                statusCode=response.status_code, response=response.text
            )

        body = {}
        if response.content:
            try:
                body = response.json()
            except ValueError:
                body = {}
        user_errors = (body.get("userErrors") or body.get("errors")) if isinstance(body, dict) else None
        if user_errors:
            raise self._failed(product_id, aggregate, "metafield errors", userErrors=user_errors)

        logger.info(
            f"Published review aggregate for product {product_id}",
            metadata={
                "event": "catalog_publish_success",
                "productId": product_id,
                "rating": aggregate.display_rating,
                "count": aggregate.count,
            }
        )
        return PublishResult(product_id=product_id, rating=aggregate.display_rating, count=aggregate.count)
