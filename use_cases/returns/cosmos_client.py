"""
Cosmos DB Client for the Returns Use Case.

Provides data access for orders and return requests.
Uses DefaultAzureCredential for flexible authentication.
"""

import logging
from typing import Any, Dict, List, Optional

from azure.core import MatchConditions
from azure.cosmos import CosmosClient
from azure.cosmos.exceptions import (
    CosmosAccessConditionFailedError,
    CosmosResourceNotFoundError,
)
from azure.identity import DefaultAzureCredential

from core.data import ReturnsStore
from shared.cosmos_config import (
    COSMOS_ENDPOINT,
    DATABASE_NAME,
    STOREFRONT_CONTAINERS,
)
from use_cases.returns.domain.models import ConcurrentReturnUpdateError

logger = logging.getLogger(__name__)


class ReturnsCosmosClient(ReturnsStore):
    """Client for accessing orders and returns in Cosmos DB."""

    def __init__(self):
        """Initialize the Cosmos DB client."""
        logger.info("Initializing Returns Cosmos DB client...")
        self._credential = DefaultAzureCredential(
            exclude_interactive_browser_credential=False,
            exclude_shared_token_cache_credential=False,
        )
        self._client = CosmosClient(COSMOS_ENDPOINT, credential=self._credential)
        self._database = self._client.get_database_client(DATABASE_NAME)
        self._containers = {}
        logger.info("Returns Cosmos DB client initialized")

    def _get_container(self, name: str):
        """Get a container client, caching for reuse."""
        if name not in self._containers:
            container_name = STOREFRONT_CONTAINERS.get(name, name)
            self._containers[name] = self._database.get_container_client(container_name)
        return self._containers[name]

    # =========================================================================
    # ORDER OPERATIONS
    # =========================================================================

    def get_order_by_id(self, order_id: str) -> Optional[Dict[str, Any]]:
        """Get a specific order by ID."""
        container = self._get_container("orders")
        try:
            return container.read_item(item=order_id, partition_key=order_id)
        except CosmosResourceNotFoundError:
            return None

    def replace_order(self, order: Dict[str, Any], etag: Optional[str] = None) -> Dict[str, Any]:
        """Replace an order, guarded by its ETag when one is given."""
        container = self._get_container("orders")
        kwargs = {}
        if etag:
            kwargs = {"etag": etag, "match_condition": MatchConditions.IfNotModified}
        try:
            return container.replace_item(item=order["id"], body=order, **kwargs)
        except CosmosAccessConditionFailedError as e:
            logger.warning(f"Order {order['id']} changed since it was read: {e}")
            raise ConcurrentReturnUpdateError(
                f"Order {order['id']} was modified by another return completion"
            ) from e

    # =========================================================================
    # RETURN OPERATIONS
    # =========================================================================

    def get_return_by_id(self, return_id: str) -> Optional[Dict[str, Any]]:
        """Get a return by ID."""
        container = self._get_container("returns")
        try:
            return container.read_item(item=return_id, partition_key=return_id)
        except CosmosResourceNotFoundError:
            return None

    def get_returns_for_order(self, order_id: str) -> List[Dict[str, Any]]:
        """Get all return requests filed against an order."""
        container = self._get_container("returns")
        query = "SELECT * FROM c WHERE c.order_id = @order_id ORDER BY c.created_at ASC"
        params = [{"name": "@order_id", "value": order_id}]

        return list(container.query_items(query, parameters=params, enable_cross_partition_query=True))

    def replace_return(self, return_record: Dict[str, Any]) -> Dict[str, Any]:
        """Replace a return request document."""
        container = self._get_container("returns")
        return container.replace_item(item=return_record["id"], body=return_record)


# Singleton instance
_client: Optional[ReturnsCosmosClient] = None


def get_returns_client() -> ReturnsCosmosClient:
    """Get the singleton Cosmos DB client instance."""
    global _client
    if _client is None:
        _client = ReturnsCosmosClient()
    return _client
