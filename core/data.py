"""
Data Layer Base Classes.

The data layer provides the Repository pattern for data access.
This abstracts away the specific data store (Cosmos DB, in-memory, etc.)
and provides a clean interface for the domain layer.

Key principles:
- Repositories handle reads and writes only
- No business logic in repositories
- Support for different backends via dependency injection
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class ReturnsStore(ABC):
    """
    Abstract record store for orders and return requests.

    Records are plain documents (dicts). Orders carry an ``_etag`` that
    ``replace_order`` checks before writing.

    Example:
        class CosmosReturnsStore(ReturnsStore):
            def get_order_by_id(self, order_id: str) -> Optional[Dict[str, Any]]:
                return self._orders.read_item(order_id, order_id)
    """

    @abstractmethod
    def get_order_by_id(self, order_id: str) -> Optional[Dict[str, Any]]:
        """
        Get an order document by its ID.

        Returns:
            The order if found, None otherwise
        """
        pass

    @abstractmethod
    def get_return_by_id(self, return_id: str) -> Optional[Dict[str, Any]]:
        """Get a return request document by its ID."""
        pass

    @abstractmethod
    def get_returns_for_order(self, order_id: str) -> List[Dict[str, Any]]:
        """Get every return request filed against an order."""
        pass

    @abstractmethod
    def replace_return(self, return_record: Dict[str, Any]) -> Dict[str, Any]:
        """Overwrite a return request document."""
        pass

    @abstractmethod
    def replace_order(self, order: Dict[str, Any], etag: Optional[str] = None) -> Dict[str, Any]:
        """
        Overwrite an order document.

        Args:
            order: The full order document
            etag: When given, the write only succeeds if the stored
                document still carries this ETag

        Raises:
            ConcurrentReturnUpdateError: If the ETag no longer matches
        """
        pass
