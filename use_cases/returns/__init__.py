"""
Storefront Returns Use Case.

Refund computation and completion for customer return requests.

Components:
- RefundProrationEngine: Pure refund calculation (domain layer)
- ReturnCompletionService: Quotes and completes returns against a store
- ReturnsCosmosClient: Cosmos DB data access

Usage:
    from use_cases.returns import ReturnCompletionService, get_returns_client

    service = ReturnCompletionService(get_returns_client())
    quote = service.quote("RET-1A2B3C4D")
"""

from use_cases.returns.workflow import ReturnCompletionService, RefundQuote
from use_cases.returns.cosmos_client import ReturnsCosmosClient, get_returns_client

__all__ = [
    "ReturnCompletionService",
    "RefundQuote",
    "ReturnsCosmosClient",
    "get_returns_client",
]
