"""
Core Framework for the Storefront Returns use cases.

This module provides the base classes and interfaces shared by every
use case. The layered architecture ensures:

1. Domain Layer - Pure business rules, no I/O
2. Data Layer - Repository pattern for data access
3. Workflow Layer - Services that wire the store to the domain
"""

from .domain import DomainService, PolicyEngine, Validator
from .data import ReturnsStore

__all__ = [
    # Domain
    "DomainService",
    "PolicyEngine",
    "Validator",
    # Data
    "ReturnsStore",
]
