"""
Azure Cosmos DB Configuration.

Centralized configuration for the Cosmos DB containers read by the
returns workflow and the scripts. Both containers are partitioned on
``/id``, so point reads pass the document ID as the partition key.

Environment Variables (optional overrides):
    COSMOS_ENDPOINT - Override the default Cosmos DB endpoint
    COSMOS_DATABASE - Override the default database name
"""

from config import settings

# =============================================================================
# COSMOS DB CONNECTION
# =============================================================================

COSMOS_ENDPOINT = settings.cosmos_endpoint

DATABASE_NAME = settings.cosmos_database

# =============================================================================
# STOREFRONT DATA CONTAINERS
# =============================================================================

# Format: logical_name -> container_name
STOREFRONT_CONTAINERS = {
    "orders": "Storefront_Orders",
    "returns": "Storefront_Returns",
}
