#!/usr/bin/env python3
"""
Quote the refund for a return request.

Reads the return and its order from Cosmos DB, runs the refund engine
and prints the quote as JSON. Nothing is written.

Usage:
    python scripts/quote_refund.py <return_id>

Example:
    python scripts/quote_refund.py RET-1A2B3C4D
"""

import json
import logging
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import settings
from use_cases.returns import ReturnCompletionService, get_returns_client
from use_cases.returns.domain.models import ReturnsError

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Reduce Azure SDK logging verbosity
logging.getLogger("azure.cosmos").setLevel(logging.WARNING)
logging.getLogger("azure.core").setLevel(logging.WARNING)
logging.getLogger("azure.identity").setLevel(logging.WARNING)


def main():
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(1)

    return_id = sys.argv[1]
    service = ReturnCompletionService(get_returns_client())

    try:
        quote = service.quote(return_id)
    except ReturnsError as e:
        logger.error(f"Cannot quote return {return_id}: {e}")
        sys.exit(2)

    print(json.dumps(quote.to_dict(), indent=2))


if __name__ == "__main__":
    main()
