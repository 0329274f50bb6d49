"""Marketplace domain: checkout, payments and shipment tracking.

A single Protean domain holds every aggregate the order fulfillment flow
touches, so one unit of work can span orders, stock, carts, payments and
shipments.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

# Command handlers re-run on an optimistic-concurrency conflict, each attempt
# in a fresh unit of work. A command gets this many attempts in total before
# ``ExpectedVersionError`` reaches the caller.
MAX_COMMAND_ATTEMPTS = 3
marketplace.config["server"]["version_retry"]["max_retries"] = MAX_COMMAND_ATTEMPTS - 1

logger = structlog.get_logger(__name__)
