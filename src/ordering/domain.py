"""Ordering bounded context — checkout, payment and dropship fulfillment.

Holds the Order aggregate and everything that must commit alongside it:
discount usage, the notification outbox, shipping settings and a read-only
mirror of the catalog.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
