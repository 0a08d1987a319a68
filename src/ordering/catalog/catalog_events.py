"""Inbound cross-domain event handler — Ordering mirrors catalog data.

Keeps ``CatalogEntry`` in step with the catalog subsystem so checkout,
composition checks and supplier dispatch never call the catalog directly.
"""

from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle
from shared.events.catalog import CatalogEntryPublished

from ordering.catalog.entry import CatalogEntry
from ordering.domain import ordering
from ordering.order.order import Order

logger = structlog.get_logger(__name__)

# Register external event so Protean can deserialize it
ordering.register_external_event(CatalogEntryPublished, "Catalog.CatalogEntryPublished.v1")


@ordering.event_handler(part_of=Order, stream_category="catalog::entry")
class CatalogEntryEventHandler:
    @handle(CatalogEntryPublished)
    def on_catalog_entry_published(self, event: CatalogEntryPublished) -> None:
        upsert_catalog_entry(
            variant_id=str(event.variant_id),
            product_id=str(event.product_id),
            name=event.name,
            price=event.price,
            warehouse=event.warehouse,
            weight_grams=event.weight_grams,
            supplier_product_id=event.supplier_product_id,
            supplier_variant_id=event.supplier_variant_id,
            digital_file_path=event.digital_file_path,
            stock_count=event.stock_count,
            active=event.active,
        )


def upsert_catalog_entry(**fields) -> CatalogEntry:
    """Insert or replace the catalog row for ``fields['variant_id']``."""
    repo = current_domain.repository_for(CatalogEntry)
    fields["updated_at"] = datetime.now(UTC)

    existing = repo._dao.query.filter(variant_id=fields["variant_id"]).all().first
    if existing is None:
        entry = CatalogEntry(**{k: v for k, v in fields.items() if v is not None})
    else:
        # A published entry is a full snapshot, so blanks clear old values
        entry = existing
        for key, value in fields.items():
            if key != "variant_id":
                setattr(entry, key, value)

    repo.add(entry)
    logger.debug("Catalog entry synced", variant_id=fields["variant_id"], digital=entry.is_digital)
    return entry
