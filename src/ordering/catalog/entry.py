"""Catalog reference data — the read-only slice of the catalog ordering needs.

One row per purchasable variant. A variant with a ``digital_file_path`` is a
digital item; one with a ``supplier_variant_id`` can be fulfilled by the
dropship supplier.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering


class Warehouse:
    US = "US"
    CN = "CN"


@ordering.projection
class CatalogEntry:
    variant_id = Identifier(identifier=True, required=True)
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    warehouse = String(max_length=10, default=Warehouse.CN)
    weight_grams = Float()
    supplier_product_id = String(max_length=100)
    supplier_variant_id = String(max_length=100)
    digital_file_path = String(max_length=500)
    stock_count = Integer()
    active = Boolean(default=True)
    updated_at = DateTime()

    @property
    def is_digital(self) -> bool:
        return bool(self.digital_file_path)


def catalog_entries_for(variant_ids) -> dict[str, CatalogEntry]:
    """Load catalog rows for ``variant_ids``; unknown ids are simply absent."""
    repo = current_domain.repository_for(CatalogEntry)
    entries = {}
    for variant_id in {str(v) for v in variant_ids if v}:
        entry = repo._dao.query.filter(variant_id=variant_id).all().first
        if entry is not None:
            entries[variant_id] = entry
    return entries
