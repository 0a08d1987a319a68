"""Cross-domain event contract for the catalog subsystem.

The catalog subsystem owns products and variants; ordering keeps a
read-only copy of the fields that pricing, shipping and supplier dispatch
need. The class is registered in ordering via register_external_event()
with a matching __type__ string so stream deserialization works.
"""

from protean.core.event import BaseEvent
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String


class CatalogEntryPublished(BaseEvent):
    """A purchasable variant was created or its sellable data changed."""

    __version__ = 1

    product_id = Identifier(required=True)
    variant_id = Identifier(required=True)
    name = String(required=True)
    price = Float(required=True)
    warehouse = String()  # "US", "CN" or other origin code
    weight_grams = Float()
    supplier_product_id = String()
    supplier_variant_id = String()
    digital_file_path = String()
    stock_count = Integer()
    active = Boolean(default=True)
    published_at = DateTime(required=True)
