"""ShippingSettings aggregate — the admin-edited shipping rule override.

A single row keyed ``shipping_config`` holds a JSON object that is merged over
``DEFAULT_SHIPPING_CONFIG``. Checkout loads the merged config on every order
and hands it to the resolver explicitly.
"""

import json
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text
from protean.utils.globals import current_domain
from shipping import DEFAULT_SHIPPING_CONFIG, ShippingConfig

from ordering.domain import ordering

logger = structlog.get_logger(__name__)

SHIPPING_CONFIG_KEY = "shipping_config"


@ordering.event(part_of="ShippingSettings")
class ShippingSettingsUpdated:
    __version__ = 1

    key = String(required=True)
    config = Text(required=True)
    updated_at = DateTime(required=True)


@ordering.aggregate
class ShippingSettings:
    key = String(required=True, max_length=50, unique=True)
    config = Text(required=True)  # JSON
    updated_at = DateTime()

    def shipping_config(self) -> ShippingConfig:
        return ShippingConfig.from_dict(json.loads(self.config or "{}"))

    def replace_config(self, data: dict) -> ShippingConfig:
        """Validate ``data`` against the defaults and store the merged result."""
        try:
            merged = ShippingConfig.from_dict(data)
        except (TypeError, ValueError) as exc:
            raise ValidationError({"config": [str(exc)]}) from exc

        now = datetime.now(UTC)
        self.config = json.dumps(merged.to_dict())
        self.updated_at = now
        self.raise_(ShippingSettingsUpdated(key=self.key, config=self.config, updated_at=now))
        return merged


def _find_settings() -> ShippingSettings | None:
    repo = current_domain.repository_for(ShippingSettings)
    record = repo._dao.query.filter(key=SHIPPING_CONFIG_KEY).all().first
    return repo.get(record.id) if record is not None else None


def load_shipping_config() -> ShippingConfig:
    """The current shipping rules; defaults when nothing was saved or it is unreadable."""
    settings = _find_settings()
    if settings is None:
        return DEFAULT_SHIPPING_CONFIG
    try:
        return settings.shipping_config()
    except (TypeError, ValueError) as exc:
        logger.error("Stored shipping config is invalid, using defaults", error=str(exc))
        return DEFAULT_SHIPPING_CONFIG


@ordering.command(part_of="ShippingSettings")
class UpdateShippingSettings:
    config = Text(required=True)  # JSON: partial ShippingConfig


@ordering.command_handler(part_of=ShippingSettings)
class ShippingSettingsHandler:
    @handle(UpdateShippingSettings)
    def update_shipping_settings(self, command: UpdateShippingSettings) -> dict:
        try:
            data = json.loads(command.config) if isinstance(command.config, str) else command.config
        except ValueError as exc:
            raise ValidationError({"config": [f"Invalid JSON: {exc}"]}) from exc
        if not isinstance(data, dict):
            raise ValidationError({"config": ["Shipping config must be a JSON object"]})

        repo = current_domain.repository_for(ShippingSettings)
        settings = _find_settings()
        if settings is None:
            settings = ShippingSettings(key=SHIPPING_CONFIG_KEY, config="{}")

        merged = settings.replace_config(data)
        repo.add(settings)
        logger.info("Shipping settings updated", keys=sorted(data))
        return merged.to_dict()
