"""Supplier adapter factory.

Provides get_supplier() / set_supplier() to swap implementations:
- FakeSupplier for development and testing (default)
- CJSupplier for production (SUPPLIER_ADAPTER=cj)

All CJSupplier instances share one rate limiter so every supplier call in
the process respects the same request budget.
"""

import os

from supplier.port import SupplierPort
from supplier.rate_limit import TokenBucket

_current_supplier: SupplierPort | None = None
_shared_rate_limiter: TokenBucket | None = None


def get_rate_limiter() -> TokenBucket:
    """Return the process-wide supplier rate limiter."""
    global _shared_rate_limiter
    if _shared_rate_limiter is None:
        interval = float(os.environ.get("SUPPLIER_MIN_INTERVAL_SECONDS", "3.0"))
        _shared_rate_limiter = TokenBucket.every(interval)
    return _shared_rate_limiter


def get_supplier() -> SupplierPort:
    """Return the configured supplier adapter (singleton)."""
    global _current_supplier
    if _current_supplier is None:
        adapter = os.environ.get("SUPPLIER_ADAPTER", "fake")
        if adapter == "fake":
            from supplier.fake_adapter import FakeSupplier

            _current_supplier = FakeSupplier()
        elif adapter == "cj":
            from supplier.cj_adapter import CJSupplier

            _current_supplier = CJSupplier(
                base_url=os.environ["CJ_API_BASE_URL"],
                api_key=os.environ["CJ_API_KEY"],
                timeout=float(os.environ.get("SUPPLIER_TIMEOUT_SECONDS", "15")),
                max_attempts=int(os.environ.get("SUPPLIER_MAX_ATTEMPTS", "3")),
                rate_limiter=get_rate_limiter(),
            )
        else:
            raise ValueError(f"Unknown supplier adapter: {adapter}")
    return _current_supplier


def set_supplier(supplier: SupplierPort) -> None:
    """Override the active supplier adapter (useful for tests)."""
    global _current_supplier
    _current_supplier = supplier


def reset_supplier() -> None:
    """Reset the supplier singleton."""
    global _current_supplier, _shared_rate_limiter
    _current_supplier = None
    _shared_rate_limiter = None
