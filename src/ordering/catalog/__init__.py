"""Catalog factory.

Provides get_catalog() / set_catalog() to swap implementations:
- InMemoryCatalog for development and testing
- HttpCatalog when CATALOG_BASE_URL is configured
"""

from ordering.catalog import fake_adapter, http_adapter
from ordering.catalog.port import Catalog
from ordering.utils.config import settings

_current_catalog: Catalog | None = None


def get_catalog() -> Catalog:
    """Return the current catalog, building it from settings on first use."""
    global _current_catalog
    if _current_catalog is None:
        if settings.catalog_base_url:
            _current_catalog = http_adapter.HttpCatalog(settings.catalog_base_url, timeout=settings.payment_provider_timeout)
        else:
            _current_catalog = fake_adapter.InMemoryCatalog()
    return _current_catalog


def set_catalog(catalog: Catalog) -> None:
    """Override the active catalog (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the default catalog."""
    global _current_catalog
    _current_catalog = None
