"""Resolve a sellable product together with the service it belongs to."""

from ordering.catalog import get_catalog
from ordering.catalog.port import ProductSnapshot, ServiceSnapshot
from ordering.shared.errors import ProductUnavailableError


def resolve_listing(product_id) -> tuple[ProductSnapshot, ServiceSnapshot]:
    """Return (product, service), or raise ProductUnavailableError.

    A product is sellable only when both it and its service exist and are active.
    """
    catalog = get_catalog()

    product = catalog.get_product(str(product_id))
    if product is None or not product.is_active:
        raise ProductUnavailableError("Product not found or inactive")

    service = catalog.get_service(str(product.service_id))
    if service is None or not service.is_active:
        raise ProductUnavailableError("Service not found or inactive")

    return product, service
