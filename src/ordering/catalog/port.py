"""Catalog port (abstract interface).

The ordering context does not own products or services; it reads them
through this port at order creation time and copies what it needs onto
the order, so later catalog edits never change a placed order.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ServiceSnapshot:
    """A social-media service (e.g. Instagram followers) a product belongs to."""

    id: str
    name: str
    description: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class ProductSnapshot:
    """A purchasable engagement package: a quantity at a price."""

    id: str
    name: str
    price: float
    service_id: str
    quantity: int = 1
    currency: str = "TRY"
    is_active: bool = True


class Catalog(ABC):
    """Read-only access to products and services."""

    @abstractmethod
    def get_product(self, product_id: str) -> ProductSnapshot | None:
        """Return the product, or None if it does not exist."""
        ...

    @abstractmethod
    def get_service(self, service_id: str) -> ServiceSnapshot | None:
        """Return the service, or None if it does not exist."""
        ...
