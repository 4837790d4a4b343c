"""In-memory catalog for development and testing."""

from ordering.catalog.port import Catalog, ProductSnapshot, ServiceSnapshot


class InMemoryCatalog(Catalog):
    def __init__(self) -> None:
        self.products: dict[str, ProductSnapshot] = {}
        self.services: dict[str, ServiceSnapshot] = {}

    def add_service(self, service: ServiceSnapshot) -> ServiceSnapshot:
        self.services[str(service.id)] = service
        return service

    def add_product(self, product: ProductSnapshot) -> ProductSnapshot:
        self.products[str(product.id)] = product
        return product

    def get_product(self, product_id: str) -> ProductSnapshot | None:
        return self.products.get(str(product_id))

    def get_service(self, service_id: str) -> ServiceSnapshot | None:
        return self.services.get(str(service_id))
