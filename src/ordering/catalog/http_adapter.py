"""Catalog adapter backed by the catalog service's HTTP API.

Expects `GET {base}/products/{id}` and `GET {base}/services/{id}` to return
the resource as JSON, optionally wrapped in a `data` envelope, and 404 when
it does not exist.
"""

import httpx
import structlog

from ordering.catalog.port import Catalog, ProductSnapshot, ServiceSnapshot

logger = structlog.get_logger(__name__)


class CatalogUnavailableError(Exception):
    """The catalog service could not be reached or answered with an error."""


class HttpCatalog(Catalog):
    def __init__(self, base_url: str, timeout: float = 10.0, transport: httpx.BaseTransport | None = None) -> None:
        self.client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def _fetch(self, path: str) -> dict | None:
        try:
            response = self.client.get(path)
        except httpx.HTTPError as exc:
            logger.error("catalog_request_failed", path=path, error=str(exc))
            raise CatalogUnavailableError(str(exc)) from exc

        if response.status_code == 404:
            return None
        if response.is_error:
            logger.error("catalog_request_failed", path=path, status_code=response.status_code)
            raise CatalogUnavailableError(f"Catalog returned {response.status_code} for {path}")

        body = response.json()
        return body.get("data", body) if isinstance(body, dict) else None

    def get_product(self, product_id: str) -> ProductSnapshot | None:
        data = self._fetch(f"/products/{product_id}")
        if data is None:
            return None
        return ProductSnapshot(
            id=str(data.get("id") or data.get("_id") or product_id),
            name=data["name"],
            price=float(data["price"]),
            service_id=str(data.get("service_id") or data.get("service")),
            quantity=int(data.get("quantity", 1)),
            currency=data.get("currency", "TRY"),
            is_active=bool(data.get("is_active", data.get("isActive", True))),
        )

    def get_service(self, service_id: str) -> ServiceSnapshot | None:
        data = self._fetch(f"/services/{service_id}")
        if data is None:
            return None
        return ServiceSnapshot(
            id=str(data.get("id") or data.get("_id") or service_id),
            name=data["name"],
            description=data.get("description"),
            is_active=bool(data.get("is_active", data.get("isActive", True))),
        )
