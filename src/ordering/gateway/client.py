"""Shared HTTP plumbing for provider adapters.

Every outbound call carries a timeout; any transport failure, timeout,
non-2xx answer or non-JSON body surfaces as PaymentProviderError.
"""

import httpx
import structlog

from ordering.shared.errors import PaymentProviderError

logger = structlog.get_logger(__name__)


class ProviderClient:
    def __init__(
        self,
        provider: str,
        base_url: str,
        headers: dict[str, str],
        timeout: float,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.provider = provider
        self.client = httpx.Client(base_url=base_url, headers=headers, timeout=timeout, transport=transport)

    def request(self, method: str, path: str, json: dict | None = None) -> dict:
        try:
            response = self.client.request(method, path, json=json)
        except httpx.TimeoutException as exc:
            logger.error("provider_timeout", provider=self.provider, method=method, path=path)
            raise PaymentProviderError(self.provider, "Request timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("provider_unreachable", provider=self.provider, method=method, path=path, error=str(exc))
            raise PaymentProviderError(self.provider, f"Request failed: {exc}") from exc

        if response.is_error:
            logger.error(
                "provider_error_response",
                provider=self.provider,
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise PaymentProviderError(
                self.provider,
                f"Provider answered {response.status_code}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise PaymentProviderError(self.provider, "Provider answered with a non-JSON body") from exc

        if not isinstance(body, dict):
            raise PaymentProviderError(self.provider, "Provider answered with an unexpected body")
        return body

    def close(self) -> None:
        self.client.close()
