"""HTTP client for the customer directory service."""
from __future__ import annotations

import logging
from typing import Optional, Protocol
from urllib.parse import quote

import httpx

from app.core.config import settings
from app.core.errors import CustomerNotFoundError
from app.core.fault_tolerance import fault_boundary
from app.domain.customers.schemas import CustomerProfile

logger = logging.getLogger(__name__)

CUSTOMER_DIRECTORY_CIRCUIT = "customer-directory"


class CustomerDirectory(Protocol):
    async def get_customer_by_id(self, customer_id: str) -> CustomerProfile: ...


class CustomerDirectoryClient:
    """Resolve customer ids to profiles through ``GET /customers/{id}``.

    An unknown customer raises ``CustomerNotFoundError``. Transport errors,
    timeouts, unexpected statuses and unreadable payloads go through the
    ``customer-directory`` circuit and come out as ``ServiceUnavailableError``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.CUSTOMER_SERVICE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.CUSTOMER_SERVICE_TIMEOUT_SECONDS
        self._transport = transport

    @fault_boundary(CUSTOMER_DIRECTORY_CIRCUIT, "The customer directory is temporarily unavailable.")
    async def get_customer_by_id(self, customer_id: str) -> CustomerProfile:
        url = f"{self.base_url}/customers/{quote(customer_id, safe='')}"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(url)

        if response.status_code == httpx.codes.NOT_FOUND:
            logger.info("Customer %s not found in directory", customer_id)
            raise CustomerNotFoundError(customer_id)
        response.raise_for_status()

        try:
            return CustomerProfile.model_validate(response.json())
        except ValueError as exc:
            raise ValueError(f"Invalid customer payload received for {customer_id}.") from exc


__all__ = ["CUSTOMER_DIRECTORY_CIRCUIT", "CustomerDirectory", "CustomerDirectoryClient"]
