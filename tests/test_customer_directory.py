import httpx
import pytest

from app.core.errors import CustomerNotFoundError, ServiceUnavailableError
from app.core.fault_tolerance import CircuitState, get_breaker
from app.domain.customers.schemas import CustomerSegment
from app.services.customer_directory import CUSTOMER_DIRECTORY_CIRCUIT, CustomerDirectoryClient

BASE_URL = "http://customers.test"


def _client(handler) -> CustomerDirectoryClient:
    return CustomerDirectoryClient(BASE_URL, timeout=1.0, transport=httpx.MockTransport(handler))


async def test_resolves_profile_from_camel_case_payload():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(
            200,
            json={
                "id": "cust-9",
                "type": "VIP",
                "firstName": "Ana",
                "lastName": "Quispe",
                "dni": "12345678",
                "unknownField": "ignored",
            },
        )

    profile = await _client(handler).get_customer_by_id("cust-9")

    assert seen == ["/customers/cust-9"]
    assert profile.segment is CustomerSegment.VIP
    assert profile.first_name == "Ana"
    assert profile.dni == "12345678"


async def test_unknown_customer_raises_not_found():
    client = _client(lambda request: httpx.Response(404, json={"message": "not found"}))

    with pytest.raises(CustomerNotFoundError) as excinfo:
        await client.get_customer_by_id("ghost")

    assert excinfo.value.customer_id == "ghost"
    assert get_breaker(CUSTOMER_DIRECTORY_CIRCUIT).state is CircuitState.CLOSED


async def test_server_error_becomes_service_unavailable():
    client = _client(lambda request: httpx.Response(500))

    with pytest.raises(ServiceUnavailableError, match="customer directory"):
        await client.get_customer_by_id("cust-1")


async def test_transport_error_becomes_service_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ServiceUnavailableError):
        await _client(handler).get_customer_by_id("cust-1")


async def test_unreadable_payload_becomes_service_unavailable():
    client = _client(lambda request: httpx.Response(200, json={"id": "cust-1", "type": "UNKNOWN"}))

    with pytest.raises(ServiceUnavailableError):
        await client.get_customer_by_id("cust-1")


async def test_repeated_failures_open_the_circuit():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(503)

    client = _client(handler)
    breaker = get_breaker(CUSTOMER_DIRECTORY_CIRCUIT)

    for _ in range(breaker.min_calls):
        with pytest.raises(ServiceUnavailableError):
            await client.get_customer_by_id("cust-1")

    assert breaker.state is CircuitState.OPEN

    with pytest.raises(ServiceUnavailableError):
        await client.get_customer_by_id("cust-1")
    assert len(calls) == breaker.min_calls
