import httpx
import pytest
from fastapi.testclient import TestClient
from fairshare.main import app
from fairshare.services.settlement_client import SettlementClient, get_settlement_client


@pytest.fixture
def api_client():
    """Return a test client for the application."""
    return TestClient(app)


@pytest.fixture
def settlement_service():
    """
    Serve settlement feeds from an in-memory handler.

    Call the fixture with a request handler to route the app's settlement
    client through httpx.MockTransport.
    """
    def install(handler):
        async def override():
            async with httpx.AsyncClient(
                transport=httpx.MockTransport(handler),
                base_url="http://settlement.test/api"
            ) as http:
                yield SettlementClient(http)

        app.dependency_overrides[get_settlement_client] = override

    yield install
    app.dependency_overrides.pop(get_settlement_client, None)
