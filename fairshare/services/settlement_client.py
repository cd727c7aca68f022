"""
HTTP client for the remote settlement service.
"""
import logging
from typing import Any, AsyncIterator

import httpx

from fairshare.core.config import settings
from fairshare.core.exceptions import SettlementServiceError

logger = logging.getLogger(__name__)


class SettlementClient:
    """
    Reads settlement pairs and balances for a group.

    Payloads are returned as decoded JSON without interpretation; see
    balance_service for normalization.
    """

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def _get_json(self, path: str) -> Any:
        logger.info(f"Fetching {path} from settlement service")
        try:
            response = await self.http.get(path)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Settlement service returned {e.response.status_code} for {path}")
            raise SettlementServiceError(
                f"Settlement service HTTP error: {e.response.status_code}",
                status_code=e.response.status_code
            )
        except httpx.HTTPError as e:
            logger.error(f"Settlement service request failed for {path}: {e}")
            raise SettlementServiceError(f"Settlement service network error: {e}")
        except ValueError:
            logger.error(f"Settlement service returned invalid JSON for {path}")
            raise SettlementServiceError("Settlement service returned invalid JSON")

        if settings.DEBUG:
            logger.debug(f"Settlement service response for {path}: {data}")
        return data

    async def fetch_pairs(self, group_id: int) -> Any:
        """Raw settlement pairs (who owes whom) for a group."""
        return await self._get_json(f"/groups/{group_id}/settlements")

    async def fetch_balances(self, group_id: int) -> Any:
        """Raw currency -> user -> net balance map for a group."""
        return await self._get_json(f"/groups/{group_id}/balances")


async def get_settlement_client() -> AsyncIterator[SettlementClient]:
    """Dependency providing a settlement client for the duration of a request."""
    headers = {"Accept": "application/json"}
    if settings.SETTLEMENT_API_TOKEN:
        headers["Authorization"] = f"Bearer {settings.SETTLEMENT_API_TOKEN}"

    async with httpx.AsyncClient(
        base_url=settings.SETTLEMENT_API_URL,
        headers=headers,
        timeout=settings.SETTLEMENT_TIMEOUT
    ) as http:
        yield SettlementClient(http)
