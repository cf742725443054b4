"""
Reference Data Client

Client for the reference-data service: active channels and managers.
"""

import logging
from typing import Any, List, Optional

import httpx

from core.config import PlannerConfig

from ..models import ChannelInfo, ChannelType, ManagerInfo

logger = logging.getLogger(__name__)


DEFAULT_CHANNELS: List[ChannelInfo] = [
    ChannelInfo(name=name, channel_type=ChannelType.DIGITAL)
    for name in ("Meta", "Google", "TikTok", "Pinterest", "LinkedIn", "YouTube")
] + [
    ChannelInfo(name=name, channel_type=ChannelType.TRADITIONAL)
    for name in ("TV", "Radio", "Cinema", "DOOH")
]


def _items(data: Any, key: str) -> List[dict]:
    if isinstance(data, dict):
        return data.get(key, [])
    return data or []


class ReferenceDataClient:
    """Client for the reference-data service"""

    def __init__(
        self,
        config: Optional[PlannerConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        config = config or PlannerConfig()
        self.base_url = config.reference_data_url.rstrip("/")
        self.timeout = config.reference_data_timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def get_active_channels(self) -> List[ChannelInfo]:
        """
        Get active channels with display and KPI metadata.

        Falls back to the built-in channel list when the service is
        unreachable.
        """
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}/api/v1/channels", params={"active": "true"}
                )
                response.raise_for_status()
                items = _items(response.json(), "channels")
                return [ChannelInfo.model_validate(item) for item in items]

        except httpx.HTTPStatusError as e:
            logger.error(f"Error getting active channels: {e}")
            raise

        except httpx.RequestError as e:
            logger.warning(f"Reference data unavailable, using default channels: {e}")
            return list(DEFAULT_CHANNELS)

    async def get_active_managers(self) -> List[ManagerInfo]:
        """Get active campaign managers"""
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.base_url}/api/v1/managers", params={"active": "true"}
                )
                response.raise_for_status()
                items = _items(response.json(), "managers")
                return [ManagerInfo.model_validate(item) for item in items]

        except httpx.HTTPStatusError as e:
            logger.error(f"Error getting active managers: {e}")
            raise

        except httpx.RequestError as e:
            logger.warning(f"Reference data unavailable, no managers loaded: {e}")
            return []

    async def health_check(self) -> bool:
        try:
            async with self._client() as client:
                response = await client.get(f"{self.base_url}/health")
                return response.status_code == 200
        except httpx.RequestError as e:
            logger.warning(f"Reference data health check failed: {e}")
            return False
