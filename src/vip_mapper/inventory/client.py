"""
Cloudflare device-management API client.

Wraps the two endpoints the mapping needs: the device inventory and the
per-device WARP virtual IP lookup. Credentials are static headers taken
from an explicit configuration object.
"""

import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from vip_mapper.core.config import CloudflareConfig

from .models import Device, DeviceIpAssignment, DeviceIpsResponse, DeviceListResponse

logger = logging.getLogger(__name__)


class DeviceApiError(Exception):
    """Base class for device API failures."""
    pass


class UpstreamError(DeviceApiError):
    """Raised when the API answers with a non-success status."""

    def __init__(self, status_code: int, body: Any, url: str = ""):
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"Upstream returned status {status_code} for {url or 'request'}")


class UpstreamUnavailableError(DeviceApiError):
    """Raised when the API cannot be reached (connection error, timeout)."""
    pass


class MalformedResponseError(DeviceApiError):
    """Raised when a success response does not match the expected schema."""
    pass


class DeviceApiClient:
    """
    Async client for the Cloudflare devices API.

    Usage:
        async with DeviceApiClient(account_id, email, api_key) as client:
            devices = await client.list_devices()
            ips = await client.get_device_ips(devices[0].id)
    """

    def __init__(
        self,
        account_id: str,
        user_email: str,
        api_key: str,
        base_url: str = "https://api.cloudflare.com/client/v4",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the API client.

        Args:
            account_id: Cloudflare account identifier
            user_email: Value of the X-Auth-Email header
            api_key: Value of the X-Auth-Key header
            base_url: API base URL
            timeout: HTTP request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.account_id = account_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={
                "X-Auth-Email": user_email,
                "X-Auth-Key": api_key,
                "Content-Type": "application/json",
            },
            transport=transport,
        )

    async def _get(self, path: str, params: Optional[dict] = None) -> Any:
        """
        Issue a GET and return the decoded body of a success response.

        Raises:
            UpstreamError: On a non-success status
            UpstreamUnavailableError: If the request could not be completed
        """
        try:
            response = await self.client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise UpstreamUnavailableError(f"Timeout calling {path}") from e
        except httpx.RequestError as e:
            raise UpstreamUnavailableError(f"Cannot reach {path}: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = response.text

        if not response.is_success:
            raise UpstreamError(response.status_code, body, url=str(response.url))

        return body

    async def list_devices(self) -> List[Device]:
        """
        Fetch all devices of the account.

        Returns:
            Devices in the order the API returned them

        Raises:
            UpstreamError: If the API answers with a non-success status
            MalformedResponseError: If the body has no valid result list
        """
        body = await self._get(f"/accounts/{self.account_id}/devices")

        try:
            devices = DeviceListResponse.model_validate(body).result
        except ValidationError as e:
            raise MalformedResponseError(f"Unexpected device list response: {e}") from e

        logger.debug(f"Fetched {len(devices)} devices for account {self.account_id}")
        return devices

    async def get_device_ips(self, device_id: str) -> List[DeviceIpAssignment]:
        """
        Fetch the virtual IP assignments of a single device.

        Args:
            device_id: Device identifier

        Returns:
            Assignments from the result field (may be empty)

        Raises:
            UpstreamError: If the API answers with a non-success status
            MalformedResponseError: If the body has no valid result list
        """
        body = await self._get(
            f"/accounts/{self.account_id}/teamnet/devices/ips",
            params={"device_ids[0]": device_id},
        )

        try:
            return DeviceIpsResponse.model_validate(body).result
        except ValidationError as e:
            raise MalformedResponseError(
                f"Unexpected virtual IP response for device {device_id}: {e}"
            ) from e

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        await self.close()


def create_device_client(
    config: CloudflareConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DeviceApiClient:
    """
    Factory function to create a DeviceApiClient from configuration.

    Args:
        config: Cloudflare credentials and account
        transport: Optional httpx transport

    Returns:
        Configured DeviceApiClient instance
    """
    return DeviceApiClient(
        account_id=config.account_id,
        user_email=config.user_email,
        api_key=config.api_key,
        base_url=config.api_base_url,
        timeout=config.timeout,
        transport=transport,
    )
