"""
Shared fixtures: a fake Cloudflare devices API served through httpx.MockTransport.
"""

from typing import Dict, List, Optional

import httpx
import pytest

from vip_mapper.core.config import AppConfig, CloudflareConfig, ScheduleConfig, StorageConfig
from vip_mapper.inventory.store import MemoryResultStore

ACCOUNT_ID = "acc-123"
BASE_URL = "https://api.test/client/v4"


class FakeDevicesApi:
    """
    In-memory stand-in for the devices and virtual IP endpoints.

    Lookup answers are keyed by device id: a string is returned as the
    assigned IPv4, an int is returned as an error status, and a dict is
    returned verbatim as the response body.
    """

    def __init__(self, devices: Optional[List[Dict]] = None):
        self.devices = devices or []
        self.inventory_status = 200
        self.inventory_body: Optional[object] = None
        self.lookups: Dict[str, object] = {}
        self.unreachable_devices: set = set()
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith(f"/accounts/{ACCOUNT_ID}/devices"):
            if self.inventory_status != 200:
                body = self.inventory_body or {"success": False, "errors": [{"code": 10000}]}
                return httpx.Response(self.inventory_status, json=body)
            body = self.inventory_body if self.inventory_body is not None else {"result": self.devices}
            return httpx.Response(200, json=body)

        if path.endswith(f"/accounts/{ACCOUNT_ID}/teamnet/devices/ips"):
            device_id = request.url.params["device_ids[0]"]
            if device_id in self.unreachable_devices:
                raise httpx.ConnectError("connection refused", request=request)
            answer = self.lookups.get(device_id, 404)
            if isinstance(answer, int):
                return httpx.Response(answer, json={"success": False, "errors": []})
            if isinstance(answer, dict):
                return httpx.Response(200, json=answer)
            return httpx.Response(200, json={"result": [{"device_ips": {"ipv4": answer}}]})

        return httpx.Response(404, json={"success": False})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def lookup_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/teamnet/devices/ips")]


def make_device(device_id: str, name: str, email: str) -> Dict:
    return {
        "id": device_id,
        "name": name,
        "user": {"email": email, "id": "u-" + device_id, "name": email.split("@")[0]},
        "os_version": "14.1",
    }


def make_config(store_results: bool = False, object_name: Optional[str] = None) -> AppConfig:
    return AppConfig(
        cloudflare=CloudflareConfig(
            account_id=ACCOUNT_ID,
            user_email="admin@example.com",
            api_key="secret-key",
            api_base_url=BASE_URL,
        ),
        storage=StorageConfig(store_results=store_results, object_name=object_name),
        schedule=ScheduleConfig(interval_seconds=60),
    )


@pytest.fixture
def fake_api() -> FakeDevicesApi:
    api = FakeDevicesApi(
        devices=[
            make_device("d1", "Laptop", "a@x.com"),
            make_device("d2", "Phone", "b@x.com"),
        ]
    )
    api.lookups["d1"] = "100.1.1.1"
    api.lookups["d2"] = 404
    return api


@pytest.fixture
def config() -> AppConfig:
    return make_config()


@pytest.fixture
def memory_store() -> MemoryResultStore:
    return MemoryResultStore()
