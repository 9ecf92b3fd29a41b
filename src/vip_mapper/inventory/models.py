"""
Device inventory and virtual IP data models.

Upstream response envelopes are validated here, at the API boundary.
"""

import json
from typing import List, Sequence

from pydantic import BaseModel, Field

UNKNOWN_VIP = "Unknown"


class DeviceUser(BaseModel):
    """User a device is registered to."""

    email: str = Field(..., description="Email of the device owner")


class Device(BaseModel):
    """
    A device as returned by the inventory endpoint.

    Only the fields the mapping needs are validated; unknown fields are ignored.
    """

    id: str = Field(..., description="Device identifier")
    name: str = Field(..., description="Device display name")
    user: DeviceUser


class DeviceIps(BaseModel):
    ipv4: str = Field(..., description="WARP virtual IPv4 address")


class DeviceIpAssignment(BaseModel):
    """Virtual IP assignment of one device."""

    device_ips: DeviceIps


class DeviceListResponse(BaseModel):
    """Envelope of GET /accounts/{id}/devices."""

    result: List[Device]


class DeviceIpsResponse(BaseModel):
    """Envelope of GET /accounts/{id}/teamnet/devices/ips."""

    result: List[DeviceIpAssignment]


class DeviceRecord(BaseModel):
    """
    One entry of the device to virtual IP mapping.

    Field order is the serialized field order.
    """

    id: str
    email: str
    name: str
    vip: str = Field(..., description="Virtual IPv4 address, or 'Unknown' if unresolved")

    class Config:
        json_schema_extra = {
            "example": {
                "id": "f174e90a-fafe-4643-bbbc-4a0ed4fc8415",
                "email": "user@example.com",
                "name": "My Laptop",
                "vip": "100.96.0.2",
            }
        }

    @classmethod
    def from_device(cls, device: Device, vip: str) -> "DeviceRecord":
        return cls(id=device.id, email=device.user.email, name=device.name, vip=vip)


def serialize_records(records: Sequence[DeviceRecord]) -> str:
    """
    Serialize records to a pretty-printed JSON array.

    Args:
        records: Records in inventory order

    Returns:
        JSON text indented with 2 spaces, fields ordered id, email, name, vip
    """
    return json.dumps(
        [record.model_dump() for record in records],
        indent=2,
        ensure_ascii=False,
    )
