"""
Device to virtual IP aggregation pipeline.

One run lists the account's devices, resolves each device's WARP virtual IP
one device at a time, serializes the mapping and optionally stores it.
Runs share no state; each builds its own record list.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

import httpx

from vip_mapper.core.config import AppConfig

from .client import DeviceApiClient, DeviceApiError, create_device_client
from .models import UNKNOWN_VIP, Device, DeviceRecord, serialize_records
from .store import ResultStore

logger = logging.getLogger(__name__)


class TriggerMode(str, Enum):
    """What started a pipeline run."""

    ON_DEMAND = "on_demand"
    SCHEDULED = "scheduled"


def should_persist(mode: TriggerMode, store_results: bool) -> bool:
    """Scheduled runs always persist; on-demand runs only when enabled."""
    return mode == TriggerMode.SCHEDULED or store_results


@dataclass
class AggregationRun:
    """Outcome of one successful pipeline run."""

    mode: TriggerMode
    output: str
    records: List[DeviceRecord] = field(default_factory=list)
    object_name: Optional[str] = None

    @property
    def stored(self) -> bool:
        return self.object_name is not None


class DeviceVipAggregator:
    """
    Builds the device id to virtual IP mapping.

    Pipeline:
    1. Fetch the device list (failure aborts the run)
    2. Look up each device's virtual IP, sequentially
    3. Merge into one record per device, in inventory order
    4. Serialize and optionally persist
    """

    def __init__(
        self,
        client: DeviceApiClient,
        store: Optional[ResultStore] = None,
        object_name: Optional[str] = None,
        object_prefix: str = "warp_vips",
    ):
        """
        Initialize the aggregator.

        Args:
            client: Devices API client
            store: Result sink (required for runs that persist)
            object_name: Fixed object name; timestamped when not set
            object_prefix: Prefix of timestamped object names
        """
        self.client = client
        self.store = store
        self.object_name = object_name
        self.object_prefix = object_prefix

    async def resolve_vip(self, device: Device) -> str:
        """
        Resolve the virtual IP of one device.

        Any failure degrades to the 'Unknown' sentinel.

        Args:
            device: Inventory device

        Returns:
            IPv4 address of the first assignment, or UNKNOWN_VIP
        """
        try:
            assignments = await self.client.get_device_ips(device.id)
        except DeviceApiError as e:
            logger.warning(f"Virtual IP lookup failed for device {device.id}: {e}")
            return UNKNOWN_VIP

        if not assignments:
            logger.warning(f"No virtual IP assigned to device {device.id}")
            return UNKNOWN_VIP

        return assignments[0].device_ips.ipv4

    async def collect(self) -> List[DeviceRecord]:
        """
        Fetch devices and resolve their virtual IPs.

        Returns:
            One record per inventory device, in inventory order

        Raises:
            UpstreamError: If the inventory call fails
            UpstreamUnavailableError: If the inventory endpoint is unreachable
            MalformedResponseError: If the inventory body is malformed
        """
        devices = await self.client.list_devices()
        logger.info(f"Resolving virtual IPs for {len(devices)} devices")

        records = []
        for device in devices:
            vip = await self.resolve_vip(device)
            records.append(DeviceRecord.from_device(device, vip))

        unresolved = sum(1 for r in records if r.vip == UNKNOWN_VIP)
        if unresolved:
            logger.info(f"{unresolved} of {len(records)} devices have no known virtual IP")

        return records

    def resolve_object_name(self, now: Optional[datetime] = None) -> str:
        """
        Name under which a run's output is stored.

        Args:
            now: Timestamp to use (default: current UTC time)

        Returns:
            Configured object name, or '<prefix>_<YYYYmmddTHHMMSSZ>.json'
        """
        if self.object_name:
            return self.object_name

        now = now or datetime.now(timezone.utc)
        return f"{self.object_prefix}_{now.strftime('%Y%m%dT%H%M%SZ')}.json"

    async def persist(self, output: str) -> str:
        """
        Write serialized output to the result store.

        Returns:
            Object name written

        Raises:
            ValueError: If no store is configured
        """
        if self.store is None:
            raise ValueError("Result persistence requested but no result store is configured")

        name = self.resolve_object_name()
        await asyncio.to_thread(self.store.put, name, output.encode("utf-8"))
        return name

    async def run(self, mode: TriggerMode, store_results: bool = False) -> AggregationRun:
        """
        Run the full pipeline once.

        Args:
            mode: What triggered the run
            store_results: Persist on-demand output (ignored for scheduled runs)

        Returns:
            AggregationRun with the serialized output
        """
        logger.debug(f"Starting {mode.value} aggregation for account {self.client.account_id}")

        records = await self.collect()
        output = serialize_records(records)

        object_name = None
        if should_persist(mode, store_results):
            object_name = await self.persist(output)

        return AggregationRun(mode=mode, output=output, records=records, object_name=object_name)


async def _run_with_config(
    mode: TriggerMode,
    config: AppConfig,
    store: Optional[ResultStore],
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AggregationRun:
    async with create_device_client(config.cloudflare, transport=transport) as client:
        aggregator = DeviceVipAggregator(
            client=client,
            store=store,
            object_name=config.storage.object_name,
            object_prefix=config.storage.object_prefix,
        )
        return await aggregator.run(mode, store_results=config.storage.store_results)


async def fetch_on_demand(
    config: AppConfig,
    store: Optional[ResultStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AggregationRun:
    """
    Run the pipeline for a direct request.

    Output is persisted only when storage.store_results is enabled.
    """
    return await _run_with_config(TriggerMode.ON_DEMAND, config, store, transport)


async def run_scheduled(
    config: AppConfig,
    store: ResultStore,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AggregationRun:
    """
    Run the pipeline for a timer event.

    Output is always persisted.
    """
    return await _run_with_config(TriggerMode.SCHEDULED, config, store, transport)
