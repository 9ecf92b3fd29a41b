"""
Device inventory to virtual IP aggregation.

Fetches the device list, resolves each device's WARP virtual IP and
persists the resulting mapping.
"""

from .aggregator import (
    AggregationRun,
    DeviceVipAggregator,
    TriggerMode,
    fetch_on_demand,
    run_scheduled,
    should_persist,
)
from .client import (
    DeviceApiClient,
    DeviceApiError,
    MalformedResponseError,
    UpstreamError,
    UpstreamUnavailableError,
    create_device_client,
)
from .models import UNKNOWN_VIP, DeviceRecord, serialize_records
from .store import (
    AzureBlobResultStore,
    LocalResultStore,
    MemoryResultStore,
    ResultStore,
    create_result_store,
)

__all__ = [
    "AggregationRun",
    "DeviceVipAggregator",
    "TriggerMode",
    "fetch_on_demand",
    "run_scheduled",
    "should_persist",
    "DeviceApiClient",
    "DeviceApiError",
    "MalformedResponseError",
    "UpstreamError",
    "UpstreamUnavailableError",
    "create_device_client",
    "UNKNOWN_VIP",
    "DeviceRecord",
    "serialize_records",
    "AzureBlobResultStore",
    "LocalResultStore",
    "MemoryResultStore",
    "ResultStore",
    "create_result_store",
]
