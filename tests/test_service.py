"""
Tests for the scheduled service and result stores.
"""

import asyncio
import logging

import pytest

from conftest import make_config
from vip_mapper.core.config import StorageConfig
from vip_mapper.inventory.service import VipMapService
from vip_mapper.inventory.store import (
    AzureBlobResultStore,
    LocalResultStore,
    create_result_store,
)


class TestScheduledService:
    """Test scheduled runs."""

    def test_run_once_stores_result(self, fake_api, memory_store):
        service = VipMapService(make_config(), memory_store, transport=fake_api.transport)

        run = asyncio.run(service.run_once())

        assert run is not None
        assert list(memory_store.objects) == [run.object_name]
        assert run.object_name.startswith("warp_vips_")

    def test_run_once_logs_inventory_failure(self, fake_api, memory_store, caplog):
        fake_api.inventory_status = 401
        fake_api.inventory_body = {"success": False, "errors": [{"code": 10000}]}
        service = VipMapService(make_config(), memory_store, transport=fake_api.transport)

        with caplog.at_level(logging.ERROR):
            run = asyncio.run(service.run_once())

        assert run is None
        assert memory_store.objects == {}
        assert "Error fetching devices" in caplog.text
        assert '"code": 10000' in caplog.text

    def test_run_once_survives_storage_failure(self, fake_api, caplog):
        class BrokenStore(LocalResultStore):
            def put(self, name, data):
                raise OSError("disk full")

        service = VipMapService(make_config(), BrokenStore(), transport=fake_api.transport)

        with caplog.at_level(logging.ERROR):
            run = asyncio.run(service.run_once())

        assert run is None
        assert "disk full" in caplog.text

    def test_interval_from_config(self, memory_store):
        service = VipMapService(make_config(), memory_store)

        assert service.interval_seconds == 60

    def test_interval_override(self, memory_store):
        service = VipMapService(make_config(), memory_store, interval_seconds=5)

        assert service.interval_seconds == 5

    def test_stop(self, fake_api, memory_store):
        service = VipMapService(
            make_config(), memory_store, interval_seconds=1, transport=fake_api.transport
        )

        async def run_and_stop():
            task = asyncio.create_task(service.run())
            await asyncio.sleep(0.1)
            service.stop()
            await asyncio.wait_for(task, timeout=5)

        asyncio.run(run_and_stop())

        assert service.running is False
        assert len(memory_store.objects) >= 1


class TestResultStores:
    """Test result sinks."""

    def test_local_store_writes_file(self, tmp_path):
        store = LocalResultStore(directory=str(tmp_path / "results"))

        store.put("warp_vips.json", b"[]")

        assert (tmp_path / "results" / "warp_vips.json").read_bytes() == b"[]"

    def test_local_store_overwrites(self, tmp_path):
        store = LocalResultStore(directory=str(tmp_path))

        store.put("warp_vips.json", b"[1]")
        store.put("warp_vips.json", b"[2]")

        assert (tmp_path / "warp_vips.json").read_bytes() == b"[2]"

    def test_factory_local(self, tmp_path):
        store = create_result_store(StorageConfig(backend="local", local_dir=str(tmp_path)))

        assert isinstance(store, LocalResultStore)

    def test_factory_azure(self):
        connection_string = (
            "DefaultEndpointsProtocol=https;AccountName=devstore;"
            "AccountKey=c2VjcmV0;EndpointSuffix=core.windows.net"
        )
        store = create_result_store(
            StorageConfig(backend="azure", azure_connection_string=connection_string)
        )

        assert isinstance(store, AzureBlobResultStore)
        assert store.container == "snapshots"

    def test_factory_azure_requires_connection_string(self):
        with pytest.raises(ValueError):
            create_result_store(StorageConfig(backend="azure", azure_connection_string=None))
