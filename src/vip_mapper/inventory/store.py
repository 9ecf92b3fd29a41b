"""
Result storage sinks.

A sink accepts an object name and bytes and stores them durably. Nothing
is read back.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from azure.storage.blob import BlobServiceClient, ContentSettings

from vip_mapper.core.config import StorageConfig

logger = logging.getLogger(__name__)


class ResultStore(ABC):
    """Base class for result sinks."""

    @abstractmethod
    def put(self, name: str, data: bytes) -> None:
        """
        Store data under name, replacing any existing object.

        Args:
            name: Object name
            data: Serialized result
        """


class LocalResultStore(ResultStore):
    """Stores results as files in a directory."""

    def __init__(self, directory: str = "/data/results"):
        self.directory = Path(directory)

    def put(self, name: str, data: bytes) -> None:
        path = self.directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"Stored {len(data)} bytes at {path}")


class AzureBlobResultStore(ResultStore):
    """Stores results as blobs in an Azure Storage container."""

    def __init__(self, connection_string: str, container: str = "snapshots"):
        """
        Initialize the blob sink.

        Args:
            connection_string: Azure Storage connection string
            container: Target container name
        """
        self.container = container
        self.service_client = BlobServiceClient.from_connection_string(connection_string)

    def put(self, name: str, data: bytes) -> None:
        blob_client = self.service_client.get_blob_client(container=self.container, blob=name)
        blob_client.upload_blob(
            data,
            overwrite=True,
            content_settings=ContentSettings(content_type="application/json"),
        )
        logger.info(f"Uploaded {len(data)} bytes to blob {self.container}/{name}")


class MemoryResultStore(ResultStore):
    """Keeps results in memory. Used for dry runs and tests."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}

    def put(self, name: str, data: bytes) -> None:
        self.objects[name] = data

    def get(self, name: str) -> Optional[bytes]:
        return self.objects.get(name)


def create_result_store(config: StorageConfig) -> ResultStore:
    """
    Factory function to create the configured result sink.

    Args:
        config: Storage configuration

    Returns:
        ResultStore for the configured backend

    Raises:
        ValueError: If the backend is unknown or lacks required settings
    """
    if config.backend == "local":
        return LocalResultStore(directory=config.local_dir)

    if config.backend == "azure":
        if not config.azure_connection_string:
            raise ValueError("STORAGE_AZURE_CONNECTION_STRING is required for the azure backend")
        return AzureBlobResultStore(
            connection_string=config.azure_connection_string,
            container=config.azure_container,
        )

    raise ValueError(f"Unknown storage backend: {config.backend}")
