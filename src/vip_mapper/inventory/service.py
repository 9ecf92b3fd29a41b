"""
Scheduled service producing the device to virtual IP mapping.
"""

import asyncio
import json
import logging
import os
import sys
from typing import Optional

import httpx

from vip_mapper.core.config import AppConfig, get_config

from .aggregator import AggregationRun, run_scheduled
from .client import UpstreamError
from .store import ResultStore, create_result_store

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class VipMapService:
    """
    Service running the aggregation on a fixed interval.

    Every run persists its output. Failures are logged, never raised, so a
    bad run does not stop the schedule.
    """

    def __init__(
        self,
        config: AppConfig,
        store: ResultStore,
        interval_seconds: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the scheduled service.

        Args:
            config: Application configuration
            store: Result sink
            interval_seconds: Seconds between runs (default: from config)
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self.store = store
        self.interval_seconds = interval_seconds or config.schedule.interval_seconds
        self.transport = transport
        self.running = False

    async def run_once(self) -> Optional[AggregationRun]:
        """
        Run one scheduled aggregation.

        Returns:
            The run, or None if it failed
        """
        try:
            run = await run_scheduled(self.config, self.store, transport=self.transport)
        except UpstreamError as e:
            logger.error(
                f"Error fetching devices (status {e.status_code}): {json.dumps(e.body)}"
            )
            return None
        except Exception as e:
            logger.error(f"Error in scheduled aggregation: {e}", exc_info=True)
            return None

        logger.info(f"Mapped {len(run.records)} devices, stored as {run.object_name}")
        return run

    async def run(self) -> None:
        """Run the service continuously."""
        self.running = True
        logger.info(f"Starting scheduled aggregation (interval: {self.interval_seconds}s)")

        iteration = 0
        while self.running:
            iteration += 1
            logger.debug(f"Scheduled iteration {iteration}")

            await self.run_once()

            await asyncio.sleep(self.interval_seconds)

    def stop(self) -> None:
        """Stop the service."""
        logger.info("Stopping scheduled aggregation")
        self.running = False


def main() -> None:
    """Main entry point for the scheduled service."""
    config = get_config()
    logging.getLogger().setLevel(config.log_level)

    logger.info("=" * 60)
    logger.info("Device VIP Mapper - Scheduled Service")
    logger.info("=" * 60)
    logger.info(f"Account: {config.cloudflare.account_id}")
    logger.info(f"Interval: {config.schedule.interval_seconds}s")
    logger.info(f"Storage backend: {config.storage.backend}")
    logger.info("=" * 60)

    store = create_result_store(config.storage)
    service = VipMapService(config=config, store=store)

    try:
        asyncio.run(service.run())
    except KeyboardInterrupt:
        logger.info("Received interrupt signal")
        service.stop()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
