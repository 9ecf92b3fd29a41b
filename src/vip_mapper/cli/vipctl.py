#!/usr/bin/env python3
"""
vipctl - Device VIP Mapper operational CLI

A lightweight CLI for day-2 operations:
- One-off mapping runs (vipctl fetch)
- Scheduled runs (vipctl schedule)
- HTTP endpoint (vipctl serve)
- Health checks (vipctl doctor)
- Version info (vipctl version)
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from pydantic import ValidationError

from vip_mapper import __version__
from vip_mapper.core.config import AppConfig, CloudflareConfig, StorageConfig, get_config
from vip_mapper.inventory.aggregator import fetch_on_demand
from vip_mapper.inventory.client import DeviceApiError, UpstreamError, create_device_client
from vip_mapper.inventory.store import ResultStore, create_result_store


class Colors:
    """ANSI color codes for terminal output."""

    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    RESET = "\033[0m"
    BOLD = "\033[1m"


def colorize(text: str, color: str) -> str:
    """Colorize text if stdout is a TTY."""
    if sys.stdout.isatty():
        return f"{color}{text}{Colors.RESET}"
    return text


def format_check_result(name: str, status: str, message: str, width: int = 40) -> str:
    """Format a check result line."""
    padding = " " * max(1, width - len(name))

    if status == "OK":
        status_str = colorize("[OK]", Colors.GREEN)
    elif status == "WARN":
        status_str = colorize("[WARN]", Colors.YELLOW)
    else:  # ERROR
        status_str = colorize("[ERROR]", Colors.RED)

    return f"{name}:{padding}{status_str} {message}"


def load_config() -> Optional[AppConfig]:
    """Load configuration, printing validation errors instead of raising."""
    try:
        return get_config()
    except ValidationError as e:
        print(colorize(f"✗ Invalid configuration:\n{e}", Colors.RED), file=sys.stderr)
        return None


def load_store(config: StorageConfig) -> Optional[ResultStore]:
    """Build the result store, printing configuration errors instead of raising."""
    try:
        return create_result_store(config)
    except ValueError as e:
        print(format_check_result("Storage", "ERROR", str(e)), file=sys.stderr)
        return None


async def check_inventory(config: CloudflareConfig, timeout: float) -> tuple[str, str]:
    """
    Check that the inventory endpoint accepts the configured credentials.

    Returns:
        (status, message) where status is "OK", "WARN", or "ERROR"
    """
    config = config.model_copy(update={"timeout": timeout})
    try:
        async with create_device_client(config) as client:
            devices = await client.list_devices()
    except UpstreamError as e:
        return "ERROR", f"API returned status {e.status_code}"
    except DeviceApiError as e:
        return "ERROR", str(e)

    return "OK", f"{len(devices)} device(s) visible"


async def cmd_doctor(args) -> int:
    """
    Run configuration and connectivity checks and print a summary.

    Returns:
        Exit code (0 on success, non-zero on critical failure)
    """
    print(colorize("\nDevice VIP Mapper Doctor", Colors.BOLD))
    print(colorize("=" * 60, Colors.BOLD))
    print()

    config = load_config()
    if config is None:
        print(format_check_result("Configuration", "ERROR", "see errors above"))
        return 1
    print(format_check_result("Configuration", "OK", f"account {config.cloudflare.account_id}"))

    status, message = await check_inventory(config.cloudflare, timeout=args.timeout)
    print(format_check_result(f"Devices API ({config.cloudflare.api_base_url})", status, message))

    if config.storage.store_results:
        storage_message = f"{config.storage.backend} (on-demand runs stored)"
    else:
        storage_message = f"{config.storage.backend} (scheduled runs only)"
    print(format_check_result("Storage", "OK", storage_message))

    print()

    if status == "OK":
        print(colorize("✓ All critical checks passed", Colors.GREEN))
        return 0
    else:
        print(colorize("✗ One or more critical checks failed", Colors.RED))
        return 1


async def cmd_fetch(args) -> int:
    """
    Run the mapping once and print it.

    Returns:
        Exit code (0 on success, 1 on failure)
    """
    config = load_config()
    if config is None:
        return 1

    storage = config.storage.model_copy(
        update={
            "store_results": args.store or config.storage.store_results,
            "object_name": args.object_name or config.storage.object_name,
        }
    )
    config = config.model_copy(update={"storage": storage})
    store = None
    if storage.store_results:
        store = load_store(storage)
        if store is None:
            return 1

    try:
        run = await fetch_on_demand(config, store)
    except UpstreamError as e:
        print(json.dumps({"error": e.body}, indent=2), file=sys.stderr)
        return 1
    except DeviceApiError as e:
        print(colorize(f"✗ {e}", Colors.RED), file=sys.stderr)
        return 1

    print(run.output)
    if run.stored:
        print(colorize(f"✓ Stored as {run.object_name}", Colors.GREEN), file=sys.stderr)
    return 0


async def cmd_schedule(args) -> int:
    """
    Run the scheduled service, or a single scheduled run with --once.

    Returns:
        Exit code
    """
    from vip_mapper.inventory.service import VipMapService

    config = load_config()
    if config is None:
        return 1

    store = load_store(config.storage)
    if store is None:
        return 1

    service = VipMapService(
        config=config,
        store=store,
        interval_seconds=args.interval,
    )

    if args.once:
        run = await service.run_once()
        return 0 if run is not None else 1

    try:
        await service.run()
    except asyncio.CancelledError:
        service.stop()
    return 0


def cmd_serve(args) -> int:
    """Start the HTTP endpoint."""
    from vip_mapper.ui.http_server import main as serve_main

    serve_main()
    return 0


def cmd_version(args) -> int:
    """
    Print version information.

    Returns:
        Exit code (always 0)
    """
    print(f"vipctl version {__version__}")
    print("Device VIP Mapper - Cloudflare device to WARP virtual IP mapping")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for vipctl."""
    parser = argparse.ArgumentParser(
        description="Device VIP Mapper operational CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  vipctl fetch                       # Print the current mapping
  vipctl fetch --store               # Print and store the mapping
  vipctl schedule --once             # Run one scheduled (always stored) run
  vipctl serve                       # Start the HTTP endpoint
  vipctl doctor                      # Run health checks

Environment variables:
  CLOUDFLARE_ACCOUNT_ID              # Account identifier (required)
  CLOUDFLARE_USER_EMAIL              # X-Auth-Email (required)
  CLOUDFLARE_API_KEY                 # X-Auth-Key (required)
  STORAGE_STORE_RESULTS              # Store on-demand results (default: false)
  STORAGE_OBJECT_NAME                # Fixed object name (default: timestamped)
  STORAGE_BACKEND                    # local or azure (default: local)
  SCHEDULE_INTERVAL_SECONDS          # Scheduled run interval (default: 3600)
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # fetch command
    fetch_parser = subparsers.add_parser(
        "fetch",
        help="Build the mapping once and print it"
    )
    fetch_parser.add_argument(
        "--store",
        action="store_true",
        help="Also store the result (overrides STORAGE_STORE_RESULTS)"
    )
    fetch_parser.add_argument(
        "--object-name",
        default=None,
        help="Object name for the stored result"
    )

    # schedule command
    schedule_parser = subparsers.add_parser(
        "schedule",
        help="Run the mapping on a fixed interval, storing every result"
    )
    schedule_parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single scheduled run and exit"
    )
    schedule_parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Seconds between runs (default: SCHEDULE_INTERVAL_SECONDS)"
    )

    # serve command
    subparsers.add_parser(
        "serve",
        help="Start the on-demand HTTP endpoint"
    )

    # doctor command
    doctor_parser = subparsers.add_parser(
        "doctor",
        help="Run configuration and connectivity checks"
    )
    doctor_parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Timeout for HTTP requests in seconds (default: 10.0)"
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version information"
    )

    return parser


def main(argv=None):
    """Main entry point for vipctl CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # Dispatch to command handlers
    if args.command == "fetch":
        return asyncio.run(cmd_fetch(args))
    elif args.command == "schedule":
        try:
            return asyncio.run(cmd_schedule(args))
        except KeyboardInterrupt:
            return 0
    elif args.command == "serve":
        return cmd_serve(args)
    elif args.command == "doctor":
        return asyncio.run(cmd_doctor(args))
    elif args.command == "version":
        return cmd_version(args)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
