"""
Device VIP Mapper - Cloudflare Zero Trust device to WARP virtual IP mapping

This package polls the Cloudflare device-management API, builds a mapping of
device ids to the WARP virtual IPs assigned to them, and serves or stores the
result.

Main modules:
- core: configuration
- inventory: API client, aggregation pipeline, result stores, scheduler
- ui: on-demand HTTP endpoint
- cli: operational CLI (vipctl)
"""

__version__ = "0.1.0"
__author__ = "Device VIP Mapper Team"

__all__ = ["__version__", "__author__"]
