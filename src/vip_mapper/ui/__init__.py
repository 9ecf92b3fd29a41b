"""
On-demand HTTP endpoint serving the device to virtual IP mapping.
"""

__all__ = ["http_server"]
