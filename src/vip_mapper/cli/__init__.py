"""
Operational CLI for Device VIP Mapper.
"""

__all__ = ["vipctl"]
