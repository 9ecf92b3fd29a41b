"""
Allow running vipctl as a module: python -m vip_mapper.cli
"""

import sys
from .vipctl import main

if __name__ == "__main__":
    sys.exit(main())
