"""
flashdeck CLI entry point.

Usage:
    python -m flashdeck.cli [-import PATH] [-export PATH] [-log PATH] [-v]
    flashdeck [-import PATH] [-export PATH] [-log PATH] [-v]

Each option also has a double-dash spelling (--import, --export, --log,
--verbose).
"""

import sys
from .main import main

if __name__ == "__main__":
    sys.exit(main())
