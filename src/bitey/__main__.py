"""
Entry point for running Bitey as a module.

Usage: python3 -m bitey
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
