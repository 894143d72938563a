"""
Run the chillbond CLI.

Usage:
    python -m chillbond status
    python -m chillbond shell
"""

import sys

from .interface.cli import main

if __name__ == "__main__":
    sys.exit(main())
