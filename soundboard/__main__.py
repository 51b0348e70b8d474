"""
Soundboard package __main__ entry point.

Allows running with: python -m soundboard
"""

import sys

from soundboard.app.cli import main

if __name__ == "__main__":
    sys.exit(main())
