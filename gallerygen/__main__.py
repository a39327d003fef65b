"""
Main entry point for running the package as a module.

Usage:
    python -m gallerygen build
    python -m gallerygen report --manifest generated/image-manifest.json
    python -m gallerygen sources <collection> <image>
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
