#!/usr/bin/env python3
"""
Launcher script for running the explorer without installing the package.

It imports and runs the main function from the xrootd_explorer package.
"""

import sys

from xrootd_explorer.__main__ import main

if __name__ == "__main__":
    sys.exit(main() or 0)
