#!/usr/bin/env python3
"""Entry point for ColorVerse CLI."""

import sys
from colorverse.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
