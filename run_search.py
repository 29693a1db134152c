#!/usr/bin/env python3
"""
CLI script to query a built index from a terminal.

Usage: python run_search.py --index site/data/search-index.json --type photo beach 2019

Same matching and filters as the browser UI, useful for checking what a
rebuild produced without starting a web server.
"""

import sys

from archive_search.cli import search_main


if __name__ == "__main__":
    sys.exit(search_main())
