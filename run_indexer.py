#!/usr/bin/env python3
"""
CLI script to build the search index for an archived site.

Usage: python run_indexer.py [/path/to/site-root]

Walks the site root for HTML pages, extracts title/text/date/type/image for
each one and writes <root>/data/search-index.json for the browser search UI.
"""

import sys

from archive_search.cli import main


if __name__ == "__main__":
    sys.exit(main())
