"""
Command-line entry points.

archive-search-build [ROOT]
    Build ROOT/data/search-index.json (ROOT defaults to the current directory).

archive-search-query [--index PATH] [--type T] [--year Y] [--limit N] [--json] [QUERY ...]
    Search an already built index from a terminal.
"""

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from .builder import IndexBuilder
from .config import BuildConfig
from .exceptions import IndexLoadError, IndexWriteError, WalkError
from .schemas import ContentType
from .search import DEFAULT_LIMIT, IndexSearcher, load_index


def main(argv=None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="archive-search-build",
        description="Build a static search index for an archived website"
    )
    parser.add_argument("root", nargs="?", default=None,
                        help="Site root to index (default: current directory)")
    args = parser.parse_args(argv)

    try:
        # Bad ARCHIVE_SEARCH_* values fail here (ValueError) or when the log
        # file is opened (OSError)
        config = BuildConfig.from_env(Path(args.root) if args.root else None)
        builder = IndexBuilder(config)
    except (ValueError, OSError) as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        artifact, output_path = builder.run()
    except (WalkError, IndexWriteError) as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(f"Wrote {output_path} with {artifact.count} items.")
    return 0


def search_main(argv=None) -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="archive-search-query",
        description="Search a built archive index"
    )
    parser.add_argument("query", nargs="*", help="Free-text query (fuzzy)")
    parser.add_argument("--index", "-i", default=str(Path("data") / "search-index.json"),
                        help="Index file (default: data/search-index.json)")
    parser.add_argument("--type", "-t", choices=[t.value for t in ContentType],
                        help="Only this content type")
    parser.add_argument("--year", "-y", type=int, help="Only this year")
    parser.add_argument("--limit", "-n", type=int, default=DEFAULT_LIMIT, help="Maximum results")
    parser.add_argument("--json", action="store_true", help="Print hits as JSON")
    args = parser.parse_args(argv)

    try:
        artifact = load_index(args.index)
    except IndexLoadError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    hits = IndexSearcher(artifact).search(" ".join(args.query), type=args.type,
                                          year=args.year, limit=args.limit)

    if args.json:
        output = [{"score": round(h.score, 3), **h.item.model_dump(mode="json")} for h in hits]
        print(json.dumps(output, indent=2, ensure_ascii=False))
        return 0

    if not hits:
        print("No matches. Try fewer keywords or remove filters.")
        return 0

    for hit in hits:
        item = hit.item
        tags = " ".join(str(t) for t in (item.type.value, item.year) if t)
        print(f"{item.title or '(untitled)'}  [{tags}]")
        print(f"  {item.url}")
        snippet = item.text[:180]
        print(f"  {snippet}{'…' if len(item.text) > 180 else ''}")
    print(f"\n{len(hits)} result(s)")
    return 0
