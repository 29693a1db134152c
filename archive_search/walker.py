"""
Filesystem walker: enumerate the HTML documents under an archive root.

The walk is eager and sorted. A directory that cannot be read aborts the
whole walk with WalkError before any document is parsed, and sorted entries
keep the output (and therefore the final index order for equal dates)
stable between runs.
"""

import os
from pathlib import Path

from .config import BuildConfig
from .exceptions import WalkError
from .logger import get_module_logger

logger = get_module_logger("walker")


def walk(config: BuildConfig) -> list[Path]:
    """
    Return absolute paths of every indexable file under config.root.

    Skipped:
      - any file or directory whose name starts with "."
      - anything below a directory named in config.excluded_dirs ("assets")
      - files named in config.excluded_files ("service-worker.js")
      - the generated index artifact itself
      - files whose extension is not in config.extensions

    Raises:
        WalkError: if the root or any directory below it cannot be read
    """
    root = config.root
    if not root.is_dir():
        raise WalkError(f"Archive root is not a readable directory: {root}", path=str(root))

    output_path = config.output_path
    excluded_dirs = set(config.excluded_dirs)
    excluded_files = set(config.excluded_files)
    extensions = set(config.extensions)

    found: list[Path] = []
    pending = [root]

    while pending:
        directory = pending.pop()
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise WalkError(
                f"Cannot read directory {directory}: {e.strerror or e}",
                path=str(directory),
                details={"errno": e.errno}
            ) from e

        subdirs = []
        for entry in entries:
            if entry.name.startswith("."):
                continue

            path = Path(entry.path)

            # Directory symlinks are not followed so a link cycle cannot recurse forever
            if entry.is_dir(follow_symlinks=False):
                if entry.name in excluded_dirs:
                    logger.debug(f"Skipping excluded directory: {path}")
                    continue
                subdirs.append(path)
                continue

            if not entry.is_file():
                continue
            if entry.name in excluded_files or path == output_path:
                continue
            if path.suffix.lower() not in extensions:
                continue
            found.append(path)

        # Reverse so the stack pops subdirectories in sorted order
        pending.extend(reversed(subdirs))

    logger.info(f"Found {len(found)} candidate documents under {root}")
    return found


def url_for(path: Path, root: Path) -> str:
    """
    Canonical URL of a file: root-relative, forward slashes, leading "/".

    This string is both the record id and the link target in the UI.
    """
    relative = os.path.relpath(path, root)
    return "/" + relative.replace(os.sep, "/").replace("\\", "/")
