"""
Index builder: orchestrates walk → parse → extract → filter → sort → write.

One bad document never aborts a build: parse and extraction failures are
logged as warnings and the file is skipped. Walk and write failures are
fatal and propagate to the caller.
"""

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from .config import BuildConfig
from .dates import format_iso
from .exceptions import IndexWriteError
from .extractor import Extractor
from .logger import get_module_logger, setup_logger
from .parser import DocumentParser
from .schemas import BuildStats, IndexArtifact, Record
from .walker import walk

logger = get_module_logger("builder")


def _display(path: Path) -> str:
    """Path as printable text even when the file name is not valid UTF-8."""
    return str(path).encode("utf-8", errors="backslashreplace").decode("utf-8")


def _file_mode() -> int:
    """Mode a plain open() would give a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def sort_records(records: list[Record]) -> list[Record]:
    """
    Date descending; dateless records last.

    The sort is stable, so records with equal dates keep walk order.
    """
    return sorted(records, key=Record.sort_key, reverse=True)


class IndexBuilder:
    """
    Main orchestrator for building a search index.

    Stages:
    1. walk():         enumerate candidate files
    2. DocumentParser: lenient parse of each file
    3. Extractor:      Record per document
    4. filter + sort + wrap into IndexArtifact
    5. write():        atomic replace of data/search-index.json
    """

    def __init__(self, config: BuildConfig):
        self.config = config
        setup_logger(level=config.log_level, log_file=config.log_file)

        self.parser = DocumentParser()
        self.extractor = Extractor(config)
        self.stats = BuildStats()

    def process_file(self, path: Path) -> Optional[Record]:
        """
        Parse and extract one file. Returns None (after a warning) if the
        file could not be processed.
        """
        try:
            doc = self.parser.parse_file(path)
            return self.extractor.extract(doc, path)
        except Exception as e:
            logger.warning(f"Skip (parse error): {_display(path)}: {e}")
            self.stats.skipped_errors.append(str(path))
            return None

    def collect(self) -> list[Record]:
        """Run stages 1-3. WalkError propagates."""
        files = walk(self.config)
        self.stats.files_seen = len(files)

        records = []
        for path in files:
            record = self.process_file(path)
            if record is not None:
                records.append(record)
        return records

    def build(self) -> IndexArtifact:
        """Build the artifact in memory without writing it."""
        self.stats = BuildStats()
        logger.info(f"Scanning {self.config.root} ...")

        records = self.collect()

        # Boilerplate-only pages (empty shells, redirects) fall under the floor
        kept = [r for r in records if len(r.text) > self.config.min_text_length]
        self.stats.dropped_short = len(records) - len(kept)

        items = sort_records(kept)
        self.stats.indexed = len(items)

        logger.info(
            f"Indexed {self.stats.indexed} of {self.stats.files_seen} files "
            f"({len(self.stats.skipped_errors)} errors, {self.stats.dropped_short} too short)"
        )
        return IndexArtifact.from_records(items, generated_at=format_iso(datetime.now(timezone.utc)))

    def write(self, artifact: IndexArtifact, output_path: Optional[Path] = None) -> Path:
        """
        Persist the artifact atomically.

        The JSON is written to a temporary file in the output directory and
        then renamed over the final path, so readers see either the previous
        index or the complete new one.

        Raises:
            IndexWriteError: directory creation or file write failed
        """
        output_path = Path(output_path or self.config.output_path)
        out_dir = output_path.parent

        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise IndexWriteError(f"Cannot create output directory {out_dir}: {e}",
                                  path=str(out_dir)) from e

        payload = json.dumps(artifact.to_json_dict(), indent=2, ensure_ascii=False)

        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=f".{output_path.name}.", suffix=".tmp",
                                            dir=out_dir)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            # mkstemp creates 0600; the web server must be able to read the index
            os.chmod(tmp_path, _file_mode())
            os.replace(tmp_path, output_path)
        except (OSError, UnicodeError) as e:
            raise IndexWriteError(f"Cannot write index {output_path}: {e}",
                                  path=str(output_path)) from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logger.info(f"Wrote {output_path} with {artifact.count} items")
        return output_path

    def run(self) -> tuple[IndexArtifact, Path]:
        """Build and write. Returns the artifact and where it was written."""
        artifact = self.build()
        return artifact, self.write(artifact)


def build_index(root: Union[str, Path, None] = None, write: bool = True) -> IndexArtifact:
    """Convenience function: build (and by default write) the index for `root`."""
    builder = IndexBuilder(BuildConfig.from_env(Path(root) if root else None))
    if write:
        artifact, _ = builder.run()
        return artifact
    return builder.build()
