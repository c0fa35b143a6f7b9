"""
Directory-to-zip archive builder.

Traversal and writing are separate: ``iter_entries`` walks the tree with an
explicit stack and yields ArchiveEntry values lazily, ``build`` streams them
into a zip file.
"""

import fnmatch
import logging
import os
import shutil
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set, Tuple

from ..errors import ArchiveError
from ..models.artifact import ArchiveEntry, ArchiveReference, EntryKind

logger = logging.getLogger(__name__)

DUMP_ARCNAME = "database.sql"


def canonical(path) -> str:
    """Resolve symlinks and relative segments."""
    return os.path.realpath(os.fspath(path))


@dataclass
class ArchiveReport:
    """Outcome of an archive build."""
    reference: ArchiveReference
    entries_written: int = 0
    dump_included: bool = False
    skipped: List[Tuple[str, str]] = field(default_factory=list)  # (path, reason)


class ArchiveBuilder:
    """
    Package a directory tree into a zip archive.

    Supports:
    - Exclusion by canonical path (symlinks to an excluded target are excluded too)
    - Exclusion by glob pattern on the archive-relative path
    - Empty directories, added before their contents
    - Skipping unreadable files and directories without aborting
    """

    def __init__(
        self,
        exclude_paths: Iterable = (),
        exclude_patterns: Iterable[str] = (),
        compression: int = zipfile.ZIP_DEFLATED,
    ):
        """
        Initialize the builder.

        Args:
            exclude_paths: Paths never packed, compared by canonical path
            exclude_patterns: fnmatch globs matched against archive names
            compression: zipfile compression method
        """
        self._excluded: Set[str] = {canonical(p) for p in exclude_paths}
        self.exclude_patterns = list(exclude_patterns)
        self.compression = compression
        self.skipped: List[Tuple[str, str]] = []

    def exclude(self, path) -> None:
        """Add a path to the canonical exclusion set."""
        self._excluded.add(canonical(path))

    def is_excluded(self, path, arcname: str = "") -> bool:
        if canonical(path) in self._excluded:
            return True
        if arcname and self.exclude_patterns:
            bare = arcname.rstrip("/")
            return any(
                fnmatch.fnmatch(bare, pattern) or fnmatch.fnmatch(arcname, pattern)
                for pattern in self.exclude_patterns
            )
        return False

    def iter_entries(self, root) -> Iterator[ArchiveEntry]:
        """
        Walk root depth first and yield one entry per file and directory.

        Listings are sorted by name. A directory whose canonical path was
        already visited (symlink loop or duplicate link) is not entered again.
        """
        root = Path(root)
        visited: Set[str] = {canonical(root)}
        stack: List[Tuple[Path, str]] = [(root, "")]

        while stack:
            directory, prefix = stack.pop()
            try:
                with os.scandir(directory) as it:
                    listing = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.warning(f"Cannot list directory {directory}: {e}")
                self.skipped.append((str(directory), f"unreadable directory: {e}"))
                continue

            subdirs: List[Tuple[Path, str]] = []
            for item in listing:
                path = Path(item.path)
                arcname = prefix + item.name

                try:
                    is_dir = item.is_dir()
                    is_file = not is_dir and item.is_file()
                except OSError as e:
                    self.skipped.append((str(path), f"cannot stat: {e}"))
                    continue

                if self.is_excluded(path, arcname + "/" if is_dir else arcname):
                    logger.debug(f"Excluded {path}")
                    continue

                if is_dir:
                    real = canonical(path)
                    if real in visited:
                        self.skipped.append((str(path), "directory already visited"))
                        continue
                    visited.add(real)
                    yield ArchiveEntry(source=path, arcname=arcname + "/", kind=EntryKind.DIRECTORY)
                    subdirs.append((path, arcname + "/"))
                elif is_file:
                    yield ArchiveEntry(source=path, arcname=arcname, kind=EntryKind.FILE)
                else:
                    self.skipped.append((str(path), "not a regular file"))

            # Reversed so the first subdirectory is walked first
            stack.extend(reversed(subdirs))

    def build(
        self,
        archive_path,
        root,
        dump_path: Optional[Path] = None,
        dump_arcname: str = DUMP_ARCNAME,
    ) -> ArchiveReport:
        """
        Write root (and the dump file, if present) into archive_path.

        Returns:
            ArchiveReport with a reference to the finished archive

        Raises:
            ArchiveError: if the archive cannot be created, written or finalized
        """
        archive_path = Path(archive_path)
        self.exclude(archive_path)
        include_dump = dump_path is not None and Path(dump_path).is_file()
        if dump_path is not None:
            self.exclude(dump_path)
        self.skipped = []

        try:
            zf = zipfile.ZipFile(archive_path, "w", compression=self.compression)
        except OSError as e:
            raise ArchiveError(f"Error: Could not create archive file: {e}") from e

        written = 0
        dump_included = False
        try:
            for entry in self.iter_entries(root):
                if include_dump and entry.arcname == dump_arcname:
                    # The site's own file would shadow the dump on extraction
                    self.skipped.append((str(entry.source), "name reserved for the database dump"))
                    continue
                if self._write_entry(zf, entry):
                    written += 1

            if include_dump:
                entry = ArchiveEntry(source=Path(dump_path), arcname=dump_arcname, kind=EntryKind.FILE)
                if self._write_entry(zf, entry):
                    written += 1
                    dump_included = True
        except OSError as e:
            self._discard(archive_path, zf)
            raise ArchiveError(f"Error: Could not write archive file: {e}") from e

        try:
            zf.close()
        except OSError as e:
            self._discard(archive_path)
            raise ArchiveError(f"Error: Could not finalize archive file: {e}") from e

        reference = ArchiveReference(
            path=archive_path.resolve(),
            name=archive_path.name,
            size=archive_path.stat().st_size,
            entry_count=written,
        )
        logger.info(f"Wrote {written} entries to {archive_path} ({len(self.skipped)} skipped)")
        return ArchiveReport(
            reference=reference,
            entries_written=written,
            dump_included=dump_included,
            skipped=list(self.skipped),
        )

    @staticmethod
    def _discard(archive_path: Path, zf: Optional[zipfile.ZipFile] = None) -> None:
        """Close and remove a partially written archive."""
        if zf is not None:
            try:
                zf.close()
            except OSError as e:
                logger.warning(f"Could not close partial archive {archive_path}: {e}")
        try:
            archive_path.unlink()
        except OSError as e:
            logger.warning(f"Could not remove partial archive {archive_path}: {e}")

    def _write_entry(self, zf: zipfile.ZipFile, entry: ArchiveEntry) -> bool:
        """
        Write one entry. Source-side failures skip the entry; archive-side
        failures propagate as OSError.
        """
        try:
            info = zipfile.ZipInfo.from_file(entry.source, entry.arcname, strict_timestamps=False)
        except (OSError, ValueError) as e:
            self.skipped.append((str(entry.source), f"cannot stat: {e}"))
            return False

        if entry.is_dir:
            zf.writestr(info, b"")
            return True

        info.compress_type = self.compression
        try:
            src = open(entry.source, "rb")
        except OSError as e:
            logger.warning(f"Cannot read {entry.source}: {e}")
            self.skipped.append((str(entry.source), f"unreadable file: {e}"))
            return False

        with src, zf.open(info, "w") as dest:
            shutil.copyfileobj(src, dest, 1024 * 64)
        return True
