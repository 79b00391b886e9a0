"""Rewrites a container without its removable entries."""

import logging
import os
import zipfile
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from .errors import ArchiveError, EntryCopyError, FinalizeError, RebuildError
from .inspector import ArchiveInspector, Container, kept_entries
from .models import Entry, RebuildResult, RemovalSet

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".temp"


class ReplaceMode(str, Enum):
    """How the rebuilt container takes the place of the original."""

    # Single os.replace over the original
    ATOMIC = "atomic"
    # Delete the original, then rename; not crash-safe
    DELETE_THEN_RENAME = "delete_then_rename"


def temp_path_for(path: Path) -> Path:
    """Sibling path used while rebuilding, e.g. ``pak.iwd.temp``."""
    return path.with_name(path.name + TEMP_SUFFIX)


class StoredNameZipInfo(zipfile.ZipInfo):
    """
    Central directory record that reuses the name bytes of the local header.

    zipfile re-encodes names as UTF-8 and sets flag bit 11 when writing the
    central directory. A raw-copied local header keeps its original
    encoding, so the central record must emit the same bytes and flags.
    """

    __slots__ = ('stored_name',)

    @classmethod
    def from_entry(cls, entry: Entry, header_offset: int) -> "StoredNameZipInfo":
        info = cls(entry.info.filename)
        for slot in zipfile.ZipInfo.__slots__:
            if hasattr(entry.info, slot):
                setattr(info, slot, getattr(entry.info, slot))
        info.header_offset = header_offset
        info.stored_name = entry.raw_record.name_bytes or entry.info.filename.encode('utf-8')
        return info

    def _encodeFilenameFlags(self):
        return self.stored_name, self.flag_bits


class ArchiveRebuilder:
    """
    Writes a new container holding only the kept entries.

    Kept entries are raw-copied: local header, compressed payload and
    data descriptor go into the new file byte for byte, and their
    central directory records are re-emitted by zipfile with updated
    offsets. Nothing is decompressed.
    """

    def __init__(
        self,
        replace_mode: ReplaceMode = ReplaceMode.ATOMIC,
        strict: bool = False,
        verify_output: bool = True,
    ):
        """
        Initialize rebuilder.

        Args:
            replace_mode: Strategy for swapping the new file in
            strict: Abort on the first entry that cannot be copied instead
                of dropping it
            verify_output: Re-read the new container and compare it with
                the kept entries before replacing the original
        """
        self.replace_mode = ReplaceMode(replace_mode)
        self.strict = strict
        self.verify_output = verify_output
        self._inspector = ArchiveInspector()

    def rebuild(
        self,
        container: Container,
        removal_set: RemovalSet,
        entries: Optional[Sequence[Entry]] = None,
    ) -> RebuildResult:
        """
        Replace the container file with a copy lacking the removed entries.

        An empty removal set is a no-op: the file is not touched and the
        container stays open. Otherwise the container is closed before the
        original file is replaced.

        Args:
            container: Open container to filter
            removal_set: Entries to drop
            entries: Entries of the container, listed again if omitted

        Returns:
            Counts of removed entries and bytes

        Raises:
            EntryCopyError: In strict mode, if a kept entry cannot be copied
            FinalizeError: If the new container cannot be written, verified
                or swapped in
        """
        if removal_set.is_empty:
            logger.debug(f"Nothing to remove from {container.path.name}")
            return RebuildResult()

        if entries is None:
            entries = self._inspector.list_entries(container)

        path = container.path
        temp_path = temp_path_for(path)
        size_before = path.stat().st_size

        try:
            written, skipped = self._write_filtered(container, entries, removal_set, temp_path)
            if self.verify_output:
                self._verify(temp_path, written)
        except BaseException:
            self._discard_temp(temp_path)
            raise

        container.close()
        self._replace(temp_path, path)

        result = RebuildResult(
            files_removed=removal_set.count,
            bytes_removed=removal_set.removed_bytes,
            skipped_entries=tuple(skipped),
            size_before=size_before,
            size_after=path.stat().st_size,
            replaced=True,
        )
        logger.info(
            f"Removed {result.files_removed} files "
            f"({result.bytes_removed / 1_048_576:.2f} MB) from {path}"
        )
        return result

    def _write_filtered(
        self,
        container: Container,
        entries: Sequence[Entry],
        removal_set: RemovalSet,
        temp_path: Path,
    ) -> tuple[list[zipfile.ZipInfo], list[str]]:
        """Raw-copy every kept entry into a fresh container at temp_path."""
        written: list[zipfile.ZipInfo] = []
        skipped: list[str] = []

        try:
            with zipfile.ZipFile(temp_path, 'w', allowZip64=True) as out:
                for entry in kept_entries(entries, removal_set):
                    info = self._append_raw(container, entry, out)
                    if info is None:
                        skipped.append(entry.name)
                    else:
                        written.append(info)
        except RebuildError:
            raise
        except (OSError, ValueError, zipfile.LargeZipFile) as e:
            raise FinalizeError(
                f"Cannot write {temp_path}: {e}", path=str(temp_path)
            ) from e

        return written, skipped

    def _append_raw(
        self,
        container: Container,
        entry: Entry,
        out: zipfile.ZipFile,
    ) -> Optional[zipfile.ZipInfo]:
        """Copy one record into the writer; None if it was dropped."""
        offset = out.fp.tell()
        try:
            container.copy_raw_record(entry, out.fp)
        except EntryCopyError as e:
            # Drop whatever part of the record made it into the file
            out.fp.seek(offset)
            out.fp.truncate()
            if self.strict:
                raise
            logger.warning(f"Failed to copy {entry.name}: {e.message}")
            return None

        info = StoredNameZipInfo.from_entry(entry, offset)
        out.filelist.append(info)
        out.NameToInfo[info.filename] = info
        out.start_dir = out.fp.tell()
        return info

    def _verify(self, temp_path: Path, expected: Sequence[zipfile.ZipInfo]) -> None:
        """Check that the new container lists exactly the copied records."""

        def signature(info: zipfile.ZipInfo) -> tuple:
            return (info.filename, info.CRC, info.compress_type, info.compress_size, info.file_size)

        try:
            with self._inspector.open(temp_path) as rebuilt:
                actual = [entry.info for entry in self._inspector.list_entries(rebuilt)]
        except ArchiveError as e:
            raise FinalizeError(
                f"Rebuilt container is unreadable: {e.message}", path=str(temp_path)
            ) from e

        if [signature(i) for i in actual] != [signature(i) for i in expected]:
            raise FinalizeError(
                f"Rebuilt container does not match the kept entries: {temp_path}",
                path=str(temp_path), expected=len(expected), actual=len(actual)
            )

    def _replace(self, temp_path: Path, path: Path) -> None:
        """Move the rebuilt container over the original."""
        if self.replace_mode is ReplaceMode.ATOMIC:
            try:
                os.replace(temp_path, path)
            except OSError as e:
                self._discard_temp(temp_path)
                raise FinalizeError(
                    f"Cannot replace {path}: {e}", path=str(path)
                ) from e
            return

        try:
            path.unlink()
        except OSError as e:
            self._discard_temp(temp_path)
            raise FinalizeError(f"Cannot delete {path}: {e}", path=str(path)) from e

        try:
            temp_path.rename(path)
        except OSError as e:
            # The original is gone; the temp file is now the only copy
            logger.error(
                f"Original {path} was deleted but the rebuilt container could not "
                f"be renamed; it is kept at {temp_path}"
            )
            raise FinalizeError(
                f"Cannot rename {temp_path} to {path}: {e}",
                path=str(path), temp_path=str(temp_path)
            ) from e

    @staticmethod
    def _discard_temp(temp_path: Path) -> None:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temporary file {temp_path}: {e}")
