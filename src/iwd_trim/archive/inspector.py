"""Container opening, entry enumeration and classification."""

import logging
import struct
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Sequence

from .errors import (
    CorruptEntryError,
    EntryCopyError,
    OpenError,
    UnsupportedContainerError,
)
from .models import Entry, RawRecord, RemovalSet
from .policy import RemovalPolicy

logger = logging.getLogger(__name__)

# Copy buffer size (64KB)
COPY_CHUNK_SIZE = 65536

# Local file header field positions in zipfile.structFileHeader
_FH_FILENAME_LENGTH = 10
_FH_EXTRA_FIELD_LENGTH = 11

_DATA_DESCRIPTOR_SIGNATURE = b"PK\x07\x08"
_ZIP64_EXTRA_ID = 0x0001
_FLAG_ENCRYPTED = 0x01


def _has_zip64_extra(extra: bytes) -> bool:
    """Check whether an extra field block contains a ZIP64 record."""
    pos = 0
    while pos + 4 <= len(extra):
        header_id, size = struct.unpack_from('<HH', extra, pos)
        if header_id == _ZIP64_EXTRA_ID:
            return True
        pos += 4 + size
    return False


def _read_exact(fp: BinaryIO, size: int) -> bytes:
    data = fp.read(size)
    if len(data) != size:
        raise EOFError(f"expected {size} bytes, got {len(data)}")
    return data


class Container:
    """
    A ZIP container opened read-only for inspection and raw copying.

    Owns the underlying file handle; use as a context manager or call
    close() once done.
    """

    def __init__(self, path: Path, fp: BinaryIO, zip_file: zipfile.ZipFile):
        self.path = path
        self._fp = fp
        self._zip = zip_file

    @property
    def closed(self) -> bool:
        return self._fp.closed

    def infolist(self) -> list[zipfile.ZipInfo]:
        """Central directory records in directory order."""
        return self._zip.infolist()

    def read_raw_record(self, index: int, info: zipfile.ZipInfo) -> RawRecord:
        """
        Locate an entry's stored bytes by parsing its local file header.

        Args:
            index: Entry position in the central directory
            info: Central directory record for the entry

        Returns:
            Raw record describing the stored byte span

        Raises:
            CorruptEntryError: If the local header is missing or truncated
        """
        try:
            self._fp.seek(info.header_offset)
            header = _read_exact(self._fp, zipfile.sizeFileHeader)
            if header[:4] != zipfile.stringFileHeader:
                raise CorruptEntryError(
                    f"Bad local header signature for entry {index} ({info.filename})",
                    index=index, name=info.filename, path=str(self.path)
                )
            fields = struct.unpack(zipfile.structFileHeader, header)
            name_length = fields[_FH_FILENAME_LENGTH]
            extra_length = fields[_FH_EXTRA_FIELD_LENGTH]
            name_bytes = _read_exact(self._fp, name_length)
            extra = _read_exact(self._fp, extra_length)
        except (OSError, EOFError, struct.error) as e:
            raise CorruptEntryError(
                f"Cannot read local header for entry {index} ({info.filename}): {e}",
                index=index, name=info.filename, path=str(self.path)
            ) from e

        return RawRecord(
            header_offset=info.header_offset,
            header_length=zipfile.sizeFileHeader + name_length + extra_length,
            compressed_size=info.compress_size,
            compress_type=info.compress_type,
            crc=info.CRC,
            flag_bits=info.flag_bits,
            zip64=_has_zip64_extra(extra),
            name_bytes=name_bytes,
        )

    def _data_descriptor_length(self, entry: Entry) -> int:
        """Measure the data descriptor that follows the payload, if any."""
        record = entry.raw_record
        if not record.has_data_descriptor:
            return 0

        self._fp.seek(record.data_offset + record.compressed_size)
        sizes_length = 16 if record.zip64 else 8
        head = _read_exact(self._fp, 4)
        signature_length = 0
        if head == _DATA_DESCRIPTOR_SIGNATURE:
            signature_length = 4
            head = _read_exact(self._fp, 4)
        (crc,) = struct.unpack('<L', head)
        if crc != record.crc:
            raise EntryCopyError(
                f"Data descriptor CRC mismatch for {entry.name}",
                index=entry.index, name=entry.name
            )
        _read_exact(self._fp, sizes_length)
        return signature_length + 4 + sizes_length

    def copy_raw_record(self, entry: Entry, dest: BinaryIO) -> int:
        """
        Stream an entry's stored bytes verbatim into another file.

        Args:
            entry: Entry to copy
            dest: Writable binary file positioned where the record goes

        Returns:
            Number of bytes written

        Raises:
            EntryCopyError: If the record cannot be read completely
        """
        record = entry.raw_record
        try:
            total = (
                record.header_length
                + record.compressed_size
                + self._data_descriptor_length(entry)
            )
            self._fp.seek(record.header_offset)
            if self._fp.read(4) != zipfile.stringFileHeader:
                raise EntryCopyError(
                    f"Local header of {entry.name} moved or was overwritten",
                    index=entry.index, name=entry.name
                )
            self._fp.seek(record.header_offset)

            remaining = total
            while remaining:
                chunk = self._fp.read(min(COPY_CHUNK_SIZE, remaining))
                if not chunk:
                    raise EOFError(
                        f"record truncated, {remaining} of {total} bytes missing"
                    )
                dest.write(chunk)
                remaining -= len(chunk)
        except EntryCopyError:
            raise
        except (OSError, EOFError, struct.error) as e:
            raise EntryCopyError(
                f"Cannot copy {entry.name}: {e}",
                index=entry.index, name=entry.name
            ) from e

        return total

    def close(self) -> None:
        self._zip.close()
        self._fp.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Container({str(self.path)!r})"


@dataclass
class Inspection:
    """Result of inspecting one container."""

    container: Container
    entries: list[Entry]
    removal_set: RemovalSet


class ArchiveInspector:
    """Opens containers, lists their entries and selects entries to remove."""

    def open(self, path: Path | str) -> Container:
        """
        Open a container read-only.

        Args:
            path: Path to the container file

        Returns:
            Open container

        Raises:
            OpenError: If the file is missing, unreadable or not a valid ZIP
            UnsupportedContainerError: If any entry is encrypted
        """
        path = Path(path)
        try:
            fp = path.open('rb')
        except OSError as e:
            raise OpenError(f"Cannot open {path}: {e}", path=str(path)) from e

        try:
            zip_file = zipfile.ZipFile(fp)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, NotImplementedError, OSError) as e:
            fp.close()
            raise OpenError(f"Not a valid container {path}: {e}", path=str(path)) from e

        encrypted = [info.filename for info in zip_file.infolist() if info.flag_bits & _FLAG_ENCRYPTED]
        if encrypted:
            zip_file.close()
            fp.close()
            raise UnsupportedContainerError(
                f"Encrypted entries are not supported in {path}",
                path=str(path), entries=encrypted
            )

        logger.debug(f"Opened container {path} ({len(zip_file.infolist())} entries)")
        return Container(path, fp, zip_file)

    def list_entries(self, container: Container) -> list[Entry]:
        """
        Enumerate all entries in directory order.

        Raises:
            CorruptEntryError: If any entry record cannot be read; no partial
                result is returned
        """
        entries = []
        for index, info in enumerate(container.infolist()):
            entries.append(Entry(
                index=index,
                name=info.filename,
                uncompressed_size=info.file_size,
                raw_record=container.read_raw_record(index, info),
                info=info,
            ))
        return entries

    @staticmethod
    def classify(entries: Iterable[Entry], policy: RemovalPolicy) -> RemovalSet:
        """Select the entries the policy marks as removable."""
        removable = [entry for entry in entries if policy.is_removable(entry.name)]
        return RemovalSet(
            indices=frozenset(entry.index for entry in removable),
            removed_bytes=sum(entry.uncompressed_size for entry in removable),
        )

    def inspect(self, path: Path | str, policy: RemovalPolicy) -> Inspection:
        """
        Open a container, list its entries and classify them.

        The returned container stays open for the rebuild; it is closed
        here only if listing fails.
        """
        container = self.open(path)
        try:
            entries = self.list_entries(container)
        except BaseException:
            container.close()
            raise

        removal_set = self.classify(entries, policy)
        logger.debug(
            f"{container.path.name}: {len(entries)} entries, "
            f"{removal_set.count} removable ({removal_set.removed_bytes:,} bytes)"
        )
        return Inspection(container=container, entries=entries, removal_set=removal_set)


def kept_entries(entries: Sequence[Entry], removal_set: RemovalSet) -> list[Entry]:
    """Entries not in the removal set, in original order."""
    return [entry for entry in entries if entry.index not in removal_set]
