"""Immutable value objects describing container contents."""

import zipfile
from dataclasses import dataclass, field
from typing import Iterator


@dataclass(frozen=True)
class RawRecord:
    """
    Location and metadata of an entry's stored bytes.

    The record spans the local file header (including name and extra
    field), the compressed payload and the optional data descriptor.
    It is copied verbatim and never decoded.

    Attributes:
        header_offset: Offset of the local file header in the container
        header_length: Size of the local header including name and extra field
        compressed_size: Size of the compressed payload
        compress_type: ZIP compression method id
        crc: CRC-32 of the uncompressed data
        flag_bits: General purpose bit flags
        zip64: True if the local header carries a ZIP64 extra field
        name_bytes: Entry name exactly as stored in the local header
    """

    header_offset: int
    header_length: int
    compressed_size: int
    compress_type: int
    crc: int
    flag_bits: int
    zip64: bool = False
    name_bytes: bytes = b""

    @property
    def has_data_descriptor(self) -> bool:
        """Bit 3: sizes and CRC follow the payload."""
        return bool(self.flag_bits & 0x08)

    @property
    def data_offset(self) -> int:
        return self.header_offset + self.header_length


@dataclass(frozen=True)
class Entry:
    """
    One named, independently compressed unit inside a container.

    Attributes:
        index: Position in the central directory (stable within one open session)
        name: Forward-slash separated path
        uncompressed_size: Size of the decoded payload in bytes
        raw_record: Stored byte span and its metadata
        info: Central directory record as parsed by zipfile
    """

    index: int
    name: str
    uncompressed_size: int
    raw_record: RawRecord
    info: zipfile.ZipInfo = field(compare=False, repr=False)


@dataclass(frozen=True)
class RemovalSet:
    """Indices of the entries selected for removal and their total size."""

    indices: frozenset[int] = frozenset()
    removed_bytes: int = 0

    @property
    def count(self) -> int:
        return len(self.indices)

    @property
    def is_empty(self) -> bool:
        return not self.indices

    def __contains__(self, index: object) -> bool:
        return index in self.indices

    def __len__(self) -> int:
        return len(self.indices)

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self.indices))


@dataclass(frozen=True)
class RebuildResult:
    """
    Outcome of rebuilding one container.

    Attributes:
        files_removed: Number of entries removed (from the removal set)
        bytes_removed: Summed uncompressed size of the removed entries
        skipped_entries: Retained entries dropped because their copy failed
        size_before: On-disk size of the original container
        size_after: On-disk size of the rebuilt container
        replaced: True if the original file was replaced
    """

    files_removed: int = 0
    bytes_removed: int = 0
    skipped_entries: tuple[str, ...] = ()
    size_before: int = 0
    size_after: int = 0
    replaced: bool = False

    @property
    def disk_bytes_freed(self) -> int:
        """Actual reduction of the file size on disk."""
        return self.size_before - self.size_after
