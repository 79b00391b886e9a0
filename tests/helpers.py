"""Helpers for building and reading test containers."""

import io
import struct
import zipfile
from pathlib import Path
from typing import Iterable, Union

from iwd_trim.archive import ArchiveInspector

EntrySpec = Union[tuple[str, bytes], tuple[str, bytes, int]]


class _UnseekableBuffer(io.BytesIO):
    """Forces zipfile into streaming mode, so entries get data descriptors."""

    def seek(self, *args, **kwargs):
        raise io.UnsupportedOperation("seek")

    def seekable(self):
        return False


def write_container(
    path: Path,
    entries: Iterable[EntrySpec],
    compression: int = zipfile.ZIP_DEFLATED,
    streamed: bool = False,
) -> Path:
    """Write a ZIP file with the given (name, data[, compress_type]) entries."""
    buffer = _UnseekableBuffer() if streamed else io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', compression=compression) as zf:
        for spec in entries:
            name, data = spec[0], spec[1]
            compress_type = spec[2] if len(spec) > 2 else compression
            zf.writestr(name, data, compress_type=compress_type)
    path.write_bytes(buffer.getvalue())
    return path


def raw_records(path: Path) -> dict[str, bytes]:
    """Stored bytes (header, payload, descriptor) of every entry by name."""
    inspector = ArchiveInspector()
    records = {}
    with inspector.open(path) as container:
        for entry in inspector.list_entries(container):
            buffer = io.BytesIO()
            container.copy_raw_record(entry, buffer)
            records[entry.name] = buffer.getvalue()
    return records


def entry_names(path: Path) -> list[str]:
    with zipfile.ZipFile(path) as zf:
        return zf.namelist()


def central_record_offset(data: bytes, name: bytes) -> int:
    """Offset of the central directory record whose stored name is name."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        pos = zf.start_dir
    while True:
        pos = data.index(b"PK\x01\x02", pos)
        (name_length,) = struct.unpack_from("<H", data, pos + 28)
        if data[pos + 46:pos + 46 + name_length] == name:
            return pos
        pos += 4


def central_name_and_flags(path: Path, name: bytes) -> tuple[bytes, int]:
    """Stored name bytes and flag bits of an entry's central directory record."""
    data = path.read_bytes()
    pos = central_record_offset(data, name)
    (flag_bits,) = struct.unpack_from("<H", data, pos + 8)
    (name_length,) = struct.unpack_from("<H", data, pos + 28)
    return data[pos + 46:pos + 46 + name_length], flag_bits


def break_descriptor_crc(path: Path, name: str) -> None:
    """Flip a byte of the CRC in an entry's data descriptor."""
    inspector = ArchiveInspector()
    with inspector.open(path) as container:
        entry = next(e for e in inspector.list_entries(container) if e.name == name)
    record = entry.raw_record
    pos = record.data_offset + record.compressed_size
    data = bytearray(path.read_bytes())
    assert data[pos:pos + 4] == b"PK\x07\x08"
    data[pos + 4] ^= 0xFF
    path.write_bytes(bytes(data))


def extend_past_end(path: Path, name: str) -> None:
    """Make the central directory claim more stored bytes than the file holds."""
    data = bytearray(path.read_bytes())
    pos = central_record_offset(bytes(data), name.encode("ascii"))
    struct.pack_into("<L", data, pos + 20, len(data) * 4)
    path.write_bytes(bytes(data))
