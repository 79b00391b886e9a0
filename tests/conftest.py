"""Shared fixtures for building test containers."""

import zipfile
from pathlib import Path
from typing import Sequence

import pytest

from .helpers import EntrySpec, write_container


@pytest.fixture
def make_container(tmp_path):
    """Factory writing a container under tmp_path (or a given directory)."""

    def _make(
        name: str,
        entries: Sequence[EntrySpec],
        compression: int = zipfile.ZIP_DEFLATED,
        streamed: bool = False,
        directory: Path | None = None,
    ) -> Path:
        target_dir = directory or tmp_path
        target_dir.mkdir(parents=True, exist_ok=True)
        return write_container(target_dir / name, entries, compression, streamed)

    return _make


@pytest.fixture
def scenario_entries():
    """Two kept and two removable entries, mixed compression."""
    return [
        ("a.cfg", b"seta r_fullscreen 1\n" * 20, zipfile.ZIP_DEFLATED),
        ("images/x.iwi", b"\x00\x01IWi" * 500, zipfile.ZIP_STORED),
        ("sound/y.mp3", b"ID3" + b"\xff" * 3000, zipfile.ZIP_DEFLATED),
        ("b.dat", bytes(range(256)) * 8, zipfile.ZIP_STORED),
    ]
