"""Container inspection and raw-copy rebuilding."""

from .errors import (
    ArchiveError,
    CorruptEntryError,
    EntryCopyError,
    FinalizeError,
    OpenError,
    RebuildError,
    UnsupportedContainerError,
)
from .inspector import ArchiveInspector, Container, Inspection
from .models import Entry, RawRecord, RebuildResult, RemovalSet
from .policy import RemovalPolicy
from .rebuilder import ArchiveRebuilder, ReplaceMode

__all__ = [
    'ArchiveError',
    'ArchiveInspector',
    'ArchiveRebuilder',
    'Container',
    'CorruptEntryError',
    'Entry',
    'EntryCopyError',
    'FinalizeError',
    'Inspection',
    'OpenError',
    'RawRecord',
    'RebuildError',
    'RebuildResult',
    'RemovalPolicy',
    'RemovalSet',
    'ReplaceMode',
    'UnsupportedContainerError',
]
