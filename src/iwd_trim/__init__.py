"""
iwd-trim: strip media from game data containers.

Removes entries matching name-based rules from ZIP containers and
rewrites the remaining entries without re-encoding them.

Public API:
    - ArchiveInspector: Open containers, list and classify entries
    - ArchiveRebuilder: Raw-copy kept entries into a replacement container
    - RemovalPolicy: Which entries are removable
    - GameDataTrimmer: Process a whole game installation
"""

from .archive import ArchiveInspector, ArchiveRebuilder, RemovalPolicy, RemovalSet
from .processing.trimmer import GameDataTrimmer, TrimSummary

__all__ = [
    'ArchiveInspector',
    'ArchiveRebuilder',
    'GameDataTrimmer',
    'RemovalPolicy',
    'RemovalSet',
    'TrimSummary',
]

__version__ = '0.1.0'
