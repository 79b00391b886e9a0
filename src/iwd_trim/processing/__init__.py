"""Directory traversal and per-container orchestration."""

from .discovery import ContainerDiscovery, directory_size, remove_directory
from .trimmer import ContainerResult, DirectoryRemoval, GameDataTrimmer, TrimSummary, format_size

__all__ = [
    'ContainerDiscovery',
    'ContainerResult',
    'DirectoryRemoval',
    'GameDataTrimmer',
    'TrimSummary',
    'directory_size',
    'format_size',
    'remove_directory',
]
