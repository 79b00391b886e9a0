"""Container discovery and whole-directory removal."""

import logging
import shutil
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


class ContainerDiscovery:
    """Finds container files directly inside a directory."""

    def __init__(self, work_dir: Path, extension: str = "iwd"):
        """Initialize container discovery.

        Args:
            work_dir: Directory to search
            extension: Container file extension, without the dot
        """
        self.work_dir = Path(work_dir)
        self.suffix = f".{extension.lstrip('.')}"
        if not self.work_dir.exists():
            raise FileNotFoundError(f"Directory not found: {work_dir}")
        if not self.work_dir.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {work_dir}")

    def discover(self) -> List[Path]:
        """List container files at depth 1, sorted by name.

        Subdirectories are not searched. The extension comparison is
        case-sensitive.
        """
        containers = sorted(
            (path for path in self.work_dir.iterdir()
             if path.suffix == self.suffix and path.is_file()),
            key=lambda p: p.name,
        )
        logger.debug(f"Discovered {len(containers)} container(s) in {self.work_dir}")
        return containers


def directory_size(path: Path) -> int:
    """Total size in bytes of all regular files below path.

    Files that vanish or cannot be stat'ed while walking are skipped.
    """
    total = 0
    for item in Path(path).rglob('*'):
        try:
            if item.is_file() and not item.is_symlink():
                total += item.stat().st_size
        except OSError as e:
            logger.debug(f"Skipping {item}: {e}")
    return total


def remove_directory(path: Path) -> int:
    """Delete a directory tree and return the bytes it held."""
    size = directory_size(path)
    shutil.rmtree(Path(path))
    return size
