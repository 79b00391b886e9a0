"""Walks a game installation and trims every container in it."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from ..archive import ArchiveInspector, ArchiveRebuilder, RemovalPolicy, ReplaceMode
from ..common.errors import IwdTrimError
from ..common.logging import LogContext
from ..config.schema import TrimConfig
from .discovery import ContainerDiscovery, directory_size, remove_directory

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1_048_576

ProgressCallback = Callable[[int, int, str], None]


def format_size(num_bytes: int) -> str:
    """Format a byte count as megabytes with two decimals."""
    return f"{num_bytes / BYTES_PER_MB:.2f} MB"


@dataclass(frozen=True)
class ContainerResult:
    """Outcome for one container."""

    path: Path
    files_removed: int = 0
    bytes_removed: int = 0
    skipped_entries: tuple[str, ...] = ()
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class DirectoryRemoval:
    """Outcome of deleting one bulk directory."""

    path: Path
    bytes_removed: int = 0
    error: Optional[str] = None


@dataclass
class TrimSummary:
    """Aggregate of a whole run."""

    containers: List[ContainerResult] = field(default_factory=list)
    directories: List[DirectoryRemoval] = field(default_factory=list)
    missing_directories: List[Path] = field(default_factory=list)
    dry_run: bool = False

    @property
    def failures(self) -> List[ContainerResult]:
        return [result for result in self.containers if not result.succeeded]

    @property
    def directory_failures(self) -> List[DirectoryRemoval]:
        return [removal for removal in self.directories if removal.error]

    @property
    def has_failures(self) -> bool:
        return bool(self.failures or self.directory_failures)

    @property
    def total_files_removed(self) -> int:
        return sum(result.files_removed for result in self.containers)

    @property
    def total_bytes_removed(self) -> int:
        return (
            sum(result.bytes_removed for result in self.containers)
            + sum(removal.bytes_removed for removal in self.directories)
        )


class GameDataTrimmer:
    """
    Removes unneeded media from a game installation.

    For each configured directory under the base directory, bulk
    directories (e.g. ``video``) are deleted outright, then every
    container at depth 1 is inspected and rebuilt without its removable
    entries. Containers are processed one at a time; a failure in one is
    recorded and does not stop the others.
    """

    def __init__(
        self,
        config: TrimConfig,
        inspector: Optional[ArchiveInspector] = None,
        rebuilder: Optional[ArchiveRebuilder] = None,
    ):
        self.config = config
        self.processing = config.processing
        self.policy = RemovalPolicy.from_config(config.policy)
        self.inspector = inspector or ArchiveInspector()
        self.rebuilder = rebuilder or ArchiveRebuilder(
            replace_mode=ReplaceMode(self.processing.replace_mode),
            strict=self.processing.strict,
            verify_output=self.processing.verify_output,
        )

    @property
    def dry_run(self) -> bool:
        return self.processing.dry_run

    def run(
        self,
        base_dir: Optional[Path] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> TrimSummary:
        """Process every configured directory under base_dir.

        Args:
            base_dir: Game installation directory (defaults to config)
            progress_callback: Optional callback(current, total, name),
                called per container within each directory

        Returns:
            Summary of everything removed

        Raises:
            FileNotFoundError: If base_dir does not exist
        """
        base_dir = Path(base_dir if base_dir is not None else self.processing.base_dir)
        if not base_dir.is_dir():
            raise FileNotFoundError(f"Directory '{base_dir}' not found")

        summary = TrimSummary(dry_run=self.dry_run)
        for dir_name in self.processing.directories:
            self._process_directory(base_dir / dir_name, summary, progress_callback)

        return summary

    def _process_directory(
        self,
        work_dir: Path,
        summary: TrimSummary,
        progress_callback: Optional[ProgressCallback],
    ) -> None:
        if not work_dir.is_dir():
            logger.info(f"Directory '{work_dir}' not found, skipping...")
            summary.missing_directories.append(work_dir)
            return

        logger.info(f"Processing directory: {work_dir}")

        for name in self.processing.bulk_remove_directories:
            bulk_dir = work_dir / name
            if bulk_dir.is_dir():
                summary.directories.append(self.remove_bulk_directory(bulk_dir))

        containers = ContainerDiscovery(work_dir, self.processing.container_extension).discover()
        for current, path in enumerate(containers, start=1):
            if progress_callback:
                progress_callback(current, len(containers), path.name)
            summary.containers.append(self.process_container(path))

    def remove_bulk_directory(self, path: Path) -> DirectoryRemoval:
        """Delete a whole directory and report its size."""
        try:
            if self.dry_run:
                size = directory_size(path)
                logger.info(f"Would remove {path.name} directory ({format_size(size)})")
                return DirectoryRemoval(path=path, bytes_removed=size)

            logger.info(f"Removing {path.name} directory...")
            size = remove_directory(path)
            logger.info(f"Removed {path.name} directory ({format_size(size)})")
            return DirectoryRemoval(path=path, bytes_removed=size)
        except OSError as e:
            logger.error(f"Error removing {path}: {e}")
            return DirectoryRemoval(path=path, error=str(e))

    def process_container(self, path: Path) -> ContainerResult:
        """Inspect one container and rebuild it without removable entries."""
        with LogContext(logger, container=str(path)):
            logger.info(f"Processing: {path}")
            try:
                inspection = self.inspector.inspect(path, self.policy)
            except IwdTrimError as e:
                logger.error(f"Error processing {path}: {e.message}")
                return ContainerResult(path=path, error=e.message)

            removal_set = inspection.removal_set
            with inspection.container:
                if self.dry_run:
                    if not removal_set.is_empty:
                        logger.info(
                            f"Would remove {removal_set.count} files "
                            f"({format_size(removal_set.removed_bytes)}) from {path}"
                        )
                    return ContainerResult(
                        path=path,
                        files_removed=removal_set.count,
                        bytes_removed=removal_set.removed_bytes,
                    )

                try:
                    result = self.rebuilder.rebuild(
                        inspection.container, removal_set, inspection.entries
                    )
                except IwdTrimError as e:
                    logger.error(f"Error processing {path}: {e.message}")
                    return ContainerResult(path=path, error=e.message)
                except OSError as e:
                    logger.error(f"Error processing {path}: {e}")
                    return ContainerResult(path=path, error=str(e))

            return ContainerResult(
                path=path,
                files_removed=result.files_removed,
                bytes_removed=result.bytes_removed,
                skipped_entries=result.skipped_entries,
            )
