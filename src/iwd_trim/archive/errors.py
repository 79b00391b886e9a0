"""Archive-specific errors."""

from ..common.errors import IwdTrimError


class ArchiveError(IwdTrimError):
    """Container processing failed."""
    pass


class OpenError(ArchiveError):
    """Container is missing, unreadable or not a valid ZIP file."""
    pass


class UnsupportedContainerError(OpenError):
    """Container uses a feature that cannot be raw-copied (e.g. encryption)."""
    pass


class CorruptEntryError(ArchiveError):
    """An entry record could not be read during inspection."""

    @property
    def index(self) -> int | None:
        return self.context.get("index")


class RebuildError(ArchiveError):
    """Writing the filtered container failed."""
    pass


class EntryCopyError(RebuildError):
    """A retained entry's raw bytes could not be copied."""
    pass


class FinalizeError(RebuildError):
    """Finishing, verifying or swapping in the new container failed."""
    pass
