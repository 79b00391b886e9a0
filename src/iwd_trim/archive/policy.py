"""Name-based removal predicate for container entries."""

from dataclasses import dataclass
from typing import Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ..config.schema import RemovalPolicyConfig


def path_segments(name: str) -> list[str]:
    """Split an entry name into path segments.

    Empty segments (leading, trailing or doubled slashes) and ``.``
    segments are dropped, so ``./images//a.iwi`` yields ``['images', 'a.iwi']``.
    """
    return [part for part in name.split('/') if part not in ('', '.')]


def file_extension(name: str) -> Optional[str]:
    """Return the extension of the final path segment, or None.

    The extension is the text after the last ``.``. A segment whose only
    dot is its first character (``.hidden``) has no extension; a trailing
    dot yields an empty extension.
    """
    segments = path_segments(name)
    if not segments:
        return None
    stem, dot, extension = segments[-1].rpartition('.')
    if not dot or not stem:
        return None
    return extension


@dataclass(frozen=True)
class RemovalPolicy:
    """
    Decides which container entries are removable.

    An entry is removable if its first path segment equals one of
    ``directories`` or its extension is one of ``extensions``.
    Both comparisons are case-sensitive.
    """

    directories: frozenset[str] = frozenset()
    extensions: frozenset[str] = frozenset()

    @classmethod
    def create(
        cls,
        directories: Iterable[str] = (),
        extensions: Iterable[str] = (),
    ) -> "RemovalPolicy":
        return cls(
            directories=frozenset(directories),
            extensions=frozenset(ext.lstrip('.') for ext in extensions),
        )

    @classmethod
    def from_config(cls, config: "RemovalPolicyConfig") -> "RemovalPolicy":
        return cls.create(config.directories, config.extensions)

    def matches_directory(self, name: str) -> bool:
        segments = path_segments(name)
        return bool(segments) and segments[0] in self.directories

    def matches_extension(self, name: str) -> bool:
        extension = file_extension(name)
        return extension is not None and extension in self.extensions

    def is_removable(self, name: str) -> bool:
        """Check whether an entry with this name should be removed."""
        return self.matches_directory(name) or self.matches_extension(name)

    __call__ = is_removable
