"""Configuration schema definitions using Pydantic."""

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..common.logging_config import LoggingConfig


def _split_list(v):
    """Accept a comma-separated string or a single scalar (e.g. from an env override) as a list."""
    if isinstance(v, str):
        return [part.strip() for part in v.split(",") if part.strip()]
    if isinstance(v, (int, float)):
        return [str(v)]
    return v


class RemovalPolicyConfig(BaseModel):
    """Which container entries are removed."""

    model_config = ConfigDict(extra='forbid')

    directories: List[str] = Field(
        default_factory=lambda: ["images", "sound", "video"],
        description="Top-level directory names inside a container whose entries are removed"
    )
    extensions: List[str] = Field(
        default_factory=lambda: ["iwi", "mp3"],
        description="File extensions (without dot, case-sensitive) of removed entries"
    )

    @field_validator('directories', 'extensions', mode='before')
    @classmethod
    def split_comma_separated(cls, v):
        return _split_list(v)

    @field_validator('directories')
    @classmethod
    def validate_directories(cls, v: List[str]) -> List[str]:
        """Directory names are single path segments."""
        for name in v:
            if not name or name in ('.', '..') or '/' in name or '\\' in name:
                raise ValueError(f"Invalid directory name: {name!r}")
        return v

    @field_validator('extensions')
    @classmethod
    def normalize_extensions(cls, v: List[str]) -> List[str]:
        """Strip a leading dot; reject empty or multi-part extensions."""
        normalized = []
        for ext in v:
            ext = ext[1:] if ext.startswith('.') else ext
            if not ext or '/' in ext or '.' in ext:
                raise ValueError(f"Invalid extension: {ext!r}")
            normalized.append(ext)
        return normalized


class ProcessingConfig(BaseModel):
    """Which files are processed and how."""

    model_config = ConfigDict(extra='forbid')

    base_dir: str = Field(
        default=".",
        description="Game installation directory"
    )
    directories: List[str] = Field(
        default_factory=lambda: ["main", "iw4x"],
        description="Subdirectories of base_dir searched for containers"
    )
    container_extension: str = Field(
        default="iwd",
        description="Extension of container files to process"
    )
    bulk_remove_directories: List[str] = Field(
        default_factory=lambda: ["video"],
        description="Subdirectories deleted entirely from each processed directory"
    )
    dry_run: bool = Field(
        default=False,
        description="Report what would be removed without changing any file"
    )
    strict: bool = Field(
        default=False,
        description="Fail a container when a kept entry cannot be copied"
    )
    verify_output: bool = Field(
        default=True,
        description="Re-read the rebuilt container before replacing the original"
    )
    replace_mode: Literal["atomic", "delete_then_rename"] = Field(
        default="atomic",
        description="How the rebuilt container replaces the original"
    )

    @field_validator('directories', 'bulk_remove_directories', mode='before')
    @classmethod
    def split_comma_separated(cls, v):
        return _split_list(v)

    @field_validator('container_extension')
    @classmethod
    def normalize_extension(cls, v: str) -> str:
        v = v.lstrip('.')
        if not v:
            raise ValueError("container_extension must not be empty")
        return v


class TrimConfig(BaseModel):
    """Root configuration."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    policy: RemovalPolicyConfig = Field(default_factory=RemovalPolicyConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
