"""Configuration models describing propcmd settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PropcmdBaseModel(BaseModel):
    """Shared configuration for propcmd settings models."""

    model_config = ConfigDict(extra="forbid")


class TraversalOptions(PropcmdBaseModel):
    """Defaults applied when a folder is selected as the batch target.

    Attributes:
        include_subfolders: Whether to descend into subfolders at all.
        depth_level: Maximum number of levels below the folder to visit (-1 for unlimited).
        include_hidden: Whether dot-prefixed files and folders are visited.
        follow_symlinks: Whether symbolic links to folders are traversed.
    """

    include_subfolders: bool = True
    depth_level: int = Field(default=-1, ge=-1)
    include_hidden: bool = False
    follow_symlinks: bool = False


class DocumentOptions(PropcmdBaseModel):
    """Settings for reading and committing document frontmatter.

    Attributes:
        encoding: Text encoding used for Markdown files.
        commit_retries: Attempts made when a document changes between read and commit.
    """

    encoding: str = "utf-8"
    commit_retries: int = Field(default=3, ge=1)


class LoggingSettings(PropcmdBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(PropcmdBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
        preview_values: Number of distinct values shown per property in listings.
    """

    quiet_default: bool = False
    summary_default: bool = False
    preview_values: int = Field(default=3, ge=1)


class PropcmdConfig(PropcmdBaseModel):
    """Top-level configuration struct for propcmd.

    Attributes:
        traversal: Folder traversal defaults.
        documents: Document store settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    traversal: TraversalOptions = Field(default_factory=TraversalOptions)
    documents: DocumentOptions = Field(default_factory=DocumentOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "PropcmdBaseModel",
    "TraversalOptions",
    "DocumentOptions",
    "LoggingSettings",
    "CLIOptions",
    "PropcmdConfig",
]
