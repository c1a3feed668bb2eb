"""Configuration models describing renamebot settings."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

RenameActionName = Literal["move", "copy", "symlink", "hardlink", "test"]
ConflictPolicyName = Literal["skip", "overwrite", "append_number", "fail"]


class RenamebotBaseModel(BaseModel):
    """Shared configuration for renamebot Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class MatchingOptions(RenamebotBaseModel):
    """Settings that govern how files are paired with metadata records.

    Attributes:
        threshold: Minimum similarity score a candidate must reach to be accepted.
        strict: Whether ambiguous best candidates are reported unmatched.
    """

    threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    strict: bool = False


class RenameOptions(RenamebotBaseModel):
    """Defaults applied when planning and executing rename batches.

    Attributes:
        action: Filesystem action used to apply mappings.
        conflict: Policy applied when destinations collide.
        episode_format: Template used for episode matches.
        movie_format: Template used for movie matches.
        output: Optional output directory for relative destinations.
    """

    action: RenameActionName = "move"
    conflict: ConflictPolicyName = "skip"
    episode_format: str = "{n} - {s00e00} - {t}"
    movie_format: str = "{n} ({y})"
    output: Optional[str] = None


class DatasourceSettings(RenamebotBaseModel):
    """Metadata datasource configuration.

    Attributes:
        provider: Identifier of the default datasource.
        catalog_path: Path to a local YAML/JSON catalog file.
        api_key: Optional credential for hosted providers.
        language: Default locale passed to datasources.
        timeout_seconds: HTTP timeout for hosted providers.
        retries: Number of attempts for failed HTTP requests.
        max_results: Maximum search results fetched per query.
    """

    provider: str = "catalog"
    catalog_path: Optional[str] = None
    api_key: Optional[str] = None
    language: str = "en-US"
    timeout_seconds: int = 10
    retries: int = 3
    max_results: int = 5


class QueryOptions(RenamebotBaseModel):
    """Query dispatch options.

    Attributes:
        workers: Upper bound on concurrent datasource queries.
        cache_ttl_seconds: Lifetime of cached search and fetch responses.
        cache_size: Maximum number of cached responses.
    """

    workers: int = Field(default=4, ge=1)
    cache_ttl_seconds: int = 3_600
    cache_size: int = 512


class SubtitleOptions(RenamebotBaseModel):
    """Subtitle handling defaults."""

    language: str = "en"
    naming: Literal["original", "match_video", "match_video_add_language_tag"] = (
        "match_video_add_language_tag"
    )
    format: Literal["srt", "vtt"] = "srt"
    encoding: str = "utf-8"


class HashingOptions(RenamebotBaseModel):
    """Checksum defaults."""

    hash_type: Literal["sfv", "md5", "sha1", "sha256"] = "sfv"
    encoding: str = "utf-8"


class HistoryOptions(RenamebotBaseModel):
    """Rename history persistence.

    Attributes:
        path: Location of the JSON history file.
    """

    path: str = "~/.renamebot/history.json"


class LoggingSettings(RenamebotBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file path; enables a rotating file handler.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: Optional[str] = None
    max_size_mb: int = 100
    backup_count: int = 5


class CLIOptions(RenamebotBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
        history_limit: Default number of history batches to display.
    """

    quiet_default: bool = False
    summary_default: bool = False
    history_limit: int = 5


class RenamebotConfig(RenamebotBaseModel):
    """Top-level configuration struct for renamebot."""

    matching: MatchingOptions = Field(default_factory=MatchingOptions)
    rename: RenameOptions = Field(default_factory=RenameOptions)
    datasource: DatasourceSettings = Field(default_factory=DatasourceSettings)
    query: QueryOptions = Field(default_factory=QueryOptions)
    subtitles: SubtitleOptions = Field(default_factory=SubtitleOptions)
    hashing: HashingOptions = Field(default_factory=HashingOptions)
    history: HistoryOptions = Field(default_factory=HistoryOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "RenamebotBaseModel",
    "RenameActionName",
    "ConflictPolicyName",
    "MatchingOptions",
    "RenameOptions",
    "DatasourceSettings",
    "QueryOptions",
    "SubtitleOptions",
    "HashingOptions",
    "HistoryOptions",
    "LoggingSettings",
    "CLIOptions",
    "RenamebotConfig",
]
