"""Render matches into destination paths and text lines."""

from __future__ import annotations

import re
import string
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

from renamebot.datasources.models import MetadataRecord
from renamebot.media.models import MediaFile
from renamebot.media.streams import MEDIA_BINDINGS, MediaInspector

from .bindings import match_bindings

KNOWN_BINDINGS = frozenset(
    {
        "n",
        "y",
        "s",
        "e",
        "s00e00",
        "sxe",
        "t",
        "absolute",
        "id",
        "airdate",
        "source",
        "kind",
        "f",
        "fn",
        "ext",
        "folder",
        "size",
        "mime",
        "hn",
        "hy",
        "hs",
        "he",
        "group",
        "files",
    }
) | MEDIA_BINDINGS

_ILLEGAL_CHARS = re.compile(r'[<>"|?*\x00-\x1f]')
_EMPTY_BRACKETS = re.compile(r"\(\s*\)|\[\s*\]|\{\s*\}")
_REPEATED_DASHES = re.compile(r"(?:\s*-\s*){2,}")
_WHITESPACE = re.compile(r"\s+")


class FormatError(ValueError):
    """Raised when a template is malformed or cannot be rendered."""


class _BindingFormatter(string.Formatter):
    """``str.format`` over named bindings where missing values render empty."""

    def get_value(self, key: int | str, args: Sequence[Any], kwargs: Mapping[str, Any]) -> Any:
        if isinstance(key, int):
            raise FormatError("Positional fields are not supported; use named bindings.")
        if key not in kwargs:
            raise FormatError(f"Unknown binding '{key}'.")
        return kwargs[key]

    def format_field(self, value: Any, format_spec: str) -> str:
        if value is None:
            return ""
        try:
            return super().format_field(value, format_spec)
        except (TypeError, ValueError) as exc:
            raise FormatError(f"Cannot apply format '{format_spec}' to {value!r}: {exc}") from exc


def sanitize_component(value: str) -> str:
    """Make ``value`` safe to embed in a single path segment."""
    cleaned = value.replace(": ", " - ").replace(":", "-")
    cleaned = cleaned.replace("/", "-").replace("\\", "-")
    cleaned = _ILLEGAL_CHARS.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def clean_segment(segment: str) -> str:
    """Tidy a rendered segment left with empty brackets or dangling separators."""
    cleaned = _EMPTY_BRACKETS.sub("", segment)
    cleaned = _REPEATED_DASHES.sub(" - ", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    return cleaned.strip(" -_").rstrip(".").strip()


class NameFormatter:
    """Render a template such as ``{n} ({y})/Season {s}/{n} - {s00e00} - {t}``.

    Fields use ``str.format`` syntax with format specs (``{s:02d}``); ``/`` separates
    directories. Missing values render empty and the leftovers are cleaned up.
    Media bindings such as ``{vf}`` or ``{vc}`` are read with ``inspector`` only when
    the template uses them.
    """

    def __init__(self, template: str, *, inspector: Optional[MediaInspector] = None) -> None:
        if not template or not template.strip():
            raise FormatError("Format template must not be empty.")
        self.template = template
        self.inspector = inspector or MediaInspector()
        self._formatter = _BindingFormatter()
        self.fields: frozenset[str] = self._validate()

    @property
    def uses_media(self) -> bool:
        return bool(self.fields & MEDIA_BINDINGS)

    def render(self, bindings: Mapping[str, Any]) -> str:
        """Render the template verbatim, without path handling."""
        return self._formatter.vformat(self.template, (), dict(bindings))

    def render_path(self, bindings: Mapping[str, Any]) -> str:
        """Render the template as a relative or absolute path without extension.

        Raises:
            FormatError: If the result is empty.
        """
        safe = {
            key: sanitize_component(value) if isinstance(value, str) else value
            for key, value in bindings.items()
        }
        rendered = self._formatter.vformat(self.template, (), safe)
        absolute = rendered.startswith("/")
        segments = [clean_segment(part) for part in rendered.split("/")]
        segments = [segment for segment in segments if segment and segment not in {".", ".."}]
        if not segments:
            raise FormatError(f"Template '{self.template}' rendered an empty name.")
        joined = "/".join(segments)
        return f"/{joined}" if absolute else joined

    def destination(
        self,
        media: MediaFile,
        record: MetadataRecord,
        extras: Sequence[MetadataRecord] = (),
        *,
        output: Optional[Path] = None,
    ) -> Path:
        """Return the absolute destination path for a matched file.

        Relative results are placed under ``output`` or the file's own directory;
        the source extension is kept.
        """
        bindings = match_bindings(media, record, extras)
        if self.uses_media:
            bindings.update(self.inspector.bindings(media.path))
        relative = self.render_path(bindings)
        candidate = Path(relative + media.path.suffix)
        if candidate.is_absolute():
            return candidate
        base = output if output is not None else media.path.parent
        return base / candidate

    def _validate(self) -> frozenset[str]:
        roots: set[str] = set()
        try:
            parsed = list(self._formatter.parse(self.template))
        except ValueError as exc:
            raise FormatError(f"Malformed template '{self.template}': {exc}") from exc
        for _, field_name, _, _ in parsed:
            if field_name is None:
                continue
            root = re.split(r"[.\[]", field_name, maxsplit=1)[0]
            if not root or root.isdigit():
                raise FormatError("Positional fields are not supported; use named bindings.")
            if root not in KNOWN_BINDINGS:
                raise FormatError(f"Unknown binding '{root}' in template '{self.template}'.")
            roots.add(root)
        return frozenset(roots)


__all__ = [
    "NameFormatter",
    "FormatError",
    "KNOWN_BINDINGS",
    "sanitize_component",
    "clean_segment",
]
