"""Run command templates against files."""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Sequence

from renamebot.formatting.formatter import KNOWN_BINDINGS, FormatError, NameFormatter

LOGGER = logging.getLogger(__name__)

FILES_TOKEN = "{files}"


class CommandError(Exception):
    """Raised when a command template is invalid or a command cannot start."""


class ExecCommand:
    """A command line whose arguments are rendered from template bindings.

    ``mkvpropedit {f} --edit info --set title={n}`` runs once per file. A template
    that references ``{files}`` runs once for the whole batch; a bare ``{files}``
    argument expands into one argument per file.
    """

    def __init__(
        self,
        template: str,
        *,
        cwd: Optional[Path] = None,
        timeout: Optional[float] = None,
        runner: Callable[..., Any] = subprocess.run,
    ) -> None:
        try:
            tokens = shlex.split(template)
        except ValueError as exc:
            raise CommandError(f"Cannot parse command '{template}': {exc}") from exc
        if not tokens:
            raise CommandError("Command template must not be empty.")
        self.template = template
        self.cwd = cwd
        self.timeout = timeout
        self._runner = runner
        self._tokens = tokens
        try:
            self._formatters = [NameFormatter(token) for token in tokens]
        except FormatError as exc:
            raise CommandError(str(exc)) from exc

    @property
    def uses_files(self) -> bool:
        return any("{files" in token for token in self._tokens)

    @property
    def uses_media(self) -> bool:
        return any(formatter.uses_media for formatter in self._formatters)

    def argv(self, bindings: Mapping[str, Any]) -> list[str]:
        """Render the command for a single file's bindings."""
        return [self._render(formatter, bindings) for formatter in self._formatters]

    def argv_all(self, items: Sequence[Mapping[str, Any]]) -> list[str]:
        """Render the command once for a batch of files."""
        paths = [str(item.get("f", "")) for item in items]
        first = dict(items[0]) if items else {}
        first["files"] = " ".join(shlex.quote(path) for path in paths)
        argv: list[str] = []
        for token, formatter in zip(self._tokens, self._formatters):
            if token == FILES_TOKEN:
                argv.extend(paths)
            else:
                argv.append(self._render(formatter, first))
        return argv

    def run(self, items: Iterable[Mapping[str, Any]]) -> Iterator[int]:
        """Run the command and yield exit codes as each invocation finishes.

        Args:
            items: Template bindings, one mapping per file.

        Yields:
            int: Exit code of each invocation.

        Raises:
            CommandError: If a command cannot be rendered or started.
        """
        items = list(items)
        if self.uses_files:
            if items:
                yield self._call(self.argv_all(items))
            return
        for bindings in items:
            yield self._call(self.argv(bindings))

    def _render(self, formatter: NameFormatter, bindings: Mapping[str, Any]) -> str:
        values: dict[str, Any] = dict.fromkeys(KNOWN_BINDINGS)
        values.update(bindings)
        try:
            return formatter.render(values)
        except FormatError as exc:
            raise CommandError(str(exc)) from exc

    def _call(self, argv: list[str]) -> int:
        LOGGER.info("Executing: %s", shlex.join(argv))
        try:
            completed = self._runner(argv, cwd=self.cwd, timeout=self.timeout, check=False)
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise CommandError(f"Cannot run '{argv[0]}': {exc}") from exc
        if completed.returncode != 0:
            LOGGER.warning("Command exited with %d: %s", completed.returncode, argv[0])
        return completed.returncode


__all__ = ["ExecCommand", "CommandError", "FILES_TOKEN"]
