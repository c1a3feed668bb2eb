"""Post-processing command execution."""

from .exec import FILES_TOKEN, CommandError, ExecCommand

__all__ = ["ExecCommand", "CommandError", "FILES_TOKEN"]
