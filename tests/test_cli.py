"""Smoke tests for the CLI entrypoint."""

from click.testing import CliRunner

from renamebot import __version__
from renamebot.cli import cli


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "renames TV episodes and movies" in result.output
    for command in ("rename", "revert", "history", "subs", "check", "hash", "list", "extract"):
        assert command in result.output


def test_rename_requires_paths_or_mapping(tmp_path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["rename"], env={"HOME": str(tmp_path)})

    assert result.exit_code != 0
    assert "Provide PATHS" in result.output


def test_version_option_reports_package_version() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output
