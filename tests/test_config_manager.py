"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from renamebot.config import (
    ConfigError,
    ConfigManager,
    RenamebotConfig,
    flatten_for_env,
    parse_assignments,
    resolve_with_precedence,
)


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager()


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".renamebot" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "renamebot configuration file" in text
    assert "Last updated:" in text
    assert isinstance(manager.load(include_env=False), RenamebotConfig)


def test_precedence_is_defaults_file_env_then_cli(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.save({"rename": {"conflict": "append_number", "action": "copy"}})

    env = {"RENAMEBOT__RENAME__ACTION": "symlink", "RENAMEBOT__QUERY__WORKERS": "2"}
    cli = {"rename.action": "hardlink"}

    config = manager.load(cli_overrides=cli, env_overrides=env)

    assert config.rename.conflict == "append_number"
    assert config.query.workers == 2
    assert config.rename.action == "hardlink"


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()
    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_set_value_validates_before_writing(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()
    before = manager.read_text()

    with pytest.raises(ConfigError):
        manager.set_value("rename.conflict", "explode")

    assert manager.read_text() == before
    updated = manager.set_value("matching.threshold", 0.8)
    assert updated.matching.threshold == pytest.approx(0.8)


def test_flatten_for_env_renders_defaults() -> None:
    flat = flatten_for_env(RenamebotConfig())

    assert flat["RENAMEBOT__RENAME__CONFLICT"] == "skip"
    assert flat["RENAMEBOT__QUERY__WORKERS"] == "4"
    assert flat["RENAMEBOT__DATASOURCE__CATALOG_PATH"] == "null"


def test_parse_assignments_reads_yaml_literals() -> None:
    parsed = parse_assignments(["query.workers=8", "rename.output=/tmp/out"])

    assert parsed == {"query.workers": 8, "rename.output": "/tmp/out"}
    with pytest.raises(ConfigError):
        parse_assignments(["missing-equals"])


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=RenamebotConfig(),
            file_overrides={"rename": {"colour": "blue"}},
        )
