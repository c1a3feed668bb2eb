"""Tests for destination templates and record filters."""

from datetime import date
from pathlib import Path

import pytest

from renamebot.datasources import MetadataRecord
from renamebot.formatting import FormatError, NameFormatter, RecordFilter, record_bindings
from renamebot.media import MediaFile, parse_hints


def _episode(episode: int = 2, **extra) -> MetadataRecord:
    return MetadataRecord(
        datasource="catalog",
        kind="episode",
        id=100 + episode,
        title="Marvel's Agents of S.H.I.E.L.D.",
        year=2013,
        season=1,
        episode=episode,
        series_id=1,
        episode_title=extra.pop("episode_title", "0-8-4"),
        airdate=date(2013, 10, 1),
        **extra,
    )


def _media(path: str) -> MediaFile:
    return MediaFile(path=Path(path), hints=parse_hints(path))


def test_destination_keeps_extension_and_trims_folder_dots() -> None:
    formatter = NameFormatter("{n}/Season {s}/{n} - {s00e00} - {t}")

    destination = formatter.destination(_media("/in/shield.s01e02.mkv"), _episode())

    assert destination == Path(
        "/in/Marvel's Agents of S.H.I.E.L.D/Season 1/"
        "Marvel's Agents of S.H.I.E.L.D. - S01E02 - 0-8-4.mkv"
    )


def test_destination_uses_output_directory_and_format_specs() -> None:
    formatter = NameFormatter("{n} {s:02d}x{e:03d}")

    destination = formatter.destination(
        _media("/in/a.avi"), _episode(), output=Path("/library")
    )

    assert destination == Path("/library/Marvel's Agents of S.H.I.E.L.D. 01x002.avi")


def test_missing_values_collapse_cleanly() -> None:
    movie = MetadataRecord(datasource="catalog", kind="movie", id=1, title="Alien: Covenant")

    rendered = NameFormatter("{n} ({y}) - {t}").render_path(record_bindings(movie))

    assert rendered == "Alien - Covenant"


def test_multi_episode_codes_and_titles() -> None:
    extra = _episode(3, episode_title="Eye Spy")

    bindings = record_bindings(_episode(), [extra])

    assert bindings["s00e00"] == "S01E02-E03"
    assert bindings["sxe"] == "1x02-03"
    assert "Eye Spy" in bindings["t"]


@pytest.mark.parametrize("template", ["", "{unknown}", "{0}", "{n"])
def test_invalid_templates_raise(template: str) -> None:
    with pytest.raises(FormatError):
        NameFormatter(template)


def test_render_without_path_handling() -> None:
    line = NameFormatter("{n} | {airdate} | {id}").render(record_bindings(_episode()))

    assert line == "Marvel's Agents of S.H.I.E.L.D. | 2013-10-01 | 102"


def test_record_filter_conditions() -> None:
    bindings = record_bindings(_episode())

    assert RecordFilter("s == 1 && e <= 6")(bindings)
    assert not RecordFilter("s == 2")(bindings)
    assert RecordFilter("t ~ '8-4'")(bindings)
    assert RecordFilter("absolute == none")(bindings) is False
    assert not RecordFilter("")
    assert RecordFilter("")(bindings)


def test_record_filter_rejects_unknown_bindings() -> None:
    with pytest.raises(FormatError):
        RecordFilter("rating > 5")
    with pytest.raises(FormatError):
        RecordFilter("s")
