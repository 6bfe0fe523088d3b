from __future__ import annotations

from pathlib import Path

import pytest

from studiocat import main as main_module
from studiocat.domain.ingest_pipeline import UnknownSourceError
from studiocat.domain.model import IngestionJob, JobOptions, JobStatus, JobType
from tests.helpers.studios import make_source_config


def _capture_ingest(
    monkeypatch: pytest.MonkeyPatch, status: JobStatus = JobStatus.COMPLETED
) -> dict[str, object]:
    captured: dict[str, object] = {}

    def fake_ingest(source_id: str, **kwargs: object) -> IngestionJob:
        captured["source_id"] = source_id
        captured.update(kwargs)
        return IngestionJob(source_id=source_id, status=status)

    monkeypatch.setattr(main_module, "ingest", fake_ingest)
    return captured


def test_ingest_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture_ingest(monkeypatch)

    main_module.main(["ingest", "wikidata"])

    assert captured["source_id"] == "wikidata"
    assert captured["job_type"] is JobType.FULL_SYNC
    assert captured["options"] == JobOptions()
    assert captured["manual_file"] is None
    assert captured["config_path"] is None


def test_ingest_with_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture_ingest(monkeypatch)

    main_module.main(
        [
            "-vv",
            "--config",
            "studiocat.toml",
            "ingest",
            "manual",
            "--type",
            "single_entity",
            "--entity-id",
            "riot",
            "--entity-id",
            "remedy",
            "--limit",
            "5",
            "--file",
            "studios.json",
        ]
    )

    assert captured["job_type"] is JobType.SINGLE_ENTITY
    assert captured["options"] == JobOptions(entity_ids=("riot", "remedy"), limit=5)
    assert captured["manual_file"] == Path("studios.json")
    assert captured["config_path"] == Path("studiocat.toml")


def test_failed_job_exits_with_one(monkeypatch: pytest.MonkeyPatch) -> None:
    _capture_ingest(monkeypatch, status=JobStatus.FAILED)

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["ingest", "manual"])

    assert excinfo.value.code == 1


@pytest.mark.parametrize(
    "argv",
    [
        ["ingest", "manual", "--limit", "0"],
        ["ingest", "manual", "--type", "single_entity"],
        ["ingest", "manual", "--type", "nightly"],
        [],
    ],
)
def test_invalid_arguments_exit_with_two(
    monkeypatch: pytest.MonkeyPatch, argv: list[str]
) -> None:
    _capture_ingest(monkeypatch)

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(argv)

    assert excinfo.value.code == 2


def test_unknown_source_exits_with_two(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_ingest(source_id: str, **_: object) -> IngestionJob:
        raise UnknownSourceError(source_id)

    monkeypatch.setattr(main_module, "ingest", fake_ingest)

    with pytest.raises(SystemExit) as excinfo:
        main_module.main(["ingest", "epic"])

    assert excinfo.value.code == 2


def test_sources_lists_configured_sources(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    def fake_list_sources(**_: object) -> list[tuple[object, None]]:
        return [
            (make_source_config("manual"), None),
            (make_source_config("steam", enabled=False), None),
        ]

    monkeypatch.setattr(main_module, "list_sources", fake_list_sources)

    main_module.main(["sources"])

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("manual")
    assert "enabled, no provider" in lines[0]
    assert "disabled" in lines[1]
