import json
from pathlib import Path

import pytest

from stackplan.app import App
from stackplan.errors import SourceTreeError
from stackplan.observability import StructuredLogger


def test_app_requires_existing_directory(tmp_path: Path) -> None:
    with pytest.raises(SourceTreeError) as excinfo:
        App(tmp_path / "missing")
    assert excinfo.value.context["operation"] == "open_app"
    assert excinfo.value.code == "E_SOURCE_TREE"


def test_app_file_queries(tmp_path: Path) -> None:
    (tmp_path / "b.fsproj").write_text("", encoding="utf-8")
    (tmp_path / "a.fsproj").write_text("", encoding="utf-8")
    (tmp_path / "public").mkdir()
    app = App(tmp_path)

    assert app.includes_file("a.fsproj")
    assert not app.includes_file("public")
    assert app.includes_directory("public")
    assert [p.as_posix() for p in app.find_files("*.fsproj")] == ["a.fsproj", "b.fsproj"]


def test_app_read_failures_are_wrapped(tmp_path: Path) -> None:
    app = App(tmp_path)
    with pytest.raises(SourceTreeError) as excinfo:
        app.read_file("missing.txt")
    assert excinfo.value.context["operation"] == "read_file"
    assert isinstance(excinfo.value.__cause__, OSError)


def test_structured_logger_filters_and_exports(tmp_path: Path) -> None:
    logger = StructuredLogger()
    logger.log(operation="detect", provider="java", message="provider detected")
    logger.log(operation="generate_plan", provider="java", phase="setup", message="applied")
    logger.log(operation="synthesize", message="done", extra={"files": 3})

    assert len(logger.records_for_provider("java")) == 2
    assert logger.records_for_operation("synthesize")[0]["extra"] == {"files": 3}

    path = logger.to_json_lines(tmp_path / "logs" / "run.jsonl")
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["operation"] for line in lines] == [
        "detect",
        "generate_plan",
        "synthesize",
    ]
