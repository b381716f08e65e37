"""Tests for the typescope CLI."""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

import pytest

from typescope.cli import main
from typescope.config.overrides import ScoringOverrides
from typescope.config.store import get_config_store

EI_TABLE = {"EI": {"traits": {"Communal Navigate": 0.5, "Dynamic": 0.5}, "threshold": 4.0}}


def _run(capsys: pytest.CaptureFixture[str], argv: list[str]) -> tuple[int, Any]:
    code = main(argv)
    return code, json.loads(capsys.readouterr().out)


def _stdin(monkeypatch: pytest.MonkeyPatch, content: str) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(content))


class TestScoreCommand:
    """Tests for `typescope score`."""

    def test_score_from_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Responses read from --input are scored to JSON on stdout."""
        path = tmp_path / "responses.json"
        path.write_text(json.dumps([5] * 108), encoding="utf-8")

        code, data = _run(capsys, ["score", "--input", str(path)])

        assert code == 0
        assert data["mappings"]["mbti"] == "ISFP"
        assert data["errors"] == {}

    def test_score_from_stdin(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Without --input the vector is read from stdin."""
        _stdin(monkeypatch, json.dumps([5] * 108))

        code, data = _run(capsys, ["score"])

        assert code == 0
        assert len(data["trait_scores"]) > 0

    def test_stored_overrides_apply(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """The command scores with the saved global overrides."""
        get_config_store().save_scoring_overrides(
            ScoringOverrides.model_validate({"mbti": EI_TABLE}), "admin"
        )
        _stdin(monkeypatch, json.dumps([5] * 108))

        code, data = _run(capsys, ["score"])

        assert code == 0
        assert data["mappings"]["mbti"] == "ESFP"

    def test_user_overrides_apply(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """--user-id applies that user's display overrides."""
        get_config_store().save_user_override("user-1", "mbti", "ENTJ", created_by="coach")
        _stdin(monkeypatch, json.dumps([5] * 108))

        code, data = _run(capsys, ["score", "--user-id", "user-1"])

        assert code == 0
        assert data["mappings"]["mbti"] == "ENTJ"
        assert data["overridden_frameworks"] == ["mbti"]

    def test_invalid_json(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Malformed JSON exits 2 with INVALID_JSON."""
        _stdin(monkeypatch, "[5, 5,")

        code, data = _run(capsys, ["score"])

        assert code == 2
        assert data["error"]["code"] == "INVALID_JSON"

    def test_empty_input(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Blank input is reported as empty."""
        _stdin(monkeypatch, "  \n")

        code, data = _run(capsys, ["score"])

        assert code == 2
        assert data["error"] == {"code": "INVALID_JSON", "message": "Empty input"}

    def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A missing input file exits 2."""
        code, data = _run(capsys, ["score", "--input", str(tmp_path / "nope.json")])

        assert code == 2
        assert data["error"]["message"].startswith("File not found")

    def test_not_a_list(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """A JSON object instead of a list is rejected."""
        _stdin(monkeypatch, '{"responses": []}')

        code, data = _run(capsys, ["score"])

        assert code == 2
        assert data["error"]["code"] == "INVALID_RESPONSES"

    def test_wrong_length(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Vectors that are not 108 long are rejected."""
        _stdin(monkeypatch, json.dumps([5] * 10))

        code, data = _run(capsys, ["score"])

        assert code == 2
        assert data["error"]["code"] == "INVALID_RESPONSES"


class TestIntegralScoreCommand:
    def test_score(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Consistent orange answers print an orange primary level."""
        _stdin(monkeypatch, json.dumps({str(question_id): 2 for question_id in range(1, 10)}))

        code, data = _run(capsys, ["integral", "score"])

        assert code == 0
        assert data["primary_level"]["key"] == "orange"

    @pytest.mark.parametrize("answers", [{"one": 2}, {"42": 0}, {"1": 9}])
    def test_invalid_answers(
        self,
        answers: dict[str, int],
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Bad keys, unknown questions and out-of-range options exit 2."""
        _stdin(monkeypatch, json.dumps(answers))

        code, data = _run(capsys, ["integral", "score"])

        assert code == 2
        assert data["error"]["code"] == "INVALID_ANSWERS"

    def test_not_an_object(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Integral answers must be a JSON object."""
        _stdin(monkeypatch, "[2, 2]")

        code, data = _run(capsys, ["integral", "score"])

        assert code == 2
        assert data["error"]["code"] == "INVALID_ANSWERS"


class TestConfigAndAuditCommands:
    """Read-only views of the process-wide store."""

    def test_config_show_empty(self, capsys: pytest.CaptureFixture[str]) -> None:
        """An empty store prints version 0."""
        code, data = _run(capsys, ["config", "show"])

        assert code == 0
        assert data == {"version": 0, "overrides": {}}

    def test_config_show(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Saved overrides print with their author and mapping weights."""
        get_config_store().save_scoring_overrides(
            ScoringOverrides.model_validate({"mbti": EI_TABLE}), "admin"
        )

        code, data = _run(capsys, ["config", "show"])

        assert code == 0
        assert data["version"] == 1
        assert data["overrides"] == {"mbti": EI_TABLE}
        assert data["updated_by"] == "admin"
        assert data["mapping_weights"]["mbti"]["EI"] == {"Communal Navigate": 0.5, "Dynamic": 0.5}

    def test_audit_log(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--limit keeps only the newest entry."""
        store = get_config_store()
        store.save_scoring_overrides(ScoringOverrides.model_validate({"mbti": EI_TABLE}), "admin")
        store.reset_scoring_overrides("admin")

        code, data = _run(capsys, ["audit", "log", "--limit", "1"])

        assert code == 0
        assert len(data) == 1
        assert data[0]["action"] == "delete"

    def test_snapshots_list(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Snapshots list newest first."""
        audit = get_config_store().audit
        audit.create_snapshot("admin", "first", ScoringOverrides(), [])
        audit.create_snapshot("admin", "second", ScoringOverrides(), [])

        code, data = _run(capsys, ["snapshots", "list"])

        assert code == 0
        assert [s["description"] for s in data] == ["second", "first"]


class TestCommandDispatch:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Running with no arguments prints usage and succeeds."""
        assert main([]) == 0
        assert "typescope" in capsys.readouterr().out

    def test_db_upgrade_without_database(self, capsys: pytest.CaptureFixture[str]) -> None:
        """db upgrade fails cleanly when no database is configured."""
        code, data = _run(capsys, ["db", "upgrade"])

        assert code == 1
        assert data["error"]["code"] == "INTERNAL_ERROR"
