"""Unit tests for the command-line entry point."""

import json
from pathlib import Path

import pytest

from itinerary_optimizer.cli import main


def _write_request(tmp_path: Path, payload: dict) -> str:
    path = tmp_path / "request.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


REQUEST = {
    "places": [
        {
            "place_id": "hawa",
            "name": "Hawa Mahal",
            "category": "palace",
            "coordinates": {"lat": 26.9239, "lng": 75.8267},
            "visit_duration_minutes": 45,
            "rating": 4.4,
            "entry_fee": {"amount": 50},
        },
        {
            "place_id": "amber",
            "name": "Amber Fort",
            "category": "fort",
            "coordinates": {"lat": 26.9855, "lng": 75.8513},
            "visit_duration_minutes": 120,
            "rating": 4.6,
            "entry_fee": {"amount": 100, "by_visitor_class": {"foreign": 500}},
        },
    ],
    "constraints": {
        "start_location": {"lat": 26.9124, "lng": 75.7873},
        "max_duration_minutes": 480,
        "max_budget": 1000,
    },
}


class TestMain:
    """Tests for cli.main."""

    def test_prints_result(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([_write_request(tmp_path, REQUEST)]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["algorithm_used"] == "advancedGreedy"
        assert {place["place_id"] for place in output["route"]} == {"hawa", "amber"}
        assert output["metrics"]["total_cost"] == 150

    def test_genetic_with_seed(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([_write_request(tmp_path, REQUEST), "--algorithm", "genetic", "--seed", "3"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["algorithm_used"] == "genetic"
        assert output["diagnostics"]["generations_run"] >= 1

    def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([str(tmp_path / "missing.json")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_invalid_json(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert main([str(path)]) == 1
        assert "Invalid JSON" in capsys.readouterr().err

    def test_empty_places(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([_write_request(tmp_path, {"places": []})]) == 2
        assert "At least one place" in capsys.readouterr().err

    def test_invalid_place(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        bad = {"places": [{"place_id": "x", "name": "X", "coordinates": {"lat": 95, "lng": 0},
                           "visit_duration_minutes": 30}]}
        assert main([_write_request(tmp_path, bad)]) == 2
        assert "Invalid request" in capsys.readouterr().err
