"""Tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest

from reviewpulse.cli import build_parser, main

ROWS = [
    {"id": "a", "stars": 5, "sentiment": "positive", "publishedAtDate": "2024-01-10T09:00:00Z",
     "businessName": "Cafe Uno"},
    {"id": "b", "stars": 5, "sentiment": "positive", "publishedAtDate": "2024-02-10T09:00:00Z",
     "businessName": "Cafe Uno"},
    {"id": "c", "stars": 1, "sentiment": "negative", "publishedAtDate": "2024-03-10T18:00:00Z",
     "businessName": "Cafe Uno"},
    {"id": "d", "stars": 2, "sentiment": "negative", "publishedAtDate": "2024-03-20T18:00:00Z",
     "businessName": "Cafe Uno"},
]


@pytest.fixture
def reviews_file(tmp_path):
    path = tmp_path / "reviews.json"
    path.write_text(json.dumps({"reviews": ROWS}), encoding="utf-8")
    return str(path)


def test_parser_rejects_bad_dates():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["analyze", "--start", "yesterday"])


def test_no_command_prints_help(capsys):
    main([])
    assert "usage" in capsys.readouterr().out.lower()


def test_analyze_from_file(reviews_file, tmp_path, capsys):
    out = tmp_path / "analysis.json"
    main(["analyze", "--file", reviews_file, "--business", "Cafe Uno",
          "--today", "2024-06-01", "--out", str(out)])

    printed = capsys.readouterr().out
    assert "Reviews: 4" in printed
    assert "Rating has declined" in printed

    exported = json.loads(out.read_text(encoding="utf-8"))
    assert exported["business"] == "Cafe Uno"
    assert exported["analysis"]["risks"][0]["kind"] == "rating_decline"


def test_compare_custom_periods(reviews_file, capsys):
    main(["compare", "--file", reviews_file,
          "--current-start", "2024-03-01", "--current-end", "2024-03-31",
          "--previous-start", "2024-01-01", "--previous-end", "2024-02-29"])

    printed = capsys.readouterr().out
    assert "Custom Comparison" in printed
    assert "average_rating: 1.50 vs 5.00" in printed


def test_recommend_without_api_key(reviews_file, tmp_path, capsys):
    with patch("reviewpulse.services.llm.settings") as mock_settings, \
            patch("reviewpulse.cli.settings.cache_dir", str(tmp_path / "cache")):
        mock_settings.openai_api_key = ""
        main(["recommend", "--file", reviews_file])

    assert "source: fallback" in capsys.readouterr().out


def test_store_errors_exit_nonzero(capsys):
    with patch("reviewpulse.services.review_store.settings.review_store_url", ""):
        with pytest.raises(SystemExit) as exc_info:
            main(["fetch"])

    assert exc_info.value.code == 1
    assert "REVIEW_STORE_ERROR" in capsys.readouterr().err


def test_export_pretty(tmp_path, capsys):
    path = tmp_path / "data.json"
    path.write_text('{"a": 1}', encoding="utf-8")
    main(["export", "--in", str(path), "--pretty"])
    assert '"a": 1' in capsys.readouterr().out


if __name__ == "__main__":
    pytest.main([__file__])
