"""Tests for scoring metadata and the per-request analysis pipeline."""

from datetime import datetime, timedelta, timezone

from app.services.metadata import (
    ScoringMetadata,
    analyze_rows,
    build_dataset_profile,
    compute_scores,
    prepare_metadata,
)


NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

PLAIN_ROWS = [
    {"id": "1", "name": "Alpha"},
    {"id": "2", "name": "Bravo"},
]

DATED_ROWS = [
    {"id": "1", "updated_at": (NOW - timedelta(hours=2)).isoformat()},
    {"id": "2", "updated_at": (NOW - timedelta(hours=4)).isoformat()},
]


class TestPrepareMetadata:

    def test_empty_dataset(self):
        assert prepare_metadata([]) == ScoringMetadata()

    def test_shape_without_date_column(self):
        meta = prepare_metadata(PLAIN_ROWS)
        assert meta.columns == ["id", "name"]
        assert meta.row_count == 2
        assert meta.column_count == 2
        assert meta.has_date_column is False
        assert meta.date_column_name is None

    def test_detects_date_column(self):
        meta = prepare_metadata(DATED_ROWS)
        assert meta.has_date_column is True
        assert meta.date_column_name == "updated_at"

    def test_summary_has_no_values(self):
        summary = prepare_metadata(PLAIN_ROWS).summary()
        assert summary == {"row_count": 2, "column_count": 2, "columns": ["id", "name"]}
        assert "Alpha" not in str(summary)


class TestBuildDatasetProfile:

    def test_rates_are_shares_of_all_rows(self):
        rows = [{"id": "1", "tag": "x"}, {"id": "2", "tag": ""}, {"id": "3", "tag": "x"}]
        profile = build_dataset_profile(rows, ["id", "tag"])
        assert profile["row_count"] == 3
        assert profile["columns"]["id"] == {"null_rate": 0.0, "unique_rate": 1.0}
        assert profile["columns"]["tag"] == {"null_rate": 0.333, "unique_rate": 0.333}

    def test_all_null_column(self):
        rows = [{"id": "1", "note": ""}, {"id": "2", "note": None}, {"id": "3"}]
        profile = build_dataset_profile(rows, ["id", "note"])
        assert profile["columns"]["note"] == {"null_rate": 1.0, "unique_rate": 0.0}

    def test_all_unique_column(self):
        rows = [{"id": str(i)} for i in range(7)]
        profile = build_dataset_profile(rows, ["id"])
        assert profile["columns"]["id"] == {"null_rate": 0.0, "unique_rate": 1.0}

    def test_rounded_to_three_decimals(self):
        rows = [{"v": "a"}, {"v": ""}, {"v": ""}, {"v": ""}, {"v": ""}, {"v": ""}, {"v": "b"}]
        rates = build_dataset_profile(rows, ["v"])["columns"]["v"]
        assert rates == {"null_rate": 0.714, "unique_rate": 0.286}

    def test_empty_dataset(self):
        assert build_dataset_profile([], []) == {"row_count": 0, "columns": {}}
        profile = build_dataset_profile([], ["id"])
        assert profile == {"row_count": 0, "columns": {"id": {"null_rate": 0.0, "unique_rate": 0.0}}}

    def test_profile_has_no_values(self):
        profile = build_dataset_profile(PLAIN_ROWS, ["id", "name"])
        assert "Alpha" not in str(profile)


class TestComputeScores:

    def test_timeliness_omitted_without_date_column(self):
        scores = compute_scores(PLAIN_ROWS, prepare_metadata(PLAIN_ROWS), now=NOW)
        assert "timeliness" not in scores
        assert scores == {"completeness": 100, "uniqueness": 100, "consistency": 100, "validity": 100}

    def test_timeliness_included_with_date_column(self):
        scores = compute_scores(DATED_ROWS, prepare_metadata(DATED_ROWS), now=NOW)
        assert scores["timeliness"] == 95


class TestAnalyzeRows:

    def test_without_date_column(self):
        result = analyze_rows(PLAIN_ROWS, now=NOW)
        assert result["DQS"] == 100
        assert "timeliness" not in result["dimensions"]
        assert result["metadata"] == {"row_count": 2, "column_count": 2, "columns": ["id", "name"]}

    def test_with_date_column(self):
        result = analyze_rows(DATED_ROWS, now=NOW)
        # every dimension is 100 except timeliness (95)
        assert result["dimensions"]["timeliness"] == 95
        assert result["DQS"] == 99

    def test_custom_weights(self):
        rows = [{"id": "1", "name": "x"}, {"id": "", "name": "x"}]
        result = analyze_rows(rows, weights={"validity": 1}, now=NOW)
        assert result["dimensions"]["validity"] == 50
        assert result["DQS"] == 50

    def test_empty_dataset(self):
        result = analyze_rows([], now=NOW)
        assert result["DQS"] == 0
        assert result["metadata"]["row_count"] == 0

    def test_includes_profile(self):
        result = analyze_rows(PLAIN_ROWS, now=NOW)
        assert result["profile"] == {
            "row_count": 2,
            "columns": {
                "id": {"null_rate": 0.0, "unique_rate": 1.0},
                "name": {"null_rate": 0.0, "unique_rate": 1.0},
            },
        }
