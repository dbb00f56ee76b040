"""Tests for bulk listing analysis."""
import json
import logging

import pytest

from listing_qa.analyzer import analyze
from listing_qa.bulk import (
    BulkItem,
    BulkResult,
    BulkStatus,
    analyze_batch,
    bulk_to_json,
    parse_rows,
)
from listing_qa.platforms import UnknownMarketplaceError


ROWS = [
    {"title": "Stainless Steel Water Bottle 32oz Insulated", "bullets": ["Keeps drinks cold for 24 hours."]},
    {"title": "Bamboo Cutting Board Set", "description": "Durable bamboo boards for everyday prep."},
    None,
]


def flaky_analyze(row, profile):
    if isinstance(row, dict) and row.get("explode"):
        raise RuntimeError("evaluator crashed")
    return analyze(row, profile)


# ── Parsing ─────────────────────────────────────────────────

class TestParseRows:
    def test_array(self):
        assert parse_rows('[{"title": "Hat"}, {"title": "Scarf"}]') == [
            {"title": "Hat"}, {"title": "Scarf"},
        ]

    def test_wrapped(self):
        assert len(parse_rows('{"listings": [{"title": "Hat"}]}')) == 1
        assert len(parse_rows('{"items": [{}, {}]}')) == 2

    def test_invalid_shape(self):
        with pytest.raises(ValueError):
            parse_rows('"just a string"')

    def test_invalid_json(self):
        with pytest.raises(ValueError):
            parse_rows("{not json")


# ── Processing ──────────────────────────────────────────────

class TestAnalyzeBatch:
    def test_all_rows_analyzed(self):
        result = analyze_batch(ROWS, "amazon")
        assert result.marketplace == "amazon"
        assert result.total_analyzed == 3
        assert result.total_failed == 0
        assert all(i.status == BulkStatus.DONE for i in result.items)
        assert [i.index for i in result.items] == [0, 1, 2]

    def test_failure_is_isolated(self, caplog):
        rows = [ROWS[0], {"explode": True}, ROWS[1]]
        with caplog.at_level(logging.ERROR, logger="listing_qa"):
            result = analyze_batch(rows, "ebay", analyze_fn=flaky_analyze)
        assert result.total_analyzed == 2
        assert result.total_failed == 1
        failed = result.items[1]
        assert failed.status == BulkStatus.FAILED
        assert failed.error == "evaluator crashed"
        assert failed.result is None
        assert result.items[2].status == BulkStatus.DONE
        assert "Row 1 failed" in caplog.text

    def test_error_without_message_uses_class_name(self):
        def boom(row, profile):
            raise KeyError()

        result = analyze_batch([{}], "amazon", analyze_fn=boom)
        assert result.items[0].error == "KeyError"

    def test_max_items(self):
        result = analyze_batch(ROWS * 2, "amazon", max_items=4)
        assert len(result.items) == 4
        assert result.total_skipped == 2

    def test_default_limit_from_config(self, monkeypatch):
        from listing_qa.config import config
        monkeypatch.setattr(config, "MAX_BATCH", 1)
        result = analyze_batch(ROWS, "amazon")
        assert len(result.items) == 1
        assert result.total_skipped == 2

    def test_default_marketplace_from_config(self, monkeypatch):
        from listing_qa.config import config
        monkeypatch.setattr(config, "DEFAULT_MARKETPLACE", "ebay")
        assert analyze_batch(ROWS[:1]).marketplace == "ebay"

    def test_progress_callback(self):
        calls = []
        analyze_batch(ROWS, "shopify", on_progress=lambda cur, total: calls.append((cur, total)))
        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_unknown_marketplace_fails_fast(self):
        with pytest.raises(UnknownMarketplaceError):
            analyze_batch(ROWS, "etsy")

    def test_empty(self):
        result = analyze_batch([], "amazon")
        assert result.items == []
        assert result.average_score == 0.0


# ── Results & export ────────────────────────────────────────

class TestBulkResult:
    def test_average_ignores_failures(self):
        result = analyze_batch([ROWS[0], {"explode": True}], "amazon", analyze_fn=flaky_analyze)
        assert result.average_score == float(result.items[0].result.score)

    def test_summary(self):
        result = BulkResult(marketplace="amazon", items=[BulkItem(index=0)], total_skipped=2)
        text = result.summary()
        assert "Bulk Analysis Complete" in text
        assert "Total rows: 3" in text

    def test_to_json(self):
        rows = [ROWS[0], {"explode": True}]
        result = analyze_batch(rows, "walmart", analyze_fn=flaky_analyze)
        data = json.loads(bulk_to_json(result))
        assert data["summary"]["analyzed"] == 1
        assert data["summary"]["failed"] == 1
        assert data["items"][0]["status"] == "done"
        assert data["items"][0]["result"]["marketplace"] == "walmart"
        assert data["items"][1]["result"] is None
        assert data["items"][1]["error"] == "evaluator crashed"
