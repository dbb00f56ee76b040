"""Tests for listing content coercion and result models."""
import json

from listing_qa.grading import Grade, ListingStatus
from listing_qa.models import (
    AnalysisResult,
    ListingContent,
    PhotoRecommendation,
    QAResult,
    ScoreBreakdown,
    ScoreResult,
    Severity,
    coerce_content,
    sort_by_severity,
)


# ── Coercion ────────────────────────────────────────────────

class TestFromDict:
    def test_non_mapping_is_empty_listing(self):
        assert ListingContent.from_dict("nope") == ListingContent()
        assert ListingContent.from_dict(None) == ListingContent()

    def test_text_fields(self):
        listing = ListingContent.from_dict({"title": 42, "description": "ok"})
        assert listing.title == ""
        assert listing.description == "ok"

    def test_list_items_keep_position(self):
        listing = ListingContent.from_dict({"bullets": ["one", None, 3, "four"]})
        assert listing.bullets == ["one", "", "", "four"]

    def test_non_list_becomes_empty(self):
        listing = ListingContent.from_dict({"bullets": "one bullet", "tags": {"a": 1}})
        assert listing.bullets == []
        assert listing.tags == []

    def test_map_fields(self):
        listing = ListingContent.from_dict({
            "item_specifics": {"Brand": "Sony", 7: "seven", "Model": None},
            "attributes": ["brand"],
        })
        assert listing.item_specifics == {"Brand": "Sony", "7": "seven", "Model": ""}
        assert listing.attributes == {}

    def test_unknown_keys_ignored(self):
        listing = ListingContent.from_dict({"title": "Hat", "price": 9.99})
        assert listing.title == "Hat"
        assert not hasattr(listing, "price")

    def test_photo_recommendations(self):
        listing = ListingContent.from_dict({"photo_recommendations": [
            {"slot": 1, "description": "Main", "tips": ["White background"]},
            {"slot": "2"},
            {"slot": True},
            "not a photo",
        ]})
        slots = [p.slot for p in listing.photo_recommendations]
        assert slots == [1, 0, 0]
        assert listing.photo_recommendations[0].tips == ["White background"]

    def test_a_plus_modules(self):
        listing = ListingContent.from_dict({"a_plus_modules": [{"type": "banner"}, "x"]})
        assert listing.a_plus_modules == [{"type": "banner"}]


class TestCoerceContent:
    def test_returns_new_instance(self):
        original = ListingContent(title="Hat", bullets=["Warm"])
        copy = coerce_content(original)
        assert copy == original
        assert copy is not original
        assert copy.bullets is not original.bullets

    def test_does_not_mutate(self):
        original = ListingContent(title=None, bullets=["ok", None])
        coerced = coerce_content(original)
        assert original.title is None
        assert original.bullets == ["ok", None]
        assert coerced.title == ""
        assert coerced.bullets == ["ok", ""]

    def test_dict_input_untouched(self):
        raw = {"title": "Hat", "bullets": ("a", "b")}
        coerce_content(raw)
        assert raw == {"title": "Hat", "bullets": ("a", "b")}

    def test_photo_objects(self):
        photo = PhotoRecommendation(slot=2, description="Side", tips=["Angle"])
        coerced = coerce_content(ListingContent(photo_recommendations=[photo]))
        assert coerced.photo_recommendations == [photo]
        assert coerced.photo_recommendations[0] is not photo

    def test_to_dict(self):
        data = ListingContent(title="Hat", photo_recommendations=[PhotoRecommendation(1)]).to_dict()
        assert data["title"] == "Hat"
        assert data["photo_recommendations"][0]["slot"] == 1
        json.dumps(data)


# ── Results ─────────────────────────────────────────────────

def qa(rule, severity):
    return QAResult("title", rule, severity, rule)


class TestSeverity:
    def test_rank(self):
        assert [s.rank for s in (Severity.ERROR, Severity.WARNING, Severity.INFO)] == [0, 1, 2]

    def test_sort_is_stable(self):
        results = [
            qa("i1", Severity.INFO),
            qa("w1", Severity.WARNING),
            qa("e1", Severity.ERROR),
            qa("w2", Severity.WARNING),
            qa("e2", Severity.ERROR),
        ]
        assert [r.rule for r in sort_by_severity(results)] == ["e1", "e2", "w1", "w2", "i1"]

    def test_qa_result_to_dict(self):
        assert qa("x", Severity.WARNING).to_dict()["severity"] == "warning"


class TestScoreResult:
    def make(self):
        return ScoreResult(score=72, grade=Grade.C, breakdown=[
            ScoreBreakdown("title_keyword_richness", 0.2, 90, 18.0),
            ScoreBreakdown("bullet_quality", 0.2, 40, 8.0),
            ScoreBreakdown("readability", 0.05, 40, 2.0),
            ScoreBreakdown("banned_terms_absence", 0.15, 100, 15.0),
        ])

    def test_status(self):
        assert self.make().status == ListingStatus.NEEDS_REVISION

    def test_criterion_lookup(self):
        result = self.make()
        assert result.criterion("readability").score == 40
        assert result.criterion("missing") is None

    def test_weakest_prefers_heavier_ties(self):
        weakest = self.make().weakest(2)
        assert [b.criterion for b in weakest] == ["bullet_quality", "readability"]

    def test_to_dict(self):
        data = self.make().to_dict()
        assert data["grade"] == "C"
        assert len(data["breakdown"]) == 4


class TestAnalysisResult:
    def make(self):
        return AnalysisResult(
            marketplace="amazon",
            validation=[
                qa("banned_term", Severity.ERROR),
                qa("all_caps", Severity.WARNING),
                qa("brand_prefix", Severity.INFO),
            ],
            score=64,
            grade=Grade.C,
            breakdown=[ScoreBreakdown("readability", 0.05, 80, 4.0, "Avg word length: 4.2 chars")],
        )

    def test_counts(self):
        result = self.make()
        assert not result.passed
        assert result.error_count == 1
        assert result.warning_count == 1
        assert result.status == ListingStatus.REGENERATE

    def test_summary(self):
        text = self.make().summary()
        assert "amazon: 64/100 (Grade: C)" in text
        assert "regenerate" in text
        assert "████████░░" in text
        assert "❌ [title]" in text

    def test_to_json_is_deterministic(self):
        result = self.make()
        assert result.to_json() == self.make().to_json()
        assert json.loads(result.to_json())["score"] == 64
