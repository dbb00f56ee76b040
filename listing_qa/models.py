"""Listing content and QA result models.

ListingContent arrives from outside the engine: AI generation output,
refinement passes and bulk-imported rows. None of it is trusted, so every
entry point normalizes it through ``coerce_content`` first:

- text fields that are not strings become ""
- list fields that are not lists become [] (non-string items become "")
- map fields that are not mappings become {} (non-string values become "")
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional

from listing_qa.grading import Grade, ListingStatus, get_listing_status


# ── Severity ─────────────────────────────────────────────────

class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.ERROR: 0, Severity.WARNING: 1, Severity.INFO: 2}


# ── Coercion helpers ─────────────────────────────────────────

def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _text_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [v if isinstance(v, str) else "" for v in value]


def _text_map(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(k): (v if isinstance(v, str) else "") for k, v in value.items()}


def _dict_list(value: Any) -> list[dict]:
    if not isinstance(value, (list, tuple)):
        return []
    return [dict(v) for v in value if isinstance(v, Mapping)]


# ── Listing content ──────────────────────────────────────────

@dataclass
class PhotoRecommendation:
    slot: int
    description: str = ""
    type: str = ""
    tips: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "PhotoRecommendation":
        if isinstance(data, PhotoRecommendation):
            data = data.to_dict()
        if not isinstance(data, Mapping):
            data = {}
        slot = data.get("slot")
        if isinstance(slot, bool) or not isinstance(slot, int):
            slot = 0
        return cls(
            slot=slot,
            description=_text(data.get("description")),
            type=_text(data.get("type")),
            tips=_text_list(data.get("tips")),
        )

    def to_dict(self) -> dict:
        return {
            "slot": self.slot,
            "description": self.description,
            "type": self.type,
            "tips": list(self.tips),
        }


_TEXT_FIELDS = (
    "title", "description", "backend_keywords", "seo_title", "meta_description",
    "subtitle", "shelf_description", "shipping_notes", "returns_notes", "category_hint",
)
_LIST_FIELDS = (
    "bullets", "tags", "collections", "condition_notes", "compliance_notes", "assumptions",
)
_MAP_FIELDS = ("item_specifics", "attributes")


@dataclass
class ListingContent:
    """One marketplace listing. Every field is optional."""
    title: str = ""
    bullets: list[str] = field(default_factory=list)
    description: str = ""
    backend_keywords: str = ""
    seo_title: str = ""
    meta_description: str = ""
    tags: list[str] = field(default_factory=list)
    subtitle: str = ""
    item_specifics: dict[str, str] = field(default_factory=dict)
    attributes: dict[str, str] = field(default_factory=dict)
    shelf_description: str = ""
    a_plus_modules: list[dict] = field(default_factory=list)
    collections: list[str] = field(default_factory=list)
    photo_recommendations: list[PhotoRecommendation] = field(default_factory=list)
    compliance_notes: list[str] = field(default_factory=list)
    assumptions: list[str] = field(default_factory=list)
    condition_notes: list[str] = field(default_factory=list)
    shipping_notes: str = ""
    returns_notes: str = ""
    category_hint: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "ListingContent":
        """Build a normalized listing from an untrusted mapping."""
        if not isinstance(data, Mapping):
            return cls()
        kwargs: dict[str, Any] = {}
        for name in _TEXT_FIELDS:
            kwargs[name] = _text(data.get(name))
        for name in _LIST_FIELDS:
            kwargs[name] = _text_list(data.get(name))
        for name in _MAP_FIELDS:
            kwargs[name] = _text_map(data.get(name))
        kwargs["a_plus_modules"] = _dict_list(data.get("a_plus_modules"))
        photos = data.get("photo_recommendations")
        kwargs["photo_recommendations"] = (
            [
                PhotoRecommendation.from_dict(p)
                for p in photos
                if isinstance(p, (Mapping, PhotoRecommendation))
            ]
            if isinstance(photos, (list, tuple))
            else []
        )
        return cls(**kwargs)

    def to_dict(self) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["bullets"] = list(self.bullets)
        data["photo_recommendations"] = [p.to_dict() for p in self.photo_recommendations]
        return data


def coerce_content(content: Any) -> ListingContent:
    """Return a normalized copy of ``content``; the input is never mutated."""
    if isinstance(content, ListingContent):
        raw = {f.name: getattr(content, f.name) for f in fields(content)}
        return ListingContent.from_dict(raw)
    return ListingContent.from_dict(content)


# ── QA results ───────────────────────────────────────────────

@dataclass(frozen=True)
class QAResult:
    field: str
    rule: str
    severity: Severity
    message: str

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "rule": self.rule,
            "severity": self.severity.value,
            "message": self.message,
        }


def sort_by_severity(results: list[QAResult]) -> list[QAResult]:
    """Stable sort: errors, then warnings, then info; ties keep discovery order."""
    return sorted(results, key=lambda r: r.severity.rank)


@dataclass
class ScoreBreakdown:
    criterion: str
    weight: float
    score: int
    weighted_score: float
    notes: str = ""

    def to_dict(self) -> dict:
        return {
            "criterion": self.criterion,
            "weight": self.weight,
            "score": self.score,
            "weighted_score": self.weighted_score,
            "notes": self.notes,
        }


@dataclass
class ScoreResult:
    score: int
    grade: Grade
    breakdown: list[ScoreBreakdown] = field(default_factory=list)

    @property
    def status(self) -> ListingStatus:
        return get_listing_status(self.score)

    def criterion(self, name: str) -> Optional[ScoreBreakdown]:
        return next((b for b in self.breakdown if b.criterion == name), None)

    def weakest(self, n: int = 3) -> list[ScoreBreakdown]:
        """Lowest-scoring criteria first; ties broken by larger weight."""
        return sorted(self.breakdown, key=lambda b: (b.score, -b.weight))[:n]

    def to_dict(self) -> dict:
        return {
            "score": self.score,
            "grade": self.grade.value,
            "breakdown": [b.to_dict() for b in self.breakdown],
        }


@dataclass
class AnalysisResult:
    marketplace: str
    validation: list[QAResult]
    score: int
    grade: Grade
    breakdown: list[ScoreBreakdown] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not any(r.severity == Severity.ERROR for r in self.validation)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.validation if r.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for r in self.validation if r.severity == Severity.WARNING)

    @property
    def status(self) -> ListingStatus:
        return get_listing_status(self.score)

    def summary(self) -> str:
        lines = [
            f"📊 {self.marketplace}: {self.score}/100 (Grade: {self.grade.value}) "
            f"| {self.status.value}",
            f"   Errors: {self.error_count} | Warnings: {self.warning_count}",
            "",
        ]
        for b in sorted(self.breakdown, key=lambda x: x.weighted_score, reverse=True):
            filled = b.score // 10
            bar = "█" * filled + "░" * (10 - filled)
            lines.append(f"  {b.criterion}: {b.score}/100 [{bar}] (×{b.weight})")
            if b.notes:
                lines.append(f"    → {b.notes}")
        if self.validation:
            lines.append("")
            for r in self.validation:
                icon = {"error": "❌", "warning": "⚠️", "info": "ℹ️"}[r.severity.value]
                lines.append(f"  {icon} [{r.field}] {r.message}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return {
            "marketplace": self.marketplace,
            "validation": [r.to_dict() for r in self.validation],
            "score": self.score,
            "grade": self.grade.value,
            "breakdown": [b.to_dict() for b in self.breakdown],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, sort_keys=True)
