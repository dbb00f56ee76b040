"""Weighted quality scoring engine for marketplace listings.

Each marketplace profile names the criteria it cares about and how much
each one weighs. Criteria are looked up in an open registry
(``CRITERION_FUNCTIONS``); several ids may share one evaluator, e.g.
``feature_quality`` is the Walmart-style name for ``bullet_quality``.

Every evaluator receives a ``CriterionContext`` and returns a 0-100 score
plus a short note. Weights whose criterion has no evaluator are skipped
and the remaining weights renormalized.
"""
from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from listing_qa.grading import get_grade
from listing_qa.models import (
    ListingContent,
    QAResult,
    ScoreBreakdown,
    ScoreResult,
    Severity,
    coerce_content,
)
from listing_qa.platforms import get_profile
from listing_qa.rules import FieldConstraint, MarketplaceProfile
from listing_qa.validator import has_html, is_all_caps, utf8_length

logger = logging.getLogger(__name__)

WEIGHT_EPSILON = 0.001
DEFAULT_TITLE_MAX = 200
DEFAULT_DESCRIPTION_MAX = 2000
DEFAULT_BACKEND_MAX_BYTES = 250

# An opener cannot span another "<", so each character is scanned by one start.
OPEN_TAG_RE = re.compile(r"<[a-z][^<>/]*>", re.IGNORECASE)
CLOSE_TAG_RE = re.compile(r"</[a-z]+>", re.IGNORECASE)


# ── Models ───────────────────────────────────────────────────

@dataclass
class CriterionContext:
    content: ListingContent
    marketplace: str
    issues: list[QAResult] = field(default_factory=list)
    fields: list[FieldConstraint] = field(default_factory=list)

    def constraint(self, *names: str) -> Optional[FieldConstraint]:
        return next((f for f in self.fields if f.name in names), None)


@dataclass
class CriterionScore:
    score: float  # 0-100
    notes: str = ""


CriterionFn = Callable[[CriterionContext], CriterionScore]


# ── Word lists ───────────────────────────────────────────────

FILLER_WORDS = {
    "a", "an", "the", "and", "or", "for", "of", "in", "on", "to", "by",
    "is", "it", "at", "as", "with", "&",
}

BENEFIT_WORDS = (
    "easy", "fast", "premium", "durable", "comfortable", "lightweight",
    "portable", "versatile", "powerful", "efficient", "reliable", "secure",
    "safe", "natural", "organic", "eco-friendly", "waterproof", "adjustable",
    "ergonomic", "compact", "professional", "heavy-duty", "long-lasting",
    "non-toxic", "hypoallergenic", "breathable", "stainless", "rechargeable",
    "cordless", "universal", "multi-purpose", "high-quality", "ultra",
    "perfect", "designed", "ideal", "enhanced", "improved", "advanced",
    "innovative", "seamless", "smooth", "sturdy", "flexible", "maximize",
    "protect", "save", "enjoy", "transform", "upgrade", "boost",
    "includes", "features", "delivers", "ensures", "provides", "supports",
)
BENEFIT_WORD_SET = frozenset(BENEFIT_WORDS)

POWER_PHRASES = (
    "you can", "you'll", "perfect for", "designed for", "ideal for",
    "great for", "works with", "compatible with", "comes with",
    "backed by", "guaranteed", "money back", "risk free", "free shipping",
    "easy to use", "ready to use", "no assembly", "plug and play",
    "all-in-one", "step by step",
)

CONDITION_WORDS = (
    "condition", "used", "like new", "refurbished", "wear", "scratch",
    "flaw", "open box", "new",
)

REQUIRED_ATTRIBUTES = ("brand", "condition")
OPTIONAL_ATTRIBUTES = ("material", "color", "size", "model")


# ── Helpers ──────────────────────────────────────────────────

def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def _clamp(value: float, lo: float = 0, hi: float = 100) -> float:
    return max(lo, min(hi, value))


def _is_filled(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    trimmed = value.strip()
    return bool(trimmed) and trimmed.lower() != "null"


def _main_text(content: ListingContent) -> str:
    """Title, bullets and description joined for language-level checks."""
    texts = []
    if content.title:
        texts.append(content.title)
    texts.extend(content.bullets)
    if content.description:
        texts.append(content.description)
    return " ".join(texts)


# ── Title ────────────────────────────────────────────────────

def score_title_keyword_richness(ctx: CriterionContext) -> CriterionScore:
    title = ctx.content.title.strip()
    if not title:
        return CriterionScore(0, "Title is empty")

    words = title.split()
    count = len(words)
    unique = {w.lower() for w in words if w.lower() not in FILLER_WORDS}

    if count <= 2:
        score = 15
    elif count <= 4:
        score = 40
    elif count <= 6:
        score = 65
    elif count <= 10:
        score = 90
    elif count <= 15:
        score = 100
    else:
        score = 85

    if len(unique) / max(count, 1) >= 0.7:
        score = min(100, score + 5)

    notes = f"{count} words, {len(unique)} unique keywords"
    if count > 15:
        notes += " (may be overstuffed)"
    return CriterionScore(score, notes)


def score_title_length_optimization(ctx: CriterionContext) -> CriterionScore:
    title = ctx.content.title.strip()
    if not title:
        return CriterionScore(0, "Title is empty")

    fc = ctx.constraint("title")
    max_len = (fc.max_length if fc else None) or DEFAULT_TITLE_MAX
    length = len(title)
    ratio = length / max_len

    if 0.6 <= ratio <= 0.9:
        score = 100
    elif 0.45 <= ratio < 0.6:
        score = 80
    elif 0.9 < ratio <= 1.0:
        score = 85
    elif 0.25 <= ratio < 0.45:
        score = 55
    elif ratio < 0.25:
        score = 25
    else:
        score = 40

    if ratio < 0.45:
        notes = f"{length}/{max_len} chars, title is underutilized, add more keywords"
    elif 0.6 <= ratio <= 0.9:
        notes = f"{length}/{max_len} chars, optimal length"
    elif ratio > 1.0:
        notes = f"{length}/{max_len} chars, exceeds maximum"
    else:
        notes = f"{length}/{max_len} chars"
    return CriterionScore(score, notes)


# ── Bullets ──────────────────────────────────────────────────

def _score_bullet(bullet: str) -> int:
    length = len(bullet)
    if length >= 150:
        score = 35
    elif length >= 100:
        score = 30
    elif length >= 50:
        score = 20
    elif length >= 20:
        score = 10
    else:
        score = 2

    words = bullet.split()
    first = re.sub(r"[^a-z]", "", words[0].lower()) if words else ""
    if first in BENEFIT_WORD_SET:
        score += 25
    elif any(re.sub(r"[^a-z-]", "", w.lower()) in BENEFIT_WORD_SET for w in words[:5]):
        score += 15

    if re.search(r"[.!)]$", bullet):
        score += 10
    if re.search(r"[0-9]", bullet):
        score += 15
    if len({w.lower() for w in words}) >= 8:
        score += 15
    return min(100, score)


def score_bullet_array(bullets: list[str]) -> CriterionScore:
    if not bullets:
        return CriterionScore(0, "No bullets/features provided")

    issues = []
    total = 0
    for i, raw in enumerate(bullets, 1):
        bullet = raw.strip()
        if len(bullet) < 20:
            issues.append(f"Bullet {i} too short ({len(bullet)} chars)")
        total += _score_bullet(bullet)

    count = len(bullets)
    avg = round_half_up(total / count)
    final = avg
    if count < 3:
        final = round_half_up(avg * 0.7)
        issues.append(f"Only {count} bullets, aim for 5+")
    elif count < 5:
        final = round_half_up(avg * 0.85)

    notes = f"{count} bullets, avg quality {avg}/100"
    if issues:
        notes += f". Issues: {'; '.join(issues)}"
    return CriterionScore(_clamp(final), notes)


def score_bullet_quality(ctx: CriterionContext) -> CriterionScore:
    return score_bullet_array(ctx.content.bullets)


# ── Keywords / SEO fields ────────────────────────────────────

def _score_amazon_backend(ctx: CriterionContext) -> CriterionScore:
    fc = ctx.constraint("backend_keywords")
    max_bytes = (fc.max_bytes if fc else None) or DEFAULT_BACKEND_MAX_BYTES
    keywords = ctx.content.backend_keywords.strip()
    if not keywords:
        return CriterionScore(0, "Backend keywords empty, wasting indexing opportunity")

    used = utf8_length(keywords)
    pct = round_half_up(used / max_bytes * 100)
    if pct >= 90:
        score = 100
    elif pct >= 70:
        score = 85
    elif pct >= 50:
        score = 65
    elif pct >= 25:
        score = 40
    else:
        score = 20

    has_commas = "," in keywords
    if has_commas:
        score = max(0, score - 10)

    words = keywords.lower().split()
    if len(set(words)) < len(words) * 0.8:
        score = max(0, score - 15)

    notes = f"{used}/{max_bytes} bytes used ({pct}%)"
    if has_commas:
        notes += ", avoid commas"
    return CriterionScore(score, notes)


def _score_storefront_seo_fields(content: ListingContent) -> CriterionScore:
    score = 0
    parts = []
    if content.seo_title.strip():
        score += 35
        parts.append("SEO title present")
    else:
        parts.append("Missing SEO title")
    if content.meta_description.strip():
        score += 35
        parts.append("meta description present")
    else:
        parts.append("missing meta description")
    if content.tags:
        score += min(30, len(content.tags) * 5)
        parts.append(f"{len(content.tags)} tags")
    else:
        parts.append("no tags")
    return CriterionScore(min(100, score), ", ".join(parts))


def _score_structured_metadata(content: ListingContent) -> CriterionScore:
    score = 50
    parts = []
    if content.item_specifics:
        count = len(content.item_specifics)
        score += min(30, count * 5)
        parts.append(f"{count} item specifics")
    if content.attributes:
        count = len(content.attributes)
        score += min(30, count * 5)
        parts.append(f"{count} attributes")
    if not parts:
        return CriterionScore(30, "No structured metadata provided")
    return CriterionScore(min(100, score), ", ".join(parts))


def score_backend_keywords_utilization(ctx: CriterionContext) -> CriterionScore:
    if ctx.marketplace == "amazon":
        return _score_amazon_backend(ctx)
    if ctx.marketplace == "shopify":
        return _score_storefront_seo_fields(ctx.content)
    return _score_structured_metadata(ctx.content)


def score_seo_optimization(ctx: CriterionContext) -> CriterionScore:
    if ctx.marketplace != "shopify":
        return CriterionScore(50, "SEO optimization criterion not primary for this marketplace")

    content = ctx.content
    score = 0
    parts = []

    seo_title = content.seo_title.strip()
    if seo_title:
        n = len(seo_title)
        if 50 <= n <= 60:
            score += 35
            parts.append(f"SEO title optimal ({n} chars)")
        elif 30 <= n <= 70:
            score += 25
            parts.append(f"SEO title acceptable ({n} chars)")
        else:
            score += 10
            parts.append(f"SEO title suboptimal ({n} chars)")
    else:
        parts.append("Missing SEO title")

    meta = content.meta_description.strip()
    if meta:
        n = len(meta)
        if 120 <= n <= 160:
            score += 35
            parts.append(f"meta desc optimal ({n} chars)")
        elif 80 <= n <= 200:
            score += 25
            parts.append(f"meta desc acceptable ({n} chars)")
        else:
            score += 10
            parts.append(f"meta desc suboptimal ({n} chars)")
    else:
        parts.append("missing meta description")

    if content.tags:
        n = len(content.tags)
        score += 30 if n >= 10 else 20 if n >= 5 else 10
        parts.append(f"{n} tag(s)")
    else:
        parts.append("no tags")

    return CriterionScore(min(100, score), ", ".join(parts))


# ── Compliance ───────────────────────────────────────────────

def score_banned_terms_absence(ctx: CriterionContext) -> CriterionScore:
    hits = [r for r in ctx.issues if r.rule == "banned_term"]
    if not hits:
        return CriterionScore(100, "No banned terms detected")

    errors = sum(1 for r in hits if r.severity == Severity.ERROR)
    warnings = sum(1 for r in hits if r.severity == Severity.WARNING)
    score = 100 - 25 * errors - 10 * warnings

    notes = f"{len(hits)} banned term(s) found"
    if errors:
        notes += f", {errors} error(s)"
    if warnings:
        notes += f", {warnings} warning(s)"
    return CriterionScore(max(0, score), notes)


# ── Description ──────────────────────────────────────────────

def score_description_completeness(ctx: CriterionContext) -> CriterionScore:
    desc = ctx.content.description.strip()
    if not desc:
        return CriterionScore(0, "Description is empty")

    fc = ctx.constraint("description", "shelf_description")
    max_len = (fc.max_length if fc else None) or DEFAULT_DESCRIPTION_MAX
    ratio = len(desc) / max_len
    issues = []

    if 0.3 <= ratio <= 0.8:
        score = 90
    elif 0.15 <= ratio < 0.3:
        score = 60
    elif 0.8 < ratio <= 1.0:
        score = 80
    elif ratio < 0.15:
        score = 30
        issues.append("very short")
    else:
        score = 70

    paragraphs = [p for p in re.split(r"\n\s*\n", desc) if p.strip()]
    if len(paragraphs) >= 2:
        score = min(100, score + 5)
    else:
        issues.append("single block of text")

    has_formatting = (
        has_html(desc)
        or re.search(r"^[-*•]\s", desc, re.MULTILINE)
        or re.search(r"^\d+\.\s", desc, re.MULTILINE)
    )
    if has_formatting:
        score = min(100, score + 5)

    desc_lower = desc.lower()
    benefit_hits = sum(1 for w in BENEFIT_WORDS if w in desc_lower)
    if benefit_hits >= 5:
        score = min(100, score + 5)
    elif benefit_hits >= 2:
        score = min(100, score + 3)

    notes = f"{len(desc)}/{max_len} chars ({round_half_up(ratio * 100)}%)"
    if issues:
        notes += f". {', '.join(issues)}"
    return CriterionScore(_clamp(score), notes)


# ── Language ─────────────────────────────────────────────────

def score_readability(ctx: CriterionContext) -> CriterionScore:
    text = _main_text(ctx.content)
    if not text.strip():
        return CriterionScore(0, "No text content to analyze")

    words = text.split()
    avg_word = sum(len(re.sub(r"[^a-zA-Z]", "", w)) for w in words) / len(words)

    if avg_word <= 5:
        score = 95
    elif avg_word <= 6:
        score = 90
    elif avg_word <= 7:
        score = 80
    elif avg_word <= 8:
        score = 65
    else:
        score = 45

    sentences = [s for s in re.split(r"[.!?]+", text) if s.strip()]
    if len(sentences) >= 3:
        lengths = [len(s.split()) for s in sentences]
        mean = sum(lengths) / len(lengths)
        std_dev = math.sqrt(sum((n - mean) ** 2 for n in lengths) / len(lengths))
        if std_dev >= 5:
            score = min(100, score + 5)
        elif std_dev < 2:
            score = max(0, score - 10)

    if len(text) > 500 and "\n" not in text:
        score = max(0, score - 10)

    return CriterionScore(
        _clamp(score),
        f"Avg word length: {avg_word:.1f} chars, {len(sentences)} sentence(s)",
    )


def score_title_quality_readability(ctx: CriterionContext) -> CriterionScore:
    length = score_title_length_optimization(ctx)
    read = score_readability(ctx)
    return CriterionScore(
        round_half_up((length.score + read.score) / 2),
        f"Length: {length.notes}; Readability: {read.notes}",
    )


def score_formatting_compliance(ctx: CriterionContext) -> CriterionScore:
    content = ctx.content
    score = 100
    issues = []

    title = content.title.strip()
    if title:
        if is_all_caps(title):
            score -= 25
            issues.append("title is ALL CAPS")
        if re.search(r"[!?]{2,}", title):
            score -= 15
            issues.append("excessive punctuation in title")
        if re.search(r"\s{2,}", title):
            score -= 5
            issues.append("double spaces in title")

    if content.bullets:
        caps = 0
        for bullet in content.bullets:
            letters = re.sub(r"[^a-zA-Z]", "", bullet)
            if len(letters) > 5 and letters == letters.upper():
                caps += 1
        if caps:
            score -= caps * 10
            issues.append(f"{caps} bullet(s) in ALL CAPS")

        lowercase_starts = sum(
            1 for b in content.bullets if re.match(r"[a-z]", b.strip())
        )
        if 0 < lowercase_starts < len(content.bullets):
            score -= 5
            issues.append("inconsistent bullet capitalization")

    if content.description:
        opened = len(OPEN_TAG_RE.findall(content.description))
        closed = len(CLOSE_TAG_RE.findall(content.description))
        if opened > 0 and abs(opened - closed) > 1:
            score -= 10
            issues.append("possible unclosed HTML tags in description")

    return CriterionScore(max(0, score), ", ".join(issues) or "Formatting looks clean")


def score_benefit_driven_language(ctx: CriterionContext) -> CriterionScore:
    text = _main_text(ctx.content).lower()
    if not text.split():
        return CriterionScore(0, "No text to analyze")

    benefits = {w for w in BENEFIT_WORDS if w in text}
    phrases = sum(1 for p in POWER_PHRASES if p in text)
    density = len(benefits) + phrases

    if density >= 15:
        score = 100
    elif density >= 10:
        score = 90
    elif density >= 7:
        score = 75
    elif density >= 4:
        score = 60
    elif density >= 2:
        score = 40
    else:
        score = 15

    return CriterionScore(
        score, f"{len(benefits)} benefit word(s), {phrases} power phrase(s) detected"
    )


# ── Structured metadata ──────────────────────────────────────

def score_item_specifics_completeness(ctx: CriterionContext) -> CriterionScore:
    specifics = ctx.content.item_specifics
    if not specifics:
        return CriterionScore(0, "No item specifics provided")

    total = len(specifics)
    filled = sum(1 for v in specifics.values() if _is_filled(v))
    rate = filled / total

    if total >= 10 and rate >= 0.9:
        score = 100
    elif total >= 7 and rate >= 0.8:
        score = 85
    elif total >= 5 and rate >= 0.7:
        score = 70
    elif total >= 3:
        score = 50
    else:
        score = 25

    return CriterionScore(
        score, f"{filled}/{total} item specifics filled ({round_half_up(rate * 100)}%)"
    )


def score_attribute_completeness(ctx: CriterionContext) -> CriterionScore:
    attrs = ctx.content.attributes
    filled = sum(1 for v in attrs.values() if _is_filled(v))
    has_required = all(_is_filled(attrs.get(k)) for k in REQUIRED_ATTRIBUTES)
    score = (60 if has_required else 20) + min(40, filled * 8)
    expected = len(REQUIRED_ATTRIBUTES) + len(OPTIONAL_ATTRIBUTES)
    return CriterionScore(min(100, score), f"{filled} of {expected} attributes filled")


def score_condition_disclosure(ctx: CriterionContext) -> CriterionScore:
    has_notes = bool(ctx.content.condition_notes)
    desc = ctx.content.description.lower()
    found = sum(1 for w in CONDITION_WORDS if w in desc)
    score = (70 if has_notes else 30) + min(30, found * 6)
    prefix = "Condition notes present" if has_notes else "No condition_notes"
    return CriterionScore(
        min(100, score), f"{prefix}; {found} condition term(s) in description"
    )


def score_listing_completeness(ctx: CriterionContext) -> CriterionScore:
    content = ctx.content
    score = 0
    parts = []
    if content.shipping_notes.strip():
        score += 35
        parts.append("shipping notes")
    if content.returns_notes.strip():
        score += 35
        parts.append("returns notes")
    if content.category_hint.strip():
        score += 30
        parts.append("category hint")
    if not parts:
        return CriterionScore(0, "Missing shipping/returns/category")
    return CriterionScore(score, ", ".join(parts) + " present")


# ── Registry ─────────────────────────────────────────────────

CRITERION_FUNCTIONS: dict[str, CriterionFn] = {
    "title_keyword_richness": score_title_keyword_richness,
    "bullet_quality": score_bullet_quality,
    "feature_quality": score_bullet_quality,
    "backend_keywords_utilization": score_backend_keywords_utilization,
    "banned_terms_absence": score_banned_terms_absence,
    "compliance_safety": score_banned_terms_absence,
    "description_completeness": score_description_completeness,
    "title_length_optimization": score_title_length_optimization,
    "title_quality_readability": score_title_quality_readability,
    "readability": score_readability,
    "formatting_compliance": score_formatting_compliance,
    "benefit_driven_language": score_benefit_driven_language,
    "seo_optimization": score_seo_optimization,
    "item_specifics_completeness": score_item_specifics_completeness,
    "attribute_completeness": score_attribute_completeness,
    "condition_disclosure": score_condition_disclosure,
    "listing_completeness": score_listing_completeness,
}


def register_criterion(criterion: str, fn: CriterionFn) -> None:
    """Add or replace an evaluator; several ids may share one function."""
    CRITERION_FUNCTIONS[criterion] = fn


# ── Combination ──────────────────────────────────────────────

def _coerce_issue(issue: Any) -> Optional[QAResult]:
    if isinstance(issue, QAResult):
        return issue
    if not isinstance(issue, Mapping):
        return None
    try:
        severity = Severity(issue.get("severity"))
    except ValueError:
        return None
    return QAResult(
        field=str(issue.get("field", "")),
        rule=str(issue.get("rule", "")),
        severity=severity,
        message=str(issue.get("message", "")),
    )


def _coerce_issues(issues: Any) -> list[QAResult]:
    if not isinstance(issues, (list, tuple)):
        return []
    return [r for r in map(_coerce_issue, issues) if r is not None]


def score(
    content: Any,
    marketplace: Union[str, MarketplaceProfile],
    issues: Optional[list] = None,
) -> ScoreResult:
    """Score a listing against a marketplace's weighted criteria.

    Args:
        content: ListingContent or a raw mapping (coerced, never mutated).
        marketplace: Marketplace id or a MarketplaceProfile.
        issues: Validation results for the same listing; plain dicts
            (e.g. reloaded from storage) are accepted.

    Returns:
        ScoreResult with the 0-100 score, grade and per-criterion breakdown.
    """
    profile = get_profile(marketplace)
    ctx = CriterionContext(
        content=coerce_content(content),
        marketplace=profile.id,
        issues=_coerce_issues(issues),
        fields=list(profile.fields),
    )

    breakdown = []
    total_weighted = 0.0
    total_weight = 0.0

    for sw in profile.scoring_weights:
        fn = CRITERION_FUNCTIONS.get(sw.criterion)
        if fn is None:
            logger.debug("No evaluator for criterion %r (%s), skipping", sw.criterion, profile.id)
            continue

        result = fn(ctx)
        clamped = int(_clamp(round_half_up(result.score)))
        weighted = sw.weight * clamped
        breakdown.append(ScoreBreakdown(
            criterion=sw.criterion,
            weight=sw.weight,
            score=clamped,
            weighted_score=round(weighted, 2),
            notes=result.notes,
        ))
        total_weighted += weighted
        total_weight += sw.weight

    if total_weight > 0 and abs(total_weight - 1.0) > WEIGHT_EPSILON:
        final = round_half_up(total_weighted / total_weight)
    else:
        final = round_half_up(total_weighted)
    final = int(_clamp(final))

    return ScoreResult(score=final, grade=get_grade(final), breakdown=breakdown)
