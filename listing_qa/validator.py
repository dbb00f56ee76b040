"""Marketplace listing validator.

Validates a listing against its marketplace rule profile:
- Field constraints (required, character limits, byte limits, markup)
- Banned terms
- Structural smell tests (short bullets, ALL CAPS titles, brand prefixes)
- Photo recommendation and structured metadata hygiene

Never raises on malformed listing content; results are sorted
error → warning → info, keeping discovery order within a severity.
"""
import json
import logging
import re
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

from listing_qa.config import config
from listing_qa.models import (
    ListingContent,
    QAResult,
    Severity,
    coerce_content,
    sort_by_severity,
)
from listing_qa.platforms import UnknownMarketplaceError, get_profile
from listing_qa.rules import BannedTermRule, FieldConstraint, MarketplaceProfile

logger = logging.getLogger(__name__)

FieldValue = Union[str, list[str], None]

HTML_TAG_RE = re.compile(r"</?[a-z][^>]*>", re.IGNORECASE)
BRAND_PREFIX_RE = re.compile(r"^[A-Z][a-zA-Z0-9]{0,20}\s*[-|–—]\s*")

MIN_BULLET_CHARS = 20
MIN_DESCRIPTION_CHARS = 100
AMAZON_BULLET_COUNT = 5
AMAZON_BULLET_MAX = 500
MAX_NUMBERED_SLOTS = 10

SCANNABLE_FIELDS = (
    "title",
    "bullets",
    "description",
    "backend_keywords",
    "seo_title",
    "meta_description",
    "subtitle",
    "shelf_description",
)


# ── Field lookup ─────────────────────────────────────────────

def _metadata_json(value: dict) -> Optional[str]:
    if not value:
        return None
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _nth_bullet(index: int) -> Callable[[ListingContent], Optional[str]]:
    def accessor(content: ListingContent) -> Optional[str]:
        if index < len(content.bullets):
            return content.bullets[index]
        return None
    return accessor


FIELD_ACCESSORS: dict[str, Callable[[ListingContent], FieldValue]] = {
    "title": lambda c: c.title,
    "bullets": lambda c: c.bullets,
    "features": lambda c: c.bullets,
    "description": lambda c: c.description,
    "backend_keywords": lambda c: c.backend_keywords,
    "seo_title": lambda c: c.seo_title,
    "meta_description": lambda c: c.meta_description,
    "tags": lambda c: c.tags,
    "subtitle": lambda c: c.subtitle,
    "shelf_description": lambda c: c.shelf_description,
    "item_specifics": lambda c: _metadata_json(c.item_specifics),
    "attributes": lambda c: _metadata_json(c.attributes),
    "condition_notes": lambda c: c.condition_notes,
    "compliance_notes": lambda c: c.compliance_notes,
    "shipping_notes": lambda c: c.shipping_notes,
    "returns_notes": lambda c: c.returns_notes,
    "category_hint": lambda c: c.category_hint,
    "collections": lambda c: c.collections,
}
for _n in range(1, MAX_NUMBERED_SLOTS + 1):
    FIELD_ACCESSORS[f"bullet_{_n}"] = _nth_bullet(_n - 1)
    FIELD_ACCESSORS[f"feature_{_n}"] = _nth_bullet(_n - 1)


def get_field_value(content: ListingContent, name: str) -> FieldValue:
    """Resolve a rule-profile field name; unknown names resolve to None."""
    accessor = FIELD_ACCESSORS.get(name)
    if accessor is None:
        return None
    return accessor(content)


def get_field_text(content: ListingContent, name: str) -> str:
    value = get_field_value(content, name)
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(value)
    return value


def _is_empty(value: FieldValue) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return len(value) == 0


def is_all_caps(text: str) -> bool:
    """True when every ASCII letter is uppercase (and there is at least one)."""
    letters = re.sub(r"[^a-zA-Z]", "", text)
    return bool(letters) and letters == letters.upper()


def has_html(text: str) -> bool:
    """True when ``text`` contains a markup tag.

    The search stops at the last ``>``: every tag opener before it can
    complete, so unterminated ``<a<a<a...`` runs cost one linear scan.
    """
    end = text.rfind(">")
    return end != -1 and HTML_TAG_RE.search(text, 0, end + 1) is not None


def utf8_length(text: str) -> int:
    """UTF-8 byte size; a lone surrogate counts as 3 bytes."""
    return len(text.encode("utf-8", "surrogatepass"))


def _label(name: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group().upper(), name.replace("_", " "))


# ── Checks ───────────────────────────────────────────────────

def _check_field_constraints(
    content: ListingContent,
    constraints: tuple[FieldConstraint, ...],
) -> list[QAResult]:
    results = []
    for fc in constraints:
        value = get_field_value(content, fc.name)

        if fc.required and _is_empty(value):
            results.append(QAResult(
                fc.name, "required_field", Severity.ERROR,
                f"{_label(fc.name)} is required but missing or empty",
            ))
            continue

        text = get_field_text(content, fc.name)
        if not text:
            continue

        if fc.max_length is not None and len(text) > fc.max_length:
            results.append(QAResult(
                fc.name, "max_length", Severity.ERROR,
                f"{_label(fc.name)} is {len(text)} chars, max is {fc.max_length}",
            ))

        if fc.max_bytes is not None:
            size = utf8_length(text)
            if size > fc.max_bytes:
                results.append(QAResult(
                    fc.name, "max_bytes", Severity.ERROR,
                    f"{_label(fc.name)} is {size} bytes, max is {fc.max_bytes} bytes",
                ))

        if not fc.html_allowed and has_html(text):
            results.append(QAResult(
                fc.name, "no_html", Severity.WARNING,
                f"{_label(fc.name)} contains HTML tags but HTML is not allowed for this field",
            ))
    return results


def _check_banned_terms(
    content: ListingContent,
    rules: tuple[BannedTermRule, ...],
) -> list[QAResult]:
    results = []
    texts = [(name, get_field_text(content, name)) for name in SCANNABLE_FIELDS]
    for rule in rules:
        for name, text in texts:
            if rule.matches(text):
                results.append(QAResult(
                    name, "banned_term", rule.severity,
                    f"Banned term '{rule.term}' found in {name}: {rule.reason}",
                ))
    return results


def _check_amazon_bullets(content: ListingContent) -> list[QAResult]:
    results = []
    bullets = content.bullets
    if len(bullets) != AMAZON_BULLET_COUNT:
        results.append(QAResult(
            "bullets", "amazon_bullet_count", Severity.ERROR,
            f"Amazon requires exactly {AMAZON_BULLET_COUNT} bullets; found {len(bullets)}",
        ))
    for i, raw in enumerate(bullets, 1):
        bullet = raw.strip()
        if not bullet:
            results.append(QAResult(
                "bullets", "amazon_bullet_empty", Severity.ERROR,
                f"Amazon bullet {i} must be non-empty",
            ))
        elif len(bullet) > AMAZON_BULLET_MAX:
            results.append(QAResult(
                "bullets", "amazon_bullet_length", Severity.ERROR,
                f"Amazon bullet {i} is {len(bullet)} chars; max is {AMAZON_BULLET_MAX}",
            ))
    return results


def _check_structure(
    content: ListingContent,
    profile: MarketplaceProfile,
) -> list[QAResult]:
    results = []

    if profile.id == "amazon":
        results.extend(_check_amazon_bullets(content))

    for i, raw in enumerate(content.bullets, 1):
        bullet = raw.strip()
        if 0 < len(bullet) < MIN_BULLET_CHARS:
            results.append(QAResult(
                "bullets", "bullet_too_short", Severity.WARNING,
                f"Bullet {i} is only {len(bullet)} chars; bullets should be "
                f"substantive (at least {MIN_BULLET_CHARS} chars)",
            ))

    if content.title and is_all_caps(content.title):
        results.append(QAResult(
            "title", "all_caps", Severity.WARNING,
            "Title is in ALL CAPS; use title case or sentence case for better readability",
        ))

    if content.title and BRAND_PREFIX_RE.match(content.title):
        results.append(QAResult(
            "title", "brand_prefix", Severity.INFO,
            "Title appears to start with a brand name prefix; "
            "consider integrating the brand name naturally",
        ))

    desc_field = next(
        (f for f in profile.fields if f.name in ("description", "shelf_description")),
        None,
    )
    if desc_field is not None and desc_field.required:
        text = get_field_text(content, desc_field.name)
        if 0 < len(text) < MIN_DESCRIPTION_CHARS:
            results.append(QAResult(
                desc_field.name, "description_too_short", Severity.WARNING,
                f"{_label(desc_field.name)} is only {len(text)} chars; aim for at "
                f"least {MIN_DESCRIPTION_CHARS} chars for a complete description",
            ))
    return results


def _check_photo_recommendations(content: ListingContent) -> list[QAResult]:
    results = []
    seen = set()
    for photo in content.photo_recommendations:
        if photo.slot in seen:
            results.append(QAResult(
                "photo_recommendations", "duplicate_slot", Severity.WARNING,
                f"Duplicate photo slot {photo.slot}; each slot should be unique",
            ))
        seen.add(photo.slot)
        if not photo.description.strip():
            results.append(QAResult(
                "photo_recommendations", "missing_photo_description", Severity.INFO,
                f"Photo slot {photo.slot} is missing a description",
            ))
        if not photo.tips:
            results.append(QAResult(
                "photo_recommendations", "missing_photo_tips", Severity.INFO,
                f"Photo slot {photo.slot} has no tips",
            ))
    return results


def _check_metadata(content: ListingContent) -> list[QAResult]:
    results = []
    for key, value in content.item_specifics.items():
        if not value.strip():
            results.append(QAResult(
                "item_specifics", "empty_specific", Severity.WARNING,
                f'Item specific "{key}" has an empty value',
            ))
    for key, value in content.attributes.items():
        if not value.strip():
            results.append(QAResult(
                "attributes", "empty_attribute", Severity.WARNING,
                f'Attribute "{key}" has an empty value',
            ))
    return results


# ── Entry points ─────────────────────────────────────────────

def validate(content: Any, marketplace: Union[str, MarketplaceProfile]) -> list[QAResult]:
    """Validate a listing against a marketplace's rules.

    Args:
        content: ListingContent or a raw mapping (coerced, never mutated).
        marketplace: Marketplace id (e.g. 'amazon') or a MarketplaceProfile.

    Returns:
        QAResult list sorted by severity.
    """
    profile = get_profile(marketplace)
    listing = coerce_content(content)

    results = (
        _check_field_constraints(listing, profile.fields)
        + _check_banned_terms(listing, profile.banned_terms)
        + _check_structure(listing, profile)
        + _check_photo_recommendations(listing)
        + _check_metadata(listing)
    )
    logger.debug("Validated listing for %s: %d issue(s)", profile.id, len(results))
    return sort_by_severity(results)


def validate_batch(items: list[dict]) -> list[list[QAResult]]:
    """Validate multiple listings. Each item: {'content': ..., 'marketplace': ...}.

    A missing marketplace falls back to LISTING_QA_DEFAULT_MARKETPLACE. An
    unknown one yields a single ``unknown_marketplace`` error for that entry
    and the rest of the batch is still validated.
    """
    batch = []
    for i, item in enumerate(items):
        if not isinstance(item, Mapping):
            item = {}
        marketplace = item.get("marketplace") or config.DEFAULT_MARKETPLACE
        try:
            batch.append(validate(item.get("content"), marketplace))
        except UnknownMarketplaceError as e:
            logger.warning("Batch entry %d skipped: %s", i, e)
            batch.append([QAResult(
                "marketplace", "unknown_marketplace", Severity.ERROR, str(e),
            )])
    return batch
