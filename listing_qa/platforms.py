"""Marketplace rule profiles and the profile registry.

Snapshot of each marketplace's listing rules: field limits, banned terms
and scoring weights. Weights per marketplace sum to 1.0; criteria that the
scorer does not implement yet are skipped and the rest renormalized.
"""
from __future__ import annotations

import logging
import os
from typing import Union

from listing_qa.models import Severity
from listing_qa.rules import (
    BannedTermRule,
    FieldConstraint,
    MarketplaceProfile,
    ScoringWeight,
)

logger = logging.getLogger(__name__)

WARNING = Severity.WARNING

EMOJI_PATTERN = (
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF\u2600-\u26FF\u2700-\u27BF]"
)
RANK_ONE_PATTERN = r"(?<!\w)#\s*1\b"


class UnknownMarketplaceError(ValueError):
    pass


# ── Amazon ───────────────────────────────────────────────────

_AMAZON_BULLET_HINTS = (
    "Lead with the strongest benefit or unique selling proposition.",
    "Highlight a key feature and its benefit to the customer.",
    "Address quality, materials, or construction details.",
    "Cover use cases, compatibility, or included accessories.",
    "Mention warranty, satisfaction details, or brand story.",
)

AMAZON = MarketplaceProfile(
    id="amazon",
    display_name="Amazon",
    fields=[
        FieldConstraint(
            "title", 200, required=True,
            description="Brand + key feature + product type + size/quantity. No ALL CAPS.",
        ),
        *[
            FieldConstraint(f"bullet_{i}", 500, required=True, description=hint)
            for i, hint in enumerate(_AMAZON_BULLET_HINTS, 1)
        ],
        FieldConstraint(
            "description", 2000, required=True, html_allowed=True,
            description="Supports basic HTML (<br>, <b>, <ul>, <li>).",
        ),
        FieldConstraint(
            "backend_keywords", None, max_bytes=250,
            description="Search terms. Max 250 bytes, space separated, no title repeats.",
        ),
    ],
    banned_terms=[
        BannedTermRule(RANK_ONE_PATTERN, "#1",
                       "Unsubstantiated ranking claims violate Amazon's product listing policies."),
        BannedTermRule(r"\bnumber\s+one\b", "number one",
                       "Unsubstantiated ranking claims violate Amazon's product listing policies."),
        BannedTermRule(r"\bbest\s+seller\b", "best seller",
                       "Only Amazon can award Best Seller badges."),
        BannedTermRule(r"\bguarantee\b", "guarantee",
                       "Guarantee claims require substantiation and are restricted by Amazon policies."),
        BannedTermRule(r"\bguaranteed\b", "guaranteed",
                       "Guarantee claims require substantiation and are restricted by Amazon policies."),
        BannedTermRule(r"100\s*%", "100%",
                       "Absolute percentage claims are unsubstantiated and may trigger suppression."),
        BannedTermRule(r"\bfree\s+shipping\b", "free shipping",
                       "Shipping terms are controlled by Amazon."),
        BannedTermRule(r"\bact\s+now\b", "act now",
                       "Urgency-based pressure tactics are not allowed in Amazon listings."),
        BannedTermRule(r"\blimited\s+time\b", "limited time",
                       "Time-sensitive claims create false urgency."),
        BannedTermRule(r"\bFDA\s+approved\b", "FDA approved",
                       "FDA approval claims require official authorization."),
        BannedTermRule(r"\bclinically\s+proven\b", "clinically proven",
                       "Medical efficacy claims require clinical evidence and clearance."),
        BannedTermRule(r"\bcure\b", "cure",
                       "Medical treatment claims are prohibited for non-approved products."),
        BannedTermRule(r"\btreats\b", "treats",
                       "Medical treatment claims are prohibited for non-approved products."),
        BannedTermRule(EMOJI_PATTERN, "emoji",
                       "Emojis are not allowed in Amazon listing content."),
        BannedTermRule(r"\bcheap\b", "cheap",
                       "'Cheap' undermines perceived value.", WARNING),
        BannedTermRule(r"\bbuy\s+now\b", "buy now",
                       "Transactional CTAs are discouraged by Amazon style guidelines.", WARNING),
        BannedTermRule(r"\bhurry\b", "hurry",
                       "Urgency language may be flagged during listing review.", WARNING),
    ],
    scoring_weights=[
        ScoringWeight("title_keyword_richness", 0.20, "Primary and secondary keywords without stuffing."),
        ScoringWeight("bullet_quality", 0.20, "Benefit-driven, scannable, distinct bullets."),
        ScoringWeight("backend_keywords_utilization", 0.15, "Uses close to 250 bytes of search terms."),
        ScoringWeight("banned_terms_absence", 0.15, "Free of suppression-risk terms."),
        ScoringWeight("description_completeness", 0.10, "Description expands on bullets."),
        ScoringWeight("title_length_optimization", 0.05, "Title uses most of its length budget."),
        ScoringWeight("readability", 0.05, "Accessible reading level."),
        ScoringWeight("formatting_compliance", 0.05, "No ALL CAPS or punctuation abuse."),
        ScoringWeight("benefit_driven_language", 0.05, "Features framed as benefits."),
    ],
    listing_shape=[
        "title", "bullets", "description", "backend_keywords",
        "attributes", "compliance_notes", "assumptions",
    ],
)


# ── Walmart ──────────────────────────────────────────────────

_WALMART_FEATURE_HINTS = (
    "Lead with the most compelling benefit or differentiator.",
    "Highlight materials, quality, or construction.",
    "Cover use cases or compatibility details.",
    "Address sizing, included items, or setup instructions.",
    "Brand story, warranty, or customer support details.",
)

WALMART = MarketplaceProfile(
    id="walmart",
    display_name="Walmart Marketplace",
    fields=[
        FieldConstraint(
            "title", 75, required=True,
            description="Brand + product type + defining attributes. Truncated on mobile.",
        ),
        *[
            FieldConstraint(f"feature_{i}", 500, required=True, description=hint)
            for i, hint in enumerate(_WALMART_FEATURE_HINTS, 1)
        ],
        FieldConstraint(
            "shelf_description", 500, required=True,
            description="Short description shown in search results and category pages.",
        ),
        FieldConstraint(
            "description", 4000, required=True, html_allowed=True,
            description="Long description. Supports <p>, <br>, <b>, <ul>, <li>.",
        ),
        FieldConstraint(
            "attributes", None,
            description="Category-specific attributes for Listing Quality Score.",
        ),
    ],
    banned_terms=[
        BannedTermRule(r"\bamazon\b", "Amazon",
                       "References to competing marketplaces are prohibited on Walmart."),
        BannedTermRule(r"\bprime\b", "Prime",
                       "References to competing membership programs are not allowed."),
        BannedTermRule(r"\bcheap\b", "cheap",
                       "Use 'affordable' or 'great value' instead."),
        BannedTermRule(r"\bbest\s+seller\b", "best seller",
                       "Unsubstantiated ranking claims are not permitted."),
        BannedTermRule(RANK_ONE_PATTERN, "#1",
                       "Unverifiable ranking claims violate content policies."),
        BannedTermRule(r"\bguarantee\b", "guarantee",
                       "Use specific warranty terms instead."),
        BannedTermRule(r"100\s*%", "100%",
                       "Absolute percentage claims are considered unsubstantiated."),
        BannedTermRule(r"\blimited\s+time\b", "limited time",
                       "Promotional urgency language is not allowed."),
        BannedTermRule(r"\bfree\s+shipping\b", "free shipping",
                       "Shipping terms are managed by Walmart."),
        BannedTermRule(r"\bFDA\s+approved\b", "FDA approved",
                       "FDA approval claims require regulatory documentation."),
        BannedTermRule(r"\bclinically\s+proven\b", "clinically proven",
                       "Medical efficacy claims are strictly regulated."),
        BannedTermRule(EMOJI_PATTERN, "emoji",
                       "Emojis are not allowed in Walmart listing content."),
    ],
    scoring_weights=[
        ScoringWeight("title_keyword_richness", 0.20, "Top keywords within 75 characters."),
        ScoringWeight("key_features_quality", 0.20, "Benefit-driven, unique key features."),
        ScoringWeight("shelf_description_effectiveness", 0.10, "Compelling shelf description."),
        ScoringWeight("description_completeness", 0.15, "Formatted, complete long description."),
        ScoringWeight("banned_terms_absence", 0.10, "No competitor references or banned terms."),
        ScoringWeight("attribute_completeness", 0.10, "Attributes populated."),
        ScoringWeight("readability", 0.05, "Scannable, jargon-free."),
        ScoringWeight("formatting_compliance", 0.05, "No ALL CAPS or character abuse."),
        ScoringWeight("benefit_driven_language", 0.05, "Features framed as benefits."),
    ],
    listing_shape=[
        "title", "bullets", "shelf_description", "description",
        "attributes", "compliance_notes", "assumptions",
    ],
)


# ── eBay ─────────────────────────────────────────────────────

EBAY = MarketplaceProfile(
    id="ebay",
    display_name="eBay",
    fields=[
        FieldConstraint(
            "title", 80, required=True,
            description="Brand + model + key specs + condition.",
        ),
        FieldConstraint(
            "subtitle", 55,
            description="Optional paid subtitle shown under the title in search.",
        ),
        FieldConstraint(
            "description", None, required=True, html_allowed=True,
            description="Mobile-friendly HTML description, no active content.",
        ),
        FieldConstraint(
            "item_specifics", None, required=True,
            description="Category-required and recommended item specifics.",
        ),
    ],
    banned_terms=[
        BannedTermRule(r"\bfake\b", "fake",
                       "Counterfeit-related terminology is prohibited under VeRO."),
        BannedTermRule(r"\breplica\b", "replica",
                       "Replica listings violate the counterfeit goods policy."),
        BannedTermRule(r"\bcounterfeit\b", "counterfeit",
                       "Counterfeit references violate the VeRO policy."),
        BannedTermRule(r"\bknockoff\b", "knockoff",
                       "Implies an unauthorized copy."),
        BannedTermRule(r"\bunauthorized\b", "unauthorized",
                       "Suggests the item is not legitimately sourced."),
        BannedTermRule(RANK_ONE_PATTERN, "#1",
                       "Unsubstantiated ranking claims are not permitted."),
        BannedTermRule(r"\bguarantee\b", "guarantee",
                       "Reference eBay's Money Back Guarantee instead."),
        BannedTermRule(r"100\s*%", "100%",
                       "Absolute percentage claims are considered unsubstantiated."),
        BannedTermRule(r"\bfree\s+shipping\b", "free shipping",
                       "Configure shipping in listing settings, not the description.", WARNING),
        BannedTermRule(r"\bact\s+now\b", "act now",
                       "High-pressure urgency language is discouraged.", WARNING),
        BannedTermRule(r"\blimited\s+time\b", "limited time",
                       "Auctions already carry natural urgency.", WARNING),
        BannedTermRule(EMOJI_PATTERN, "emoji",
                       "Emojis render inconsistently across eBay surfaces.", WARNING),
    ],
    scoring_weights=[
        ScoringWeight("title_keyword_richness", 0.20, "Title relevance within 80 characters."),
        ScoringWeight("item_specifics_completeness", 0.30, "Item specifics completeness."),
        ScoringWeight("description_completeness", 0.15, "Description clarity."),
        ScoringWeight("condition_disclosure", 0.15, "Condition and flaw transparency."),
        ScoringWeight("listing_completeness", 0.10, "Shipping, returns and category present."),
        ScoringWeight("compliance_safety", 0.10, "Policy safety."),
    ],
    listing_shape=[
        "title", "subtitle", "description", "item_specifics", "condition_notes",
        "shipping_notes", "returns_notes", "category_hint", "compliance_notes", "assumptions",
    ],
)


# ── Shopify ──────────────────────────────────────────────────

SHOPIFY = MarketplaceProfile(
    id="shopify",
    display_name="Shopify / DTC",
    fields=[
        FieldConstraint(
            "title", 255, required=True,
            description="Rendered as the page <h1>. Primary keyword, no stuffing.",
        ),
        FieldConstraint(
            "description", 50000, required=True, html_allowed=True,
            description="Rich HTML description: headings, lists, tables, media.",
        ),
        FieldConstraint(
            "seo_title", 60, required=True,
            description="Meta title. Max 60 chars to avoid SERP truncation.",
        ),
        FieldConstraint(
            "meta_description", 160, required=True,
            description="Meta description. Max 160 chars with a call to action.",
        ),
        FieldConstraint(
            "tags", None,
            description="Product tags for collections and filtering.",
        ),
        FieldConstraint(
            "collections", None,
            description="Suggested collections for site navigation.",
        ),
    ],
    banned_terms=[
        BannedTermRule(r"\bcure\b", "cure",
                       "Medical cure claims violate FTC guidelines."),
        BannedTermRule(r"\bclinically\s+proven\b", "clinically proven",
                       "Clinical efficacy claims require published studies."),
        BannedTermRule(r"\bFDA\s+approved\b", "FDA approved",
                       "FDA approval claims require regulatory authorization."),
        BannedTermRule(r"\bbuy\s+now\s+or\s+miss\s+out\b", "buy now or miss out",
                       "Aggressive scarcity CTAs erode trust on DTC stores."),
        BannedTermRule(r"\bact\s+now\s+before\b", "act now before",
                       "Manipulative urgency language undermines credibility."),
        BannedTermRule(r"\bmiracle\b", "miracle",
                       "Superlative claims without evidence are flagged by ad standards."),
        BannedTermRule(r"\b100\s*%\s+guarantee\b", "100% guarantee",
                       "Absolute guarantee claims require clear terms."),
        BannedTermRule(r"\bguaranteed\s+results\b", "guaranteed results",
                       "Outcome guarantees are risky under consumer protection law."),
        BannedTermRule(r"\bcheap\b", "cheap",
                       "'Cheap' undermines brand perception.", WARNING),
        BannedTermRule(r"\bhurry\b", "hurry",
                       "Generic urgency language feels spammy.", WARNING),
        BannedTermRule(r"\blimited\s+stock\b", "limited stock",
                       "False scarcity claims violate truth-in-advertising rules.", WARNING),
    ],
    scoring_weights=[
        ScoringWeight("seo_title_optimization", 0.15, "SEO title under 60 chars with keyword."),
        ScoringWeight("meta_description_quality", 0.10, "Meta description with keyword and CTA."),
        ScoringWeight("description_content_quality", 0.20, "Rich, structured description."),
        ScoringWeight("keyword_integration", 0.15, "Keywords across title, description, meta."),
        ScoringWeight("banned_terms_absence", 0.10, "No prohibited claims."),
        ScoringWeight("tag_and_collection_strategy", 0.10, "Comprehensive tags and collections."),
        ScoringWeight("readability", 0.05, "Well-written and scannable."),
        ScoringWeight("formatting_richness", 0.05, "Effective HTML formatting."),
        ScoringWeight("benefit_driven_language", 0.05, "Benefits with emotional appeal."),
        ScoringWeight("brand_voice_consistency", 0.05, "Consistent premium brand voice."),
    ],
    listing_shape=[
        "title", "description", "seo_title", "meta_description",
        "tags", "collections", "compliance_notes", "assumptions",
    ],
)


PROFILES: dict[str, MarketplaceProfile] = {
    "amazon": AMAZON,
    "walmart": WALMART,
    "ebay": EBAY,
    "shopify": SHOPIFY,
}

DEFAULT_ENABLED = ("amazon", "ebay")


def get_profile(marketplace: Union[str, MarketplaceProfile]) -> MarketplaceProfile:
    """Get a profile by marketplace id (case-insensitive).

    A ``MarketplaceProfile`` is returned as-is so callers can evaluate
    against custom or versioned rule snapshots.
    """
    if isinstance(marketplace, MarketplaceProfile):
        return marketplace
    key = marketplace.strip().lower() if isinstance(marketplace, str) else ""
    profile = PROFILES.get(key)
    if profile is None:
        raise UnknownMarketplaceError(
            f"Unknown marketplace: {marketplace!r} "
            f"(available: {', '.join(PROFILES)})"
        )
    return profile


def get_marketplace_ids() -> list[str]:
    return list(PROFILES)


def is_marketplace_enabled(marketplace: str) -> bool:
    """Read MARKETPLACE_ENABLED_<ID>; amazon and ebay are on by default."""
    val = os.environ.get(f"MARKETPLACE_ENABLED_{marketplace.upper()}")
    if val is None:
        return marketplace in DEFAULT_ENABLED
    return val.strip().lower() not in ("false", "0")


def get_enabled_marketplace_ids() -> list[str]:
    return [m for m in PROFILES if is_marketplace_enabled(m)]


def list_marketplaces() -> str:
    """Format marketplace list for display."""
    return "\n".join(
        f"  {'✅' if is_marketplace_enabled(k) else '⏸️'} {k} — {v.display_name}"
        for k, v in PROFILES.items()
    )


def unknown_criteria(profile: Union[str, MarketplaceProfile]) -> list[str]:
    """Criterion ids in a profile with no registered evaluator."""
    from listing_qa.scoring import CRITERION_FUNCTIONS

    profile = get_profile(profile)
    return [
        w.criterion for w in profile.scoring_weights
        if w.criterion not in CRITERION_FUNCTIONS
    ]


def check_profiles(profiles=None) -> dict[str, list[str]]:
    """Log unscorable criteria per profile; returns {marketplace: [criterion, ...]}."""
    report = {}
    for profile in (profiles or PROFILES.values()):
        missing = unknown_criteria(profile)
        for criterion in missing:
            logger.warning(
                "Profile %s weights criterion %r which has no evaluator; "
                "it will be skipped when scoring", profile.id, criterion,
            )
        report[profile.id] = missing
    return report
