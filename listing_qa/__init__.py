"""Marketplace listing QA: validation and weighted quality scoring."""
from listing_qa.analyzer import analyze
from listing_qa.grading import Grade, ListingStatus, get_grade, get_listing_status
from listing_qa.models import (
    AnalysisResult,
    ListingContent,
    QAResult,
    ScoreBreakdown,
    ScoreResult,
    Severity,
)
from listing_qa.platforms import UnknownMarketplaceError, get_profile
from listing_qa.scoring import score
from listing_qa.validator import validate

__all__ = [
    "AnalysisResult",
    "Grade",
    "ListingContent",
    "ListingStatus",
    "QAResult",
    "ScoreBreakdown",
    "ScoreResult",
    "Severity",
    "UnknownMarketplaceError",
    "analyze",
    "get_grade",
    "get_listing_status",
    "get_profile",
    "score",
    "validate",
]
