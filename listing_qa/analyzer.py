"""Validate-then-score facade."""
from typing import Any, Union

from listing_qa.models import AnalysisResult, coerce_content
from listing_qa.platforms import get_profile
from listing_qa.rules import MarketplaceProfile
from listing_qa.scoring import score
from listing_qa.validator import validate


def analyze(content: Any, marketplace: Union[str, MarketplaceProfile]) -> AnalysisResult:
    """Run validation, then score the listing re-using the validation results."""
    profile = get_profile(marketplace)
    listing = coerce_content(content)
    issues = validate(listing, profile)
    result = score(listing, profile, issues)
    return AnalysisResult(
        marketplace=profile.id,
        validation=issues,
        score=result.score,
        grade=result.grade,
        breakdown=result.breakdown,
    )
