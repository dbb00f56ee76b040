"""Bulk listing analysis.

Score many listings (e.g. rows from a bulk import) for one marketplace.
A row that fails is recorded and logged without aborting the batch.
"""
import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from listing_qa.analyzer import analyze
from listing_qa.config import config
from listing_qa.models import AnalysisResult
from listing_qa.platforms import get_profile
from listing_qa.rules import MarketplaceProfile

logger = logging.getLogger(__name__)


class BulkStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BulkItem:
    index: int
    status: BulkStatus = BulkStatus.PENDING
    result: Optional[AnalysisResult] = None
    error: str = ""
    duration_ms: int = 0


@dataclass
class BulkResult:
    marketplace: str
    items: list[BulkItem] = field(default_factory=list)
    total_analyzed: int = 0
    total_failed: int = 0
    total_skipped: int = 0
    elapsed_ms: int = 0

    @property
    def average_score(self) -> float:
        scores = [i.result.score for i in self.items if i.result is not None]
        return round(sum(scores) / len(scores), 1) if scores else 0.0

    def summary(self) -> str:
        lines = [
            "📦 Bulk Analysis Complete",
            f"   Marketplace: {self.marketplace}",
            f"   Total rows: {len(self.items) + self.total_skipped}",
            f"   ✅ Analyzed: {self.total_analyzed}",
            f"   ❌ Failed: {self.total_failed}",
            f"   ⏭️  Skipped: {self.total_skipped}",
            f"   📊 Avg score: {self.average_score}",
            f"   ⏱️  Time: {self.elapsed_ms / 1000:.1f}s",
        ]
        return "\n".join(lines)


def parse_rows(json_text: str) -> list[Any]:
    """Parse a JSON bulk import into listing rows.

    Accepts an array of listing objects or {"listings": [...]}.
    Rows are returned as-is; coercion happens at analysis time.
    """
    data = json.loads(json_text)
    if isinstance(data, dict):
        data = data.get("listings", data.get("items", []))
    if not isinstance(data, list):
        raise ValueError("JSON must be an array or contain a 'listings' array")
    return data


def analyze_batch(
    rows: list[Any],
    marketplace: Union[str, MarketplaceProfile, None] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
    max_items: Optional[int] = None,
    analyze_fn: Callable[[Any, MarketplaceProfile], AnalysisResult] = analyze,
) -> BulkResult:
    """Analyze a batch of listings.

    Args:
        rows: ListingContent objects or raw mappings.
        marketplace: Marketplace id or profile, shared by every row
            (default: LISTING_QA_DEFAULT_MARKETPLACE).
        on_progress: Optional callback(current, total).
        max_items: Safety limit on batch size (default: LISTING_QA_MAX_BATCH).
        analyze_fn: Per-row analysis function.

    Returns:
        BulkResult with one item per processed row.
    """
    profile = get_profile(marketplace or config.DEFAULT_MARKETPLACE)
    limit = max_items if max_items is not None else config.MAX_BATCH
    result = BulkResult(marketplace=profile.id)
    start = time.time()

    if len(rows) > limit:
        result.total_skipped = len(rows) - limit
        rows = rows[:limit]

    for i, row in enumerate(rows):
        if on_progress:
            on_progress(i + 1, len(rows))

        item = BulkItem(index=i)
        item_start = time.time()
        try:
            item.result = analyze_fn(row, profile)
            item.status = BulkStatus.DONE
            result.total_analyzed += 1
        except Exception as e:
            logger.exception("Row %d failed analysis for %s", i, profile.id)
            item.status = BulkStatus.FAILED
            item.error = str(e) or e.__class__.__name__
            result.total_failed += 1
        item.duration_ms = int((time.time() - item_start) * 1000)
        result.items.append(item)

    result.elapsed_ms = int((time.time() - start) * 1000)
    return result


def bulk_to_json(result: BulkResult) -> str:
    """Export bulk results to JSON."""
    data = {
        "summary": {
            "marketplace": result.marketplace,
            "analyzed": result.total_analyzed,
            "failed": result.total_failed,
            "skipped": result.total_skipped,
            "average_score": result.average_score,
            "elapsed_ms": result.elapsed_ms,
        },
        "items": [],
    }
    for item in result.items:
        data["items"].append({
            "index": item.index,
            "status": item.status.value,
            "result": item.result.to_dict() if item.result else None,
            "error": item.error,
            "duration_ms": item.duration_ms,
        })
    return json.dumps(data, ensure_ascii=False, indent=2)
