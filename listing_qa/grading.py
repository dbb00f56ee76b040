"""Score → grade and score → actionability status bandings."""
from enum import Enum


class Grade(str, Enum):
    A = "A"  # 90-100
    B = "B"  # 75-89
    C = "C"  # 60-74
    D = "D"  # 40-59
    F = "F"  # 0-39


class ListingStatus(str, Enum):
    READY = "ready"                    # 85-100
    NEEDS_REVISION = "needs_revision"  # 70-84
    REGENERATE = "regenerate"          # 0-69


def get_grade(score: float) -> Grade:
    if score >= 90:
        return Grade.A
    if score >= 75:
        return Grade.B
    if score >= 60:
        return Grade.C
    if score >= 40:
        return Grade.D
    return Grade.F


def get_listing_status(score: float) -> ListingStatus:
    """Gate for automation: publish, revise in place, or regenerate."""
    if score >= 85:
        return ListingStatus.READY
    if score >= 70:
        return ListingStatus.NEEDS_REVISION
    return ListingStatus.REGENERATE
