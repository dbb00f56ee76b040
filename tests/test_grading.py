"""Tests for grade and status banding."""
import pytest

from listing_qa.grading import Grade, ListingStatus, get_grade, get_listing_status


class TestGrade:
    @pytest.mark.parametrize("score,grade", [
        (100, Grade.A),
        (90, Grade.A),
        (89, Grade.B),
        (75, Grade.B),
        (74, Grade.C),
        (60, Grade.C),
        (59, Grade.D),
        (40, Grade.D),
        (39, Grade.F),
        (0, Grade.F),
    ])
    def test_bands(self, score, grade):
        assert get_grade(score) == grade

    def test_grade_is_str(self):
        assert Grade.A == "A"


class TestListingStatus:
    @pytest.mark.parametrize("score,status", [
        (100, ListingStatus.READY),
        (85, ListingStatus.READY),
        (84, ListingStatus.NEEDS_REVISION),
        (70, ListingStatus.NEEDS_REVISION),
        (69, ListingStatus.REGENERATE),
        (0, ListingStatus.REGENERATE),
    ])
    def test_bands(self, score, status):
        assert get_listing_status(score) == status

    def test_values(self):
        assert ListingStatus.NEEDS_REVISION.value == "needs_revision"
