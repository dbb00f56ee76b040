"""Marketplace rule profile contract.

A profile is authored data: field limits, banned-term rules and scoring
weights. The engine evaluates listings against it and never changes it.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Union

from listing_qa.models import Severity


@dataclass(frozen=True)
class FieldConstraint:
    name: str
    max_length: Optional[int]  # None = unbounded
    required: bool = False
    html_allowed: bool = False
    description: str = ""
    max_bytes: Optional[int] = None


@dataclass(frozen=True)
class BannedTermRule:
    """A prohibited phrase.

    ``pattern`` may be a regex source string (compiled case-insensitive) or
    an already compiled pattern. Matching always goes through
    ``re.Pattern.search`` which starts from position 0 and keeps no scan
    state, so one rule object can be shared across threads and calls.
    """
    pattern: Union[str, re.Pattern]
    term: str
    reason: str
    severity: Severity = Severity.ERROR
    regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        compiled = (
            self.pattern
            if isinstance(self.pattern, re.Pattern)
            else re.compile(self.pattern, re.IGNORECASE)
        )
        object.__setattr__(self, "regex", compiled)
        object.__setattr__(self, "severity", Severity(self.severity))

    def search(self, text: str) -> Optional[re.Match]:
        if not text:
            return None
        return self.regex.search(text)

    def matches(self, text: str) -> bool:
        return self.search(text) is not None


@dataclass(frozen=True)
class ScoringWeight:
    criterion: str
    weight: float
    description: str = ""


@dataclass(frozen=True)
class MarketplaceProfile:
    """Immutable once built; list arguments are stored as tuples."""
    id: str
    display_name: str
    fields: tuple[FieldConstraint, ...] = ()
    banned_terms: tuple[BannedTermRule, ...] = ()
    scoring_weights: tuple[ScoringWeight, ...] = ()
    listing_shape: tuple[str, ...] = ()

    def __post_init__(self):
        for name in ("fields", "banned_terms", "scoring_weights", "listing_shape"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    def constraint(self, name: str) -> Optional[FieldConstraint]:
        return next((f for f in self.fields if f.name == name), None)

    @property
    def total_weight(self) -> float:
        return sum(w.weight for w in self.scoring_weights)
