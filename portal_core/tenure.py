"""
Tenure Inference

Best-effort tenure classification in three short-circuiting tiers:

1. An explicit tenure field, case-normalised and mapped directly
2. A keyword scan of the description text
3. The same scan over the joined features list

Keyword scans are word-boundary aware. Tenures whose keywords are longer
phrases are tested first, so "share of freehold" wins over a bare
"freehold" anywhere in the same text; the rest keep the declared order
freehold -> leasehold.

The result is advisory.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Final, Mapping, Optional, Pattern

from portal_core.models import Tenure


logger = logging.getLogger(__name__)


TENURE_KEYWORDS: Final[dict[Tenure, tuple[str, ...]]] = {
    Tenure.FREEHOLD: ("freehold",),
    Tenure.LEASEHOLD: ("leasehold",),
    Tenure.SHARE_OF_FREEHOLD: ("share of freehold", "share freehold"),
}


def _phrase_pattern(phrase: str) -> Pattern[str]:
    words = [re.escape(word) for word in phrase.split()]
    return re.compile(r"\b" + r"[\s\-]+".join(words) + r"\b", re.IGNORECASE)


@dataclass(frozen=True)
class TenureMatcher:
    """Compiled keyword set for one tenure."""

    tenure: Tenure
    patterns: tuple[Pattern[str], ...]

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.patterns)


def build_matchers(
    keywords: Mapping[Tenure, tuple[str, ...]] = TENURE_KEYWORDS,
) -> tuple[TenureMatcher, ...]:
    """
    Compile keyword sets into matchers, most specific first.

    Sets are ordered by the word count of their longest phrase, descending;
    ties keep mapping order.
    """
    ordered = sorted(
        keywords.items(),
        key=lambda item: -max(len(phrase.split()) for phrase in item[1]),
    )
    return tuple(
        TenureMatcher(
            tenure=tenure,
            patterns=tuple(_phrase_pattern(p) for p in phrases),
        )
        for tenure, phrases in ordered
    )


_MATCHERS: Final[tuple[TenureMatcher, ...]] = build_matchers()


def scan_tenure(text: str) -> Optional[Tenure]:
    """Return the first tenure whose keywords occur in text."""
    if not text:
        return None
    for matcher in _MATCHERS:
        if matcher.matches(text):
            return matcher.tenure
    return None


def infer_tenure(payload: Mapping[str, Any]) -> Optional[Tenure]:
    """
    Infer tenure from a raw payload.

    An explicit tenure that maps to no known value is ignored and the text
    tiers are tried instead.
    """
    if not isinstance(payload, Mapping):
        return None

    explicit = payload.get("tenure")
    if isinstance(explicit, Tenure):
        return explicit
    if isinstance(explicit, str) and explicit.strip():
        tenure = Tenure.from_string(explicit.strip())
        if tenure is not None:
            return tenure
        # Unmapped labels ("Ask agent") fall through to the text tiers
        logger.debug("Unmapped explicit tenure %r, falling back to text", explicit)

    description = payload.get("description")
    if isinstance(description, str):
        tenure = scan_tenure(description)
        if tenure is not None:
            return tenure

    features = payload.get("features")
    if isinstance(features, (list, tuple)):
        features_text = " ".join(f for f in features if isinstance(f, str))
        return scan_tenure(features_text)

    return None
