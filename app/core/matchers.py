"""
Allow-list matchers for browser origins and native bundle ids.

Domain patterns are classified explicitly instead of being compiled to
regexes, so a stored pattern like ``api.example.com`` never treats ``.`` as a
metacharacter.
"""
from enum import Enum
from typing import Optional, Sequence, Tuple

UNIVERSAL_PATTERN = "*"
SUFFIX_WILDCARD_PREFIX = "*."


class PatternKind(str, Enum):
    EXACT = "exact"
    SUFFIX_WILDCARD = "suffix_wildcard"
    UNIVERSAL = "universal"


def classify_domain_pattern(pattern: str) -> Tuple[PatternKind, str]:
    """Return the pattern kind and the value to compare against.

    ``*`` -> (UNIVERSAL, "*"), ``*.example.com`` -> (SUFFIX_WILDCARD,
    "example.com"), anything else -> (EXACT, pattern).
    """
    if pattern == UNIVERSAL_PATTERN:
        return PatternKind.UNIVERSAL, pattern
    if pattern.startswith(SUFFIX_WILDCARD_PREFIX):
        return PatternKind.SUFFIX_WILDCARD, pattern[len(SUFFIX_WILDCARD_PREFIX):]
    return PatternKind.EXACT, pattern


def domain_matches(origin: Optional[str], patterns: Sequence[str]) -> bool:
    """Check an already-normalized origin host against domain patterns.

    An empty pattern list or a ``*`` entry allows every origin, including a
    missing one. Matching is case-sensitive.
    """
    if not patterns:
        return True
    classified = [classify_domain_pattern(p) for p in patterns]
    if any(kind is PatternKind.UNIVERSAL for kind, _ in classified):
        return True
    if origin is None:
        return False

    for kind, value in classified:
        if kind is PatternKind.EXACT and origin == value:
            return True
        if kind is PatternKind.SUFFIX_WILDCARD:
            if origin == value or origin.endswith("." + value):
                return True
    return False


def bundle_matches(bundle_id: Optional[str], allowed: Sequence[str]) -> bool:
    # no wildcard semantics for bundle ids
    if not allowed:
        return True
    return bundle_id in allowed
