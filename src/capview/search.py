"""Word-level fuzzy search over capabilities.

A capability is kept when any of its searchable fields matches the query:
name, description, tool names, tool servers, or fqdn. Within one field,
every query word must match (AND logic).

Word matching accepts substrings, prefixes in either direction, and near
misses within an edit budget of 2. Near misses are measured with a bounded
Levenshtein distance by default. The ``positional`` strategy counts
position-wise mismatches over the shared prefix plus the length difference;
it never accepts a pair that Levenshtein rejects, but misses transpositions
and dropped letters ("datbase" vs "database").
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Iterator, Sequence

from capview.graph.nodes import Capability

EDIT_BUDGET = 2
MIN_FUZZY_WORD = 4

STRATEGY_POSITIONAL = "positional"
STRATEGY_LEVENSHTEIN = "levenshtein"
DEFAULT_STRATEGY = STRATEGY_LEVENSHTEIN

_SEPARATORS = re.compile(r"[_-]")
_WHITESPACE = re.compile(r"\s+")

Distance = Callable[[str, str, int], int]


def normalize(text: str) -> str:
    """Lowercase and turn ``_``/``-`` into spaces."""
    return _SEPARATORS.sub(" ", text.lower())


def positional_distance(a: str, b: str, limit: int = EDIT_BUDGET) -> int:
    """Mismatches over the overlapping prefix plus the length difference.

    Stops counting once ``limit`` is exceeded.
    """
    diffs = 0
    for left, right in zip(a, b):
        if left != right:
            diffs += 1
            if diffs > limit:
                break
    return diffs + abs(len(a) - len(b))


def bounded_levenshtein(a: str, b: str, limit: int = EDIT_BUDGET) -> int:
    """Levenshtein distance, returning ``limit + 1`` as soon as it is exceeded."""
    if abs(len(a) - len(b)) > limit:
        return limit + 1
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, left in enumerate(a, start=1):
        current = [i]
        for j, right in enumerate(b, start=1):
            cost = 0 if left == right else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        if min(current) > limit:
            return limit + 1
        previous = current
    return previous[-1]


_STRATEGIES: dict[str, Distance] = {
    STRATEGY_POSITIONAL: positional_distance,
    STRATEGY_LEVENSHTEIN: bounded_levenshtein,
}


def get_distance(strategy: str) -> Distance:
    """Look up a near-miss strategy by name."""
    try:
        return _STRATEGIES[strategy]
    except KeyError:
        raise ValueError(
            f"Unknown search strategy '{strategy}'. Expected one of: {', '.join(_STRATEGIES)}"
        ) from None


def _word_matches(word: str, target: str, target_words: Sequence[str], distance: Distance) -> bool:
    if word in target:
        return True
    for candidate in target_words:
        if candidate.startswith(word) or word.startswith(candidate):
            return True
        if len(word) >= MIN_FUZZY_WORD and abs(len(candidate) - len(word)) <= EDIT_BUDGET:
            if distance(candidate, word, EDIT_BUDGET) <= EDIT_BUDGET:
                return True
    return False


def matches(target: str, query: str, strategy: str = DEFAULT_STRATEGY) -> bool:
    """Check if ``target`` matches ``query`` with typo tolerance.

    A whitespace-only query matches everything. Query words of a single
    character are ignored unless the whole query is a substring.
    """
    if not query.strip():
        return True
    norm_target = normalize(target)
    norm_query = normalize(query.strip())
    if norm_query in norm_target:
        return True

    words = [w for w in _WHITESPACE.split(norm_query) if len(w) > 1]
    if not words:
        return False
    target_words = [w for w in _WHITESPACE.split(norm_target) if w]
    distance = get_distance(strategy)
    return all(_word_matches(word, norm_target, target_words, distance) for word in words)


def searchable_fields(cap: Capability) -> Iterator[str]:
    """Texts a capability can be found by."""
    yield cap.name
    if cap.description:
        yield cap.description
    for tool in cap.tools:
        yield tool.name
    for tool in cap.tools:
        yield tool.server
    if cap.fqdn:
        yield cap.fqdn


def capability_matches(cap: Capability, query: str, strategy: str = DEFAULT_STRATEGY) -> bool:
    """True if any searchable field of ``cap`` matches ``query``."""
    return any(matches(text, query, strategy) for text in searchable_fields(cap))


def filter_by_search(
    capabilities: Iterable[Capability],
    query: str,
    strategy: str = DEFAULT_STRATEGY,
) -> list[Capability]:
    """Keep capabilities matching ``query``, preserving order."""
    if not query.strip():
        return list(capabilities)
    return [cap for cap in capabilities if capability_matches(cap, query, strategy)]
