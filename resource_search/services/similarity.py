"""Weighted fuzzy relevance between a query and a resource.

Similarity is the Dice coefficient over character bigrams: whitespace is
removed, each string is split into its multiset of adjacent character pairs,
and the score is twice the number of shared pairs over the total number of
pairs in both strings.
"""

from collections import Counter

from resource_search.services.text_normalizer import normalize

TITLE_WEIGHT = 0.7
DESCRIPTION_WEIGHT = 0.3


def _compact(text: str) -> str:
    return "".join(normalize(text).split())


def _pairs(compact: str) -> Counter[str]:
    return Counter(compact[i : i + 2] for i in range(len(compact) - 1))


def bigrams(text: str) -> Counter[str]:
    """Multiset of adjacent character pairs in the compacted, normalized text."""
    return _pairs(_compact(text))


def dice_coefficient(a: str, b: str) -> float:
    """Bigram Dice similarity between two strings (0.0 to 1.0).

    A string with fewer than two characters has no bigrams and scores 0.0,
    even against itself. Otherwise identical normalized strings score 1.0.
    """
    first = _compact(a)
    second = _compact(b)

    if len(first) < 2 or len(second) < 2:
        return 0.0
    if first == second:
        return 1.0

    shared = sum((_pairs(first) & _pairs(second)).values())
    total = (len(first) - 1) + (len(second) - 1)
    return (2.0 * shared) / total


def score(query: str, title: str, description: str | None) -> float:
    """Relevance of a resource to a query, in [0, 1].

    ``0.7 * sim(query, title) + 0.3 * sim(query, description)``. When the
    resource has no description the title similarity carries the full weight.
    """
    title_similarity = dice_coefficient(query, title)
    if description is None or not _compact(description):
        return title_similarity

    description_similarity = dice_coefficient(query, description)
    weighted = TITLE_WEIGHT * title_similarity + DESCRIPTION_WEIGHT * description_similarity
    return min(1.0, weighted)
