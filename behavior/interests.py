"""Topical categorization of visited pages."""

from collections import Counter
from typing import Dict, Iterable, List

# Checked in order; the first category with a matching keyword wins.
CONTENT_CATEGORIES = [
    ("marketing", ("marketing", "seo")),
    ("development", ("development", "software")),
    ("ai", ("ai", "predictive")),
    ("analytics", ("analytics", "dashboard")),
]
GENERAL_CATEGORY = "general"


def categorize_page(page: str) -> str:
    """Map a page path to a content category by substring match."""
    page = (page or "").lower()
    for category, keywords in CONTENT_CATEGORIES:
        if any(keyword in page for keyword in keywords):
            return category
    return GENERAL_CATEGORY


def count_categories(pages: Iterable[str]) -> Dict[str, int]:
    """Count pages per category. Every category is present, even at zero."""
    counts = {category: 0 for category, _ in CONTENT_CATEGORIES}
    counts[GENERAL_CATEGORY] = 0
    for page in pages:
        counts[categorize_page(page)] += 1
    return counts


def rank_interests(pages: Iterable[str]) -> List[str]:
    """Specific categories seen in `pages`, most frequent first."""
    counter = Counter(categorize_page(page) for page in pages)
    counter.pop(GENERAL_CATEGORY, None)
    return [category for category, _ in counter.most_common()]
