"""
Pure metric calculators over a PageDocument and a target keyword.
"""
import re
from typing import Optional

from seo_advisor.models import PageDocument, PageMetrics


def title_length(document: PageDocument) -> int:
    return len(document.title)


def description_length(document: PageDocument) -> int:
    return len(document.meta_description)


def h1_count(document: PageDocument) -> int:
    return len(document.h1_tags)


def link_count(document: PageDocument) -> int:
    return len(document.links)


def contains_keyword(text: str, keyword: str) -> bool:
    """Case-insensitive substring test. An empty keyword never matches."""
    if not keyword:
        return False
    return keyword.lower() in (text or "").lower()


def word_count(text: str) -> int:
    """Number of whitespace-delimited tokens."""
    return len((text or "").split())


def keyword_occurrences(text: str, keyword: str) -> int:
    """
    Count non-overlapping, case-insensitive occurrences of the keyword.

    The keyword is matched as an escaped literal, so hits inside longer
    words count too ("shoes" matches "snowshoes").
    """
    if not keyword or not text:
        return 0
    return len(re.findall(re.escape(keyword), text, flags=re.IGNORECASE))


def keyword_density(text: str, keyword: str) -> Optional[float]:
    """
    Keyword occurrences per hundred words of text.

    Returns None when the text has no words, since the density is undefined.
    The value is not rounded.
    """
    words = word_count(text)
    if words == 0:
        return None
    return keyword_occurrences(text, keyword) / words * 100


def compute_metrics(document: PageDocument, keyword: str) -> PageMetrics:
    """Compute every metric the rules need in one pass."""
    keyword = (keyword or "").strip()
    first_h1 = document.h1_tags[0] if document.h1_tags else ""
    return PageMetrics(
        keyword=keyword,
        title_length=title_length(document),
        description_length=description_length(document),
        h1_count=h1_count(document),
        link_count=link_count(document),
        content_length=len(document.body_text),
        word_count=word_count(document.body_text),
        keyword_count=keyword_occurrences(document.body_text, keyword),
        keyword_density=keyword_density(document.body_text, keyword),
        title_contains_keyword=contains_keyword(document.title, keyword),
        description_contains_keyword=contains_keyword(document.meta_description, keyword),
        h1_contains_keyword=contains_keyword(first_h1, keyword),
    )
