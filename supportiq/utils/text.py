"""
Text helpers for keyword extraction
"""
import re
from collections import Counter
from typing import Iterable, List

# Stop words for knowledge/template lookups
QUERY_STOP_WORDS = frozenset([
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were", "be", "been", "have", "has", "had",
    "do", "does", "did", "will", "would", "could", "should", "may", "might", "must",
    "can", "i", "you", "he", "she", "it", "we", "they", "me", "him", "her", "us",
    "them", "my", "your", "his", "its", "our", "their", "this", "that",
    "these", "those", "am", "being", "having", "doing", "ought",
])

# Stop words for cluster theme extraction
THEME_STOP_WORDS = frozenset([
    "the", "and", "for", "with", "this", "that", "have", "from", "your", "they",
    "been", "were", "said", "what", "each", "which", "their", "time", "will",
    "about", "would", "there", "could", "other", "after", "first", "well", "many",
    "some", "these", "work", "like", "just", "also", "before", "here", "more",
    "through", "when", "where", "most", "both", "those", "only", "now", "very",
    "even", "back", "any", "good", "how", "our", "out", "way", "make", "may",
    "new", "take", "come", "its", "over", "think", "her", "use", "two", "want",
    "because", "give", "day", "us",
])


def extract_keywords(text: str, limit: int = 10) -> List[str]:
    """
    Extract lookup keywords from free text

    Args:
        text: Ticket subject and/or content
        limit: Maximum number of keywords to return

    Returns:
        Keywords in order of appearance (lowercased, punctuation stripped)
    """
    cleaned = re.sub(r"[^\w\s]", " ", (text or "").lower())
    words = [w for w in cleaned.split() if len(w) > 2 and w not in QUERY_STOP_WORDS]
    return words[:limit]


def extract_theme_keywords(texts: Iterable[str], top_n: int = 3) -> List[str]:
    """
    Most frequent meaningful words across a group of texts

    Ties keep first-seen order, so the result is deterministic for a
    fixed input order.
    """
    words = []
    for text in texts:
        for word in (text or "").lower().split():
            if len(word) > 3 and word not in THEME_STOP_WORDS:
                words.append(word)

    counts = Counter(words)
    return [word for word, _ in counts.most_common(top_n)]


def format_theme(keywords: List[str]) -> str:
    """Title-case theme keywords into a display label"""
    return " ".join(keywords).title()
