"""
Text Normalizer

Canonicalizes raw text before keyword matching. Pure and total:
any string in, a string out, empty in -> empty out.
"""

from __future__ import annotations

import re

# Smart quotes and en/em dashes mapped to their ASCII equivalents
_PUNCTUATION = str.maketrans({
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "–": "-",
    "—": "-",
})

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Lower-case, unify quotes/dashes, collapse whitespace, trim."""
    if not text:
        return ""
    text = text.lower().translate(_PUNCTUATION)
    return _WHITESPACE.sub(" ", text).strip()
