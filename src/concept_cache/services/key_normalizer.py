"""Deterministic query-to-key normalization.

Queries that differ only in casing, surrounding or repeated whitespace,
trailing punctuation or a leading interrogative phrase map to the same key.

Key generation:
    1. Normalize: lowercase + strip whitespace
    2. Collapse: multiple spaces -> single space
    3. Strip leading phrases ("what is", "explain", ...) and trailing ?!.
    4. Hash: SHA256 for consistent key length
"""

import hashlib
import re

# Longest phrases first so "what is the" wins over "what is".
INTERROGATIVE_PHRASES: tuple[str, ...] = (
    "can you please explain",
    "could you explain",
    "can you explain",
    "please explain",
    "tell me about",
    "what is the",
    "what are the",
    "what is a",
    "what is an",
    "what is",
    "what are",
    "what's",
    "whats",
    "explain",
    "describe",
    "define",
)

_LEADING_PHRASE = re.compile(
    r"^(?:" + "|".join(re.escape(p) for p in INTERROGATIVE_PHRASES) + r")(?:\s+|$)"
)
_WHITESPACE = re.compile(r"\s+")
_TRAILING_PUNCTUATION = "?!."


def normalize_text(raw: str) -> str:
    """Canonicalize query text.

    Stacked phrases ("can you explain what is ...") are all removed, so the
    result is a fixed point: ``normalize_text(normalize_text(x)) == normalize_text(x)``.
    A phrase is never stripped if nothing would remain after it.

    Args:
        raw: Raw query text

    Returns:
        Canonical text
    """
    text = _WHITESPACE.sub(" ", raw.lower()).strip()
    text = text.rstrip(_TRAILING_PUNCTUATION + " ")

    while True:
        match = _LEADING_PHRASE.match(text)
        if match is None:
            break
        remainder = text[match.end() :].lstrip()
        if not remainder:
            break
        text = remainder

    return text


def normalize(raw: str) -> str:
    """Derive the cache key for a query.

    Args:
        raw: Raw query text

    Returns:
        SHA-256 hex digest of the canonical text
    """
    # Lone surrogates are hashed as-is so every str has a key.
    canonical = normalize_text(raw).encode("utf-8", errors="surrogatepass")
    return hashlib.sha256(canonical).hexdigest()
