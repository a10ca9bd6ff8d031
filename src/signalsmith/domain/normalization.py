"""Name normalization and string similarity helpers.

These functions are pure and shared by deduplication, company resolution and
contact matching, so that every layer compares names in the same canonical form.
"""

from __future__ import annotations

import re
import unicodedata
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from rapidfuzz.distance import Levenshtein

if TYPE_CHECKING:
    from collections.abc import Iterable

_LEGAL_SUFFIX_RE = re.compile(
    r"\b(inc|incorporated|llc|ltd|limited|corp|corporation|company|co|plc)\b\.?",
    re.IGNORECASE,
)
_PUNCTUATION_RE = re.compile(r"[^\w\s&]", re.UNICODE)
_PERSON_PUNCTUATION_RE = re.compile(r"[^\w\s'-]", re.UNICODE)
_HONORIFICS = frozenset({"mr", "mrs", "ms", "miss", "dr", "prof", "sir"})
_GENERATIONAL = frozenset({"jr", "sr", "ii", "iii", "iv", "phd", "md", "esq"})


def _collapse(value: str) -> str:
    return " ".join(value.split())


def normalize_company_name(name: str | None) -> str:
    """Return the comparison form of an organization name.

    Lower-cases, strips legal suffixes ("Inc", "LLC", "Corp", "Ltd", "Company", ...)
    and punctuation, and collapses whitespace. ``None`` and blank input yield ``""``.
    """

    if not name:
        return ""
    text = unicodedata.normalize("NFKC", name).casefold().strip()
    text = _LEGAL_SUFFIX_RE.sub(" ", text)
    text = _PUNCTUATION_RE.sub(" ", text)
    return _collapse(text)


def normalize_person_name(name: str | None) -> str:
    """Return the comparison form of a person name (honorifics and suffixes dropped)."""

    if not name:
        return ""
    text = unicodedata.normalize("NFKC", name).casefold().strip()
    text = _PERSON_PUNCTUATION_RE.sub(" ", text)
    tokens = text.split()
    while tokens and tokens[0] in _HONORIFICS:
        tokens.pop(0)
    while tokens and tokens[-1] in _GENERATIONAL:
        tokens.pop()
    return " ".join(tokens)


def levenshtein(left: str, right: str) -> int:
    return Levenshtein.distance(left, right)


def similarity(left: str, right: str) -> float:
    """Edit-distance similarity in [0, 1]: ``(max_len - distance) / max_len``.

    Two empty strings are identical and score 1.0.
    """

    return Levenshtein.normalized_similarity(left, right)


def company_similarity(left: str | None, right: str | None) -> float:
    normalized_left = normalize_company_name(left)
    normalized_right = normalize_company_name(right)
    if not normalized_left or not normalized_right:
        return 0.0
    return similarity(normalized_left, normalized_right)


def _strip_legal_suffix(name: str) -> str:
    stripped = _LEGAL_SUFFIX_RE.sub(" ", name)
    return _collapse(stripped).strip(" ,.")


def _unique(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        cleaned = _collapse(value).strip(" ,")
        key = cleaned.casefold()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        unique.append(cleaned)
    return unique


def company_name_variations(
    name: str,
    variants: Iterable[str] = (),
    *,
    limit: int | None = None,
) -> list[str]:
    """Ordered spellings worth trying against an external directory.

    The original name comes first, then explicit variants, then derived forms
    (legal suffix removed, "&"/"and" swapped).
    """

    candidates = [name, *variants]
    candidates.append(_strip_legal_suffix(name))
    if "&" in name:
        candidates.append(name.replace("&", "and"))
    elif re.search(r"\band\b", name, re.IGNORECASE):
        candidates.append(re.sub(r"\band\b", "&", name, flags=re.IGNORECASE))
    unique = _unique(candidates)
    return unique if limit is None else unique[:limit]


def person_name_variations(full_name: str, *, limit: int | None = None) -> list[str]:
    """Full name first, then the name without honorifics and middle names."""

    candidates = [full_name]
    tokens = [
        token
        for token in full_name.replace(",", " ").split()
        if token.casefold().strip(".") not in _HONORIFICS | _GENERATIONAL
    ]
    if tokens:
        candidates.append(" ".join(tokens))
    if len(tokens) > 2:
        candidates.append(f"{tokens[0]} {tokens[-1]}")
    unique = _unique(candidates)
    return unique if limit is None else unique[:limit]


def canonical_profile_url(url: str | None) -> str | None:
    """Comparison form of a social profile URL (https, no query, no trailing slash)."""

    if not url or not url.strip():
        return None
    raw = url.strip()
    if "://" not in raw:
        raw = f"https://{raw}"
    parts = urlsplit(raw)
    host = parts.netloc.lower()
    if host.endswith("linkedin.com"):
        host = "www.linkedin.com"
    path = parts.path.rstrip("/")
    return f"https://{host}{path}".lower()
