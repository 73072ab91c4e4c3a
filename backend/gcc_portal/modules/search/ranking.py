from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

# ts_rank's default A/B/C/D weights.
WEIGHT_A = 1.0
WEIGHT_B = 0.4
WEIGHT_C = 0.2
WEIGHT_D = 0.1

_TOKEN_RE = re.compile(r"[a-z0-9]+")

_STOPWORDS = {
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "in",
    "is", "it", "of", "on", "or", "the", "to", "was", "with",
}

# Longest first; a suffix is only stripped when a 3-char stem remains.
_SUFFIXES = ("ations", "ation", "ings", "ing", "ness", "ers", "er", "ies", "es", "ed", "ly", "s")


def stem(word: str) -> str:
    w = word.lower()
    for suf in _SUFFIXES:
        if w.endswith(suf) and len(w) - len(suf) >= 3:
            base = w[: -len(suf)]
            return base + "y" if suf == "ies" else base
    return w


def tokenize(text: str | None) -> list[str]:
    return _TOKEN_RE.findall(str(text or "").lower())


def query_stems(term: str | None) -> list[str]:
    out: list[str] = []
    for t in tokenize(term):
        if t in _STOPWORDS:
            continue
        s = stem(t)
        if s not in out:
            out.append(s)
    return out


@dataclass(frozen=True, slots=True)
class SearchField:
    get: Callable[[dict[str, Any]], Any]
    weight: float


def field_matches(text: str | None, stems: Sequence[str]) -> int:
    """Number of tokens in `text` matching any query stem (exact stem or prefix)."""
    if not stems:
        return 0
    m = 0
    for tok in tokenize(text):
        st = stem(tok)
        if any(st == q or tok.startswith(q) for q in stems):
            m += 1
    return m


def score(row: dict[str, Any], fields: Sequence[SearchField], stems: Sequence[str]) -> float:
    total = 0.0
    for f in fields:
        m = field_matches(f.get(row), stems)
        if m:
            total += f.weight * m / (m + 1)
    return total


def matches_substring(row: dict[str, Any], fields: Sequence[SearchField], term: str) -> bool:
    needle = term.lower()
    return any(needle in str(f.get(row) or "").lower() for f in fields)


def rank(
    rows: Iterable[dict[str, Any]],
    *,
    term: str | None,
    fields: Sequence[SearchField],
    order_key: Callable[[dict[str, Any]], Any],
    descending: bool = False,
    id_key: Callable[[dict[str, Any]], Any] = lambda r: str(r.get("id") or ""),
) -> list[dict[str, Any]]:
    """
    Filter and order rows for a search listing.

    With a non-blank term, rows must contain it (case-insensitive) in at
    least one searched field and are ordered by weighted relevance, highest
    first, with zero scores last. Ties, and the no-term case, fall back to
    `order_key` and finally `id_key`, so the order is deterministic.
    """
    q = str(term or "").strip()
    out = list(rows)
    if q:
        out = [r for r in out if matches_substring(r, fields, q)]

    # Stable sorts, least significant key first.
    out.sort(key=id_key)
    out.sort(key=order_key, reverse=descending)
    if q:
        stems = query_stems(q)
        scores = {id(r): score(r, fields, stems) for r in out}
        out.sort(key=lambda r: scores[id(r)], reverse=True)
    return out


def startup_fields() -> list[SearchField]:
    return [
        SearchField(lambda r: r.get("companyName"), WEIGHT_A),
        SearchField(lambda r: r.get("solutionDescription"), WEIGHT_B),
        SearchField(lambda r: r.get("name"), WEIGHT_C),
        SearchField(lambda r: r.get("industry"), WEIGHT_D),
    ]


def requirement_fields() -> list[SearchField]:
    return [
        SearchField(lambda r: r.get("title"), WEIGHT_A),
        SearchField(lambda r: r.get("description"), WEIGHT_B),
    ]


def rank_startups(rows: Iterable[dict[str, Any]], term: str | None) -> list[dict[str, Any]]:
    return rank(
        rows,
        term=term,
        fields=startup_fields(),
        order_key=lambda r: str(r.get("name") or "").casefold(),
    )


def rank_requirements(rows: Iterable[dict[str, Any]], term: str | None) -> list[dict[str, Any]]:
    return rank(
        rows,
        term=term,
        fields=requirement_fields(),
        order_key=lambda r: str(r.get("createdAt") or ""),
        descending=True,
    )
