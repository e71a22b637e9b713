"""Evidence quality heuristics for internal retrieval results.

Decides whether the internal knowledge base answered the question well
enough, or whether the chat pipeline should offer a web search.  Evidence
is insufficient when any of these hold:

- **no evidence**: retrieval returned no citations;
- **weak evidence**: the best relevance score is below ``min_score``;
- **low overlap**: fewer than two distinctive question tokens appear in
  the retrieved text (the hits are probably off-topic).

Weak or off-topic citations are filtered out so the caller never sees
sources that do not support the answer.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from ragdesk.models.evidence import Citation, EvidenceAssessment, EvidenceBundle

_TOKEN_PATTERN = re.compile(r"[a-z0-9\-]{4,}")
_MAX_QUESTION_TOKENS = 25
DEFAULT_MIN_OVERLAP = 2


def best_score(citations: Iterable[Citation]) -> float:
    """Highest citation score; citations without a score count as 0."""
    return max((c.score or 0.0 for c in citations), default=0.0)


def question_tokens(question: str) -> list[str]:
    """Distinct lowercase tokens of four or more ``[a-z0-9-]`` characters.

    Order of first appearance is kept and at most 25 tokens are returned.
    """
    tokens: list[str] = []
    for token in _TOKEN_PATTERN.findall(question.lower()):
        if token not in tokens:
            tokens.append(token)
            if len(tokens) >= _MAX_QUESTION_TOKENS:
                break
    return tokens


def is_low_overlap(question: str, text: str, min_overlap: int = DEFAULT_MIN_OVERLAP) -> bool:
    """Return ``True`` when fewer than *min_overlap* question tokens occur in *text*.

    Matching is substring-based on the lowercased text.  Blank question or
    blank text is always low overlap.
    """
    if not question.strip() or not text.strip():
        return True

    haystack = text.lower()
    hits = 0
    for token in question_tokens(question):
        if token in haystack:
            hits += 1
            if hits >= min_overlap:
                return False
    return True


def assess_evidence(question: str, bundle: EvidenceBundle, min_score: float) -> EvidenceAssessment:
    """Score an internal evidence bundle against the question."""
    citations = list(bundle.citations)
    overlap_text = bundle.context + "\n\n" + "\n\n".join(c.snippet or "" for c in citations)

    top = best_score(citations)
    no_evidence = not citations
    weak_evidence = not no_evidence and top < min_score
    low_overlap = is_low_overlap(question, overlap_text)

    return EvidenceAssessment(
        best_score=top,
        min_score=min_score,
        no_evidence=no_evidence,
        weak_evidence=weak_evidence,
        low_overlap=low_overlap,
        kept_citations=[] if (weak_evidence or low_overlap) else citations,
    )


def format_score(value: float) -> str:
    """Render a score with at most three decimals and no trailing zeros."""
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text
