"""Role / boundary policy: normalization, access ceilings, escalation, filters.

All functions here are pure: no I/O, no configuration reads.  The chat
pipeline calls :func:`evaluate_policy` once per request (the PolicyGate)
and the retrieval client turns the resulting boundary into a mandatory
:class:`ClassificationFilter` with :func:`build_classification_filter`.

Policy summary:

    Role      max boundary
    --------  ------------
    Customer  Public
    Agent     Internal
    Admin     Confidential

- An *explicit* Restricted request always escalates.
- An *explicit* Confidential request by a non-Admin escalates.
- Anything else is silently capped at the role's maximum.
"""

from __future__ import annotations

from dataclasses import dataclass

from ragdesk.models.classification import UNKNOWN_CLASSIFICATION, Classification, Role

RESTRICTED_REASON = "Restricted content requires escalation"
CONFIDENTIAL_REASON = "Confidential request requires Admin access"

_BOUNDARY_LOOKUP: dict[str, Classification] = {c.value.lower(): c for c in Classification}

_ROLE_ALIASES: dict[str, Role] = {
    "customer": Role.CUSTOMER,
    "user": Role.CUSTOMER,
    "enduser": Role.CUSTOMER,
    "agent": Role.AGENT,
    "soc": Role.AGENT,
    "analyst": Role.AGENT,
    "admin": Role.ADMIN,
    "it": Role.ADMIN,
}

_ROLE_CEILING: dict[str, Classification] = {
    Role.CUSTOMER.value: Classification.PUBLIC,
    Role.AGENT.value: Classification.INTERNAL,
    Role.ADMIN.value: Classification.CONFIDENTIAL,
}

# Allowed stored values per effective boundary.  Restricted is deliberately
# not a superset of Confidential: it only ever sees restricted content.
_FILTER_VALUES: dict[Classification, tuple[str, ...]] = {
    Classification.PUBLIC: ("public",),
    Classification.INTERNAL: ("public", "internal"),
    Classification.CONFIDENTIAL: ("public", "internal", "confidential"),
    Classification.RESTRICTED: ("restricted",),
}

# First path segment -> stored classification value.
_PATH_CLASSIFICATION: dict[str, str] = {
    "public": "public",
    "internal": "internal",
    "confidential": "confidential",
    "restricted": "restricted",
}


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize_boundary(raw: str | None) -> str:
    """Map a requested boundary to its canonical label.

    Known labels match case-insensitively; blank input is ``"Public"``;
    anything else is echoed title-cased so it stays visible in logs and
    prompts while ranking no higher than Public.
    """
    value = (raw or "").strip()
    if not value:
        return Classification.PUBLIC.value
    known = _BOUNDARY_LOOKUP.get(value.lower())
    if known is not None:
        return known.value
    return value[0].upper() + value[1:].lower()


def normalize_role(raw: str | None) -> str:
    """Map a caller role or alias to its canonical label.  Never raises."""
    value = (raw or "").strip()
    if not value:
        return Role.CUSTOMER.value
    known = _ROLE_ALIASES.get(value.lower())
    if known is not None:
        return known.value
    return value[0].upper() + value[1:]


def parse_boundary(label: str) -> Classification | None:
    """Return the Classification for a canonical label, or ``None``."""
    return _BOUNDARY_LOOKUP.get(label.strip().lower())


def boundary_rank(label: str) -> int:
    """Rank of a boundary label; unrecognized labels rank as Public."""
    known = parse_boundary(label)
    return known.rank if known is not None else Classification.PUBLIC.rank


def max_boundary_for(role: str) -> Classification:
    """Highest classification *role* may read; unknown roles get Public."""
    return _ROLE_CEILING.get(normalize_role(role), Classification.PUBLIC)


def decide_effective_boundary(role: str, requested: str) -> Classification:
    """Cap the requested boundary at the role's maximum.

    Only valid for requests that passed :func:`evaluate_policy` without
    escalation; it never returns a boundary above ``max_boundary_for(role)``.
    """
    ceiling = max_boundary_for(role)
    return Classification.from_rank(min(boundary_rank(requested), ceiling.rank))


# ---------------------------------------------------------------------------
# Policy gate
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PolicyDecision:
    """Result of the policy gate for one request.

    ``effective`` is ``None`` exactly when ``escalate`` is ``True``.
    """

    role: str
    requested: str
    effective: Classification | None
    escalate: bool = False
    reason: str = ""


def evaluate_policy(role: str | None, requested: str | None) -> PolicyDecision:
    """Normalize role and boundary, then escalate or compute the effective boundary."""
    canonical_role = normalize_role(role)
    canonical_boundary = normalize_boundary(requested)
    parsed = parse_boundary(canonical_boundary)

    if parsed is Classification.RESTRICTED:
        return PolicyDecision(
            role=canonical_role,
            requested=canonical_boundary,
            effective=None,
            escalate=True,
            reason=RESTRICTED_REASON,
        )
    if parsed is Classification.CONFIDENTIAL and canonical_role != Role.ADMIN.value:
        return PolicyDecision(
            role=canonical_role,
            requested=canonical_boundary,
            effective=None,
            escalate=True,
            reason=CONFIDENTIAL_REASON,
        )

    return PolicyDecision(
        role=canonical_role,
        requested=canonical_boundary,
        effective=decide_effective_boundary(canonical_role, canonical_boundary),
    )


# ---------------------------------------------------------------------------
# Index filters
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClassificationFilter:
    """Set of stored classification values a query may match."""

    field: str
    values: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.values:
            raise ValueError("A classification filter must allow at least one value")
        if UNKNOWN_CLASSIFICATION in self.values:
            raise ValueError("The 'unknown' classification can never be queried")

    def to_odata(self) -> str:
        """Render as an OData expression, e.g. ``classification eq 'public'``."""
        return " or ".join(f"{self.field} eq '{value}'" for value in self.values)


def build_classification_filter(
    effective: Classification,
    field: str = "classification",
) -> ClassificationFilter:
    """Return the mandatory filter for *effective*; Public is the fallback."""
    values = _FILTER_VALUES.get(effective, _FILTER_VALUES[Classification.PUBLIC])
    return ClassificationFilter(field=field, values=values)


# ---------------------------------------------------------------------------
# Ingestion-time inference
# ---------------------------------------------------------------------------


def infer_classification(path: str | None) -> str:
    """Stored classification for a storage path, keyed by its first segment."""
    normalized = (path or "").strip().replace("\\", "/")
    if not normalized:
        return UNKNOWN_CLASSIFICATION
    first = normalized.split("/", 1)[0].strip().lower()
    return _PATH_CLASSIFICATION.get(first, UNKNOWN_CLASSIFICATION)


def infer_doc_type(path: str | None) -> str:
    """Coarse document type from the file name prefix: faq, policy, or doc."""
    name = (path or "").replace("\\", "/").rsplit("/", 1)[-1].lower()
    if name.startswith("faq-"):
        return "faq"
    if name.startswith("policy-"):
        return "policy"
    return "doc"
