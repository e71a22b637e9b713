"""Data-classification lattice and caller roles.

Every indexed chunk carries exactly one :class:`Classification`; every chat
request is evaluated against the maximum classification its :class:`Role`
may read.  The lattice is totally ordered:

    Public < Internal < Confidential < Restricted

Chunks are stored in the index with the lowercase ``stored_value``.  Paths
outside the four known prefixes are stored as ``unknown`` and never match
any classification filter.
"""

from __future__ import annotations

from enum import Enum

UNKNOWN_CLASSIFICATION = "unknown"


class Classification(str, Enum):
    """Security tier of a chunk or of a request boundary."""

    PUBLIC = "Public"
    INTERNAL = "Internal"
    CONFIDENTIAL = "Confidential"
    RESTRICTED = "Restricted"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def stored_value(self) -> str:
        """Lowercase value written to the index ``classification`` field."""
        return self.value.lower()

    @classmethod
    def from_rank(cls, rank: int) -> Classification:
        for member, member_rank in _RANKS.items():
            if member_rank == rank:
                return member
        raise ValueError(f"No classification with rank {rank}")


_RANKS: dict[Classification, int] = {
    Classification.PUBLIC: 0,
    Classification.INTERNAL: 1,
    Classification.CONFIDENTIAL: 2,
    Classification.RESTRICTED: 3,
}


class Role(str, Enum):
    """Caller role as asserted by the client or an upstream gateway."""

    CUSTOMER = "Customer"
    AGENT = "Agent"
    ADMIN = "Admin"
