"""
Document lifecycle states (``salesdoc_kernel.domain.lifecycle``).

A root document is a draft until it is approved; approval is one-way.
The approved state is where a document number exists, and the only way
the number changes afterwards is through the revision chain.
"""

from __future__ import annotations

from enum import Enum

from salesdoc_kernel.exceptions import InvalidStateTransitionError


class DocumentState(str, Enum):
    """Approval lifecycle states."""

    DRAFT = "draft"
    APPROVED = "approved"

    @classmethod
    def of(cls, approved: bool) -> "DocumentState":
        return cls.APPROVED if approved else cls.DRAFT


DOCUMENT_TRANSITIONS: dict[DocumentState, frozenset[DocumentState]] = {
    DocumentState.DRAFT: frozenset({DocumentState.APPROVED}),
    DocumentState.APPROVED: frozenset(),
}


def is_valid_transition(from_state: DocumentState, to_state: DocumentState) -> bool:
    return to_state in DOCUMENT_TRANSITIONS[from_state]


def require_transition(from_state: DocumentState, to_state: DocumentState) -> None:
    """Raise InvalidStateTransitionError unless ``from_state -> to_state`` is an edge."""
    if not is_valid_transition(from_state, to_state):
        raise InvalidStateTransitionError(from_state.value, to_state.value)
