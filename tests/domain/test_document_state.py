"""Tests for the one-way draft -> approved lifecycle."""

import pytest

from salesdoc_kernel.domain.lifecycle import (
    DocumentState,
    is_valid_transition,
    require_transition,
)
from salesdoc_kernel.exceptions import InvalidStateTransitionError


def test_state_of_flag():
    assert DocumentState.of(False) is DocumentState.DRAFT
    assert DocumentState.of(True) is DocumentState.APPROVED


def test_draft_to_approved_is_valid():
    assert is_valid_transition(DocumentState.DRAFT, DocumentState.APPROVED)
    require_transition(DocumentState.DRAFT, DocumentState.APPROVED)


@pytest.mark.parametrize(
    "from_state, to_state",
    [
        (DocumentState.APPROVED, DocumentState.DRAFT),
        (DocumentState.APPROVED, DocumentState.APPROVED),
        (DocumentState.DRAFT, DocumentState.DRAFT),
    ],
)
def test_other_transitions_rejected(from_state, to_state):
    with pytest.raises(InvalidStateTransitionError) as exc_info:
        require_transition(from_state, to_state)
    assert exc_info.value.from_state == from_state.value
    assert exc_info.value.to_state == to_state.value
