"""Conversation lifecycle states and the gates derived from them."""

from __future__ import annotations

from enum import StrEnum


class ConversationState(StrEnum):
    """Where the user is in capturing one decision."""

    CAPTURING = "capturing"
    REVIEW = "review"
    EDITING = "editing"
    CONFIRM = "confirm"
    REFLECTING = "reflecting"


# Free text is routed through explicit actions in these states.
TEXT_LOCKED: frozenset[ConversationState] = frozenset(
    {ConversationState.REVIEW, ConversationState.EDITING, ConversationState.CONFIRM}
)
FIELDS_EDITABLE: frozenset[ConversationState] = frozenset(
    {ConversationState.CAPTURING, ConversationState.EDITING}
)
EDIT_FROM: frozenset[ConversationState] = frozenset(
    {ConversationState.REVIEW, ConversationState.CONFIRM, ConversationState.REFLECTING}
)
CONFIRM_FROM: frozenset[ConversationState] = frozenset(
    {ConversationState.REVIEW, ConversationState.EDITING, ConversationState.REFLECTING}
)
ADVISORY_FROM: frozenset[ConversationState] = frozenset(
    {
        ConversationState.REVIEW,
        ConversationState.EDITING,
        ConversationState.CONFIRM,
        ConversationState.REFLECTING,
    }
)
