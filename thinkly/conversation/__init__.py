"""Conversation flow: capture, review, advisory and reflection."""

from thinkly.conversation.controller import ConversationController
from thinkly.conversation.extractor import ExtractedFields, FieldExtractor, decode_extraction
from thinkly.conversation.state import ConversationState

__all__ = [
    "ConversationController",
    "ConversationState",
    "ExtractedFields",
    "FieldExtractor",
    "decode_extraction",
]
