"""Decision memory package."""

from thinkly.memory.models import (
    MEMORY_FIELDS,
    DecisionMemory,
    DialogueTurn,
    DraftMemory,
    MemoryField,
    MemoryVector,
    TermVector,
)
from thinkly.memory.storage import InMemoryStorage, JsonFileStorage, KeyValueStorage
from thinkly.memory.store import MemoryStore
from thinkly.memory.suggest import display_order, suggest, visible_indices
from thinkly.memory.vectors import build_vector, extract_terms

__all__ = [
    "MEMORY_FIELDS",
    "DecisionMemory",
    "DialogueTurn",
    "DraftMemory",
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryField",
    "MemoryStore",
    "MemoryVector",
    "TermVector",
    "build_vector",
    "display_order",
    "extract_terms",
    "suggest",
    "visible_indices",
]
