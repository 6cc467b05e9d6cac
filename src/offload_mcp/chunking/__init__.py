"""Payload chunking and conversation assembly."""

from .conversation import ChunkedConversation, Message, PromptStages, build_conversation
from .planner import CHARS_PER_TOKEN, SECTION_DELIMITER, SECTION_SEPARATOR, chunk_payload
from .tokens import ContextWindow, TokenEstimator, estimate_tokens, plan_conversation

__all__ = [
    "CHARS_PER_TOKEN",
    "ChunkedConversation",
    "ContextWindow",
    "Message",
    "PromptStages",
    "SECTION_DELIMITER",
    "SECTION_SEPARATOR",
    "TokenEstimator",
    "build_conversation",
    "chunk_payload",
    "estimate_tokens",
    "plan_conversation",
]
