"""Conversation history module.

Holds the canonical, append-only message sequence sent to the model.
"""

from .models import Message, Role
from .store import ConversationHistory

__all__ = [
    "ConversationHistory",
    "Message",
    "Role",
]
