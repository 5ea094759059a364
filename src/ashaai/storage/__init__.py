"""Conversation storage backends."""

from .store import InMemoryMessageStore, MessageStore, StoreError

__all__ = ["InMemoryMessageStore", "MessageStore", "StoreError"]
