"""Tool chat assistant."""

from .service import APOLOGY_MESSAGE, ChatService

__all__ = ["ChatService", "APOLOGY_MESSAGE"]
