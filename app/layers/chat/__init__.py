"""Project assistant chat."""

from .chat_generator import ChatGenerator

__all__ = ["ChatGenerator"]
