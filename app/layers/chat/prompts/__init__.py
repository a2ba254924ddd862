from .chat_prompts import CHAT_PROMPT

__all__ = ["CHAT_PROMPT"]
