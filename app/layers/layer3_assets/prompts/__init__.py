from .email_prompts import EMAIL_PROMPT

__all__ = ["EMAIL_PROMPT"]
