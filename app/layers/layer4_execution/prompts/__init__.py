from .guide_prompts import GUIDE_PROMPT

__all__ = ["GUIDE_PROMPT"]
