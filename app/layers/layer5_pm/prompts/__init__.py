from .pm_prompts import PM_BREAKDOWN_PROMPT

__all__ = ["PM_BREAKDOWN_PROMPT"]
