from .estimate_prompts import (
    ESTIMATE_PROMPT,
    BUDGET_CONSTRAINED_INSTRUCTIONS,
    NO_BUDGET_INSTRUCTIONS,
    RESEARCH_PROMPT,
)

__all__ = [
    "ESTIMATE_PROMPT",
    "BUDGET_CONSTRAINED_INSTRUCTIONS",
    "NO_BUDGET_INSTRUCTIONS",
    "RESEARCH_PROMPT",
]
