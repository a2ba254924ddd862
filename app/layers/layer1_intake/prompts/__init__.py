from .intake_prompts import INTAKE_PROMPT

__all__ = ["INTAKE_PROMPT"]
