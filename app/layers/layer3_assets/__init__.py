"""Layer 3: Assets - proposal email draft."""

from .email_generator import EmailGenerator

__all__ = ["EmailGenerator"]
