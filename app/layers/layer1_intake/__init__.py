"""Layer 1: Input processing - raw client input to structured brief."""

from .intake_generator import IntakeGenerator, IntakeResult, merge_brief

__all__ = ["IntakeGenerator", "IntakeResult", "merge_brief"]
