"""Layer 4: Execution guides - High-Code and No-Code manuals."""

from .guide_generator import ExecutionGuideGenerator, ExecutionGuides

__all__ = ["ExecutionGuideGenerator", "ExecutionGuides"]
