"""Layer 2: Estimate - dual-scenario estimate and market research."""

from .estimate_generator import EstimateGenerator
from .research_generator import ResearchGenerator

__all__ = ["EstimateGenerator", "ResearchGenerator"]
