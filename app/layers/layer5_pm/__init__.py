"""Layer 5: PM breakdown - phases, tasks and checklists."""

from .pm_generator import PMBreakdownGenerator

__all__ = ["PMBreakdownGenerator"]
