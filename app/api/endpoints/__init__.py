"""API endpoints package."""

from . import health
from . import projects
from . import knowledge
from . import usage

__all__ = ["health", "projects", "knowledge", "usage"]
