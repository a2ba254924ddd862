"""Market research generator (Perplexity first)."""

from typing import Any

from app.models import Project
from app.layers.base_generator import BaseGenerator

from .prompts import RESEARCH_PROMPT


class ResearchGenerator(BaseGenerator[str]):
    """견적 근거가 되는 시장 조사 마크다운 생성."""

    operation = "market_research"
    template = RESEARCH_PROMPT
    untrusted_variables = ("title", "region", "mission", "raw_input")
    _generator_name = "ResearchGenerator"

    async def _build_variables(self, project: Project, **kwargs: Any) -> dict:
        return {
            "title": project.title,
            "region": project.region,
            "mission": project.brief.mission if project.brief else None,
            "raw_input": project.raw_input,
        }

    def _parse(self, text: str) -> str:
        return self._require_text(text, min_length=40)
