"""Execution guide generator - two guide variants for stage 3."""

from typing import Any

from pydantic import BaseModel, Field

from app.models import Project
from app.utils.json_parsing import parse_json_object
from app.layers.base_generator import BaseGenerator

from .prompts import GUIDE_PROMPT

SCENARIO_FIELDS = {"name", "description", "features", "tech_stack", "timeline"}


class ExecutionGuides(BaseModel):
    """실행 가이드 쌍."""

    guide_a: str = Field(..., min_length=20, description="High-Code 가이드")
    guide_b: str = Field(..., min_length=20, description="No-Code 가이드")


class ExecutionGuideGenerator(BaseGenerator[ExecutionGuides]):
    """High-Code / No-Code 실행 가이드 생성."""

    operation = "execution_guide"
    template = GUIDE_PROMPT
    untrusted_variables = ("title", "mission", "objectives")
    _generator_name = "ExecutionGuideGenerator"

    async def _build_variables(self, project: Project, **kwargs: Any) -> dict:
        brief = project.brief
        return {
            "title": project.title,
            "mission": brief.mission if brief else None,
            "objectives": brief.objectives if brief and brief.objectives else None,
            "scenario_a": project.scenario_a.model_dump(include=SCENARIO_FIELDS) if project.scenario_a else None,
            "scenario_b": project.scenario_b.model_dump(include=SCENARIO_FIELDS) if project.scenario_b else None,
            "selected": project.selected_scenario.value if project.selected_scenario else None,
        }

    def _parse(self, text: str) -> ExecutionGuides:
        data = parse_json_object(text)
        # camelCase 키 응답도 허용
        if "guide_a" not in data and "guideA" in data:
            data = {"guide_a": data.get("guideA"), "guide_b": data.get("guideB")}
        return ExecutionGuides.model_validate(data)
