"""PM breakdown generator - selected scenario to phased task plan."""

import logging
from typing import Any

from app.models import Project, PMBreakdown, ScenarioChoice
from app.utils.json_parsing import parse_json_object
from app.layers.base_generator import BaseGenerator

from .prompts import PM_BREAKDOWN_PROMPT

logger = logging.getLogger(__name__)

APPROACH_NAMES = {
    ScenarioChoice.A: "High-Code Custom",
    ScenarioChoice.B: "No-Code MVP",
}


class PMBreakdownGenerator(BaseGenerator[PMBreakdown]):
    """
    선택된 시나리오 기반 PM 작업 분해.
    구조가 맞지 않는 응답(단계 없음, 작업 없는 단계 등)은 검증에서 거부되어
    해당 프로바이더 실패로 처리됩니다.
    """

    operation = "pm_breakdown"
    template = PM_BREAKDOWN_PROMPT
    untrusted_variables = ("title",)
    _generator_name = "PMBreakdownGenerator"

    async def _build_variables(self, project: Project, **kwargs: Any) -> dict:
        choice = project.selected_scenario or ScenarioChoice.A
        selected = project.selected() or project.scenario_a
        guide = project.execution_guide_a if choice == ScenarioChoice.A else project.execution_guide_b
        return {
            "title": project.title,
            "approach": APPROACH_NAMES[choice],
            "scenario": selected.model_dump(
                include={"name", "features", "tech_stack", "timeline", "total_hours"}
            ) if selected else None,
            "guide": guide,
        }

    def _parse(self, text: str) -> PMBreakdown:
        data = parse_json_object(text)
        breakdown = PMBreakdown.model_validate(data)

        numbers = [phase.phase_number for phase in breakdown.phases]
        if len(set(numbers)) != len(numbers):
            raise ValueError(f"Duplicate phase numbers: {numbers}")
        return breakdown
