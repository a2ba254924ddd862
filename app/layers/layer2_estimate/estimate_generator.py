"""Estimate generator - structured brief to dual-scenario estimate."""

import logging
from typing import Any

from app.models import Project, EstimateResult, KnowledgeCategory
from app.utils.json_parsing import parse_json_object
from app.layers.base_generator import BaseGenerator

from .prompts import ESTIMATE_PROMPT, BUDGET_CONSTRAINED_INSTRUCTIONS, NO_BUDGET_INSTRUCTIONS

logger = logging.getLogger(__name__)


class EstimateGenerator(BaseGenerator[EstimateResult]):
    """
    두 시나리오(A: 커스텀, B: 노코드) 견적 생성.

    예산이 있으면 제약 모드 지시문을 넣습니다. 예산 초과 표시는
    호출자가 EstimateResult.apply_budget으로 일괄 적용합니다 (폴백 견적 포함).
    """

    operation = "estimate"
    template = ESTIMATE_PROMPT
    untrusted_variables = ("title", "region", "brief", "raw_input", "research", "knowledge_context")
    _generator_name = "EstimateGenerator"

    async def _build_variables(self, project: Project, **kwargs: Any) -> dict:
        if project.budget is not None:
            budget_instructions = BUDGET_CONSTRAINED_INSTRUCTIONS.format(budget=project.budget)
        else:
            budget_instructions = NO_BUDGET_INSTRUCTIONS

        # 폴백 조사 결과는 근거가 없으므로 프롬프트에 넣지 않음
        research = None
        if project.research_markdown and "research" not in project.fallback_fields:
            research = project.research_markdown

        return {
            "title": project.title,
            "region": project.region,
            "brief": project.brief.model_dump(exclude={"missing_data", "missing_fields"}) if project.brief else None,
            "raw_input": project.raw_input,
            "budget_instructions": budget_instructions,
            "research": research,
            "knowledge_context": await self._knowledge_context(KnowledgeCategory.APPROVED_ESTIMATE.value),
        }

    def _parse(self, text: str) -> EstimateResult:
        data = parse_json_object(text)
        # {"scenarios": {...}} 형태로 한 번 감싸서 오는 응답도 허용
        if "scenario_a" not in data and isinstance(data.get("scenarios"), dict):
            data = data["scenarios"]
        return EstimateResult.model_validate(data)
