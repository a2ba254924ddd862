"""Intake generator - raw client input to structured project brief."""

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from app.models import Project, ProjectBrief
from app.utils.json_parsing import parse_json_object
from app.utils.validation import parse_budget_text
from app.layers.base_generator import BaseGenerator

from .prompts import INTAKE_PROMPT

logger = logging.getLogger(__name__)


class IntakeResult(BaseModel):
    """브리프 추출 결과."""

    title: str = ""
    brief: ProjectBrief


class _IntakePayload(ProjectBrief):
    """모델 응답 형태 (브리프 + 제목). "$20k" 같은 예산 표기는 금액으로 변환합니다."""

    title: Optional[str] = None

    @field_validator("estimated_budget", mode="before")
    @classmethod
    def _coerce_budget(cls, value: Any) -> Optional[float]:
        if value is None or isinstance(value, (int, float)):
            return value
        return parse_budget_text(str(value))

    @field_validator("objectives", "constraints", "tech_preferences", "missing_fields", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> list:
        return value or []


class IntakeGenerator(BaseGenerator[IntakeResult]):
    """원본 입력에서 ProjectBrief 추출."""

    operation = "input_processing"
    template = INTAKE_PROMPT
    untrusted_variables = ("raw_input", "details", "client_name", "region", "attachments")
    _generator_name = "IntakeGenerator"

    async def _build_variables(self, project: Project, **kwargs: Any) -> dict:
        return {
            "raw_input": project.raw_input,
            "details": kwargs.get("details"),
            "client_name": project.client_name,
            "budget": project.budget,
            "region": project.region,
            "attachments": [
                {"filename": a.filename, "mime_type": a.mime_type, "size": a.size}
                for a in project.attachments
            ] or None,
        }

    def _parse(self, text: str) -> IntakeResult:
        payload = _IntakePayload.model_validate(parse_json_object(text))
        title = (payload.title or "").strip()
        brief = ProjectBrief.model_validate(payload.model_dump(exclude={"title"}))
        return IntakeResult(title=title, brief=brief)


def merge_brief(project: Project, brief: ProjectBrief) -> ProjectBrief:
    """
    추출된 브리프에 운영자가 직접 입력한 값(예산, 지역, 고객명)을 덮어쓰고
    정보 충분 여부를 다시 판정합니다.

    판정 규칙: 모델이 missing_data를 표시했거나, mission이 비었거나,
    예산과 지역이 모두 없으면 정보 부족.
    """
    merged = brief.model_copy(deep=True)
    if project.budget is not None:
        merged.estimated_budget = project.budget
    if project.region:
        merged.region = project.region
    if project.client_name:
        merged.client_name = project.client_name

    operator_supplied = project.budget is not None or bool(project.region)

    missing: set[str] = set()
    if not merged.mission.strip():
        missing.add("mission")
    if merged.estimated_budget is None and not merged.region:
        missing.update({"budget", "region"})

    # 운영자가 예산/지역을 보충했으면 모델의 부족 판정은 더 이상 막지 않음
    if brief.missing_data and not operator_supplied:
        missing.update(merged.missing_fields or ["details"])

    merged.missing_fields = sorted(missing)
    merged.missing_data = bool(missing)
    return merged
