"""
에셋(제안서/내부 보고서/발표 자료) 및 내보내기 서비스.

PDF 렌더링은 이 시스템의 범위 밖이므로, 확정된 마크다운/구조화 필드를
그대로 조립한 문서를 제공하고 URL은 상대 경로로 발급합니다.
절대 URL 변환은 API 응답 경계에서 한 번만 수행합니다 (absolutize_urls).
"""

import logging
from typing import Any, Optional

from app.models import Project, ScenarioChoice, STAGES
from app.services.fallback import DEGRADED_BANNER

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

ASSET_KINDS = ("proposal", "internal-report", "presentation")

# 폴백 여부를 판단할 때 사용하는 필드 이름 → 문서 섹션 제목
SECTION_FIELDS = {
    "brief": "Project Brief",
    "research": "Market Research",
    "estimate": "Estimate",
    "email": "Proposal Email",
    "execution_guide": "Execution Guides",
    "pm_breakdown": "PM Breakdown",
}


class AssetService:
    """제안 단계 산출물 URL 발급 및 문서 조립."""

    def asset_url(self, project_id: str, kind: str) -> str:
        if kind not in ASSET_KINDS:
            raise ValueError(f"Unknown asset kind: {kind}")
        return f"{API_PREFIX}/projects/{project_id}/assets/{kind}"

    def generate(self, project: Project) -> Project:
        """2단계 진입 시 에셋 URL을 발급합니다."""
        project.proposal_pdf_url = self.asset_url(project.id, "proposal")
        project.internal_report_pdf_url = self.asset_url(project.id, "internal-report")
        project.presentation_url = self.asset_url(project.id, "presentation")
        logger.info(f"[Assets] {project.id}: 에셋 URL 발급")
        return project

    def render(self, project: Project, kind: str) -> str:
        """에셋 종류별 마크다운 문서."""
        if kind == "proposal":
            return self._render_proposal(project)
        if kind == "internal-report":
            return self._render_internal_report(project)
        if kind == "presentation":
            return self._render_presentation(project)
        raise ValueError(f"Unknown asset kind: {kind}")

    def _render_proposal(self, project: Project) -> str:
        """고객용 제안서: 선택된 시나리오 중심."""
        lines = [f"# Proposal: {project.title}", ""]
        if project.client_name:
            lines += [f"Prepared for **{project.client_name}**", ""]
        if project.brief and project.brief.mission:
            lines += ["## Mission", "", project.brief.mission, ""]

        selected = project.selected()
        if selected is not None:
            if "estimate" in project.fallback_fields:
                lines += [DEGRADED_BANNER, ""]
            label = project.selected_scenario.value
            lines += [f"## Recommended approach: Scenario {label} ({selected.name})", ""]
            if selected.description:
                lines += [selected.description, ""]
            lines.append(f"- **Investment**: ${selected.total_cost:,.0f}")
            if selected.timeline:
                lines.append(f"- **Timeline**: {selected.timeline}")
            if selected.budget_constrained and selected.budget_disclaimer:
                lines.append(f"- **Budget notice**: {selected.budget_disclaimer}")
            for feature in selected.features:
                lines.append(f"- {feature}")
            lines.append("")
        return "\n".join(lines)

    def _render_internal_report(self, project: Project) -> str:
        """내부 보고서: 두 시나리오 전체 견적 + 시장 조사."""
        sections = [f"# Internal Report: {project.title}", ""]
        sections.append(self._section(project, "estimate", project.estimate_markdown))
        sections.append(self._section(project, "research", project.research_markdown))
        return "\n".join(s for s in sections if s is not None)

    def _render_presentation(self, project: Project) -> str:
        """슬라이드 구분자(---)로 나눈 발표용 마크다운."""
        slides = [f"# {project.title}"]
        if project.brief and project.brief.objectives:
            slides.append("## Objectives\n\n" + "\n".join(f"- {o}" for o in project.brief.objectives))
        for choice in (ScenarioChoice.A, ScenarioChoice.B):
            scenario = project.scenario_a if choice == ScenarioChoice.A else project.scenario_b
            if scenario is None:
                continue
            slides.append(
                f"## Scenario {choice.value}: {scenario.name}\n\n"
                f"- Investment: ${scenario.total_cost:,.0f}\n"
                f"- Timeline: {scenario.timeline or '-'}"
            )
        return "\n\n---\n\n".join(slides)

    def export_markdown(self, project: Project) -> str:
        """
        프로젝트 전체 내보내기. 폴백 콘텐츠 섹션에는 경고 배너를 붙입니다.
        """
        lines = [
            f"# {project.title}",
            "",
            f"- **Stage**: {project.current_stage} ({STAGES[project.current_stage]})",
            f"- **Status**: {project.status.value}",
        ]
        if project.client_name:
            lines.append(f"- **Client**: {project.client_name}")
        if project.budget is not None:
            lines.append(f"- **Budget**: ${project.budget:,.0f}")
        lines.append("")

        brief_md = None
        if project.brief is not None:
            brief = project.brief
            brief_md = "\n".join(
                [f"**Mission**: {brief.mission or '-'}", ""]
                + [f"- {o}" for o in brief.objectives]
            )

        guides = None
        if project.execution_guide_a or project.execution_guide_b:
            guides = "\n\n".join(g for g in (project.execution_guide_a, project.execution_guide_b) if g)

        contents: dict[str, Optional[str]] = {
            "brief": brief_md,
            "research": project.research_markdown,
            "estimate": project.estimate_markdown,
            "email": project.email_content,
            "execution_guide": guides,
            "pm_breakdown": project.pm_breakdown.to_markdown() if project.pm_breakdown else None,
        }
        for field, content in contents.items():
            section = self._section(project, field, content)
            if section is not None:
                lines.append(section)

        return "\n".join(lines)

    @staticmethod
    def _section(project: Project, field: str, content: Optional[str]) -> Optional[str]:
        if not content:
            return None
        parts = [f"## {SECTION_FIELDS[field]}", ""]
        if field in project.fallback_fields:
            parts += [DEGRADED_BANNER, ""]
        parts += [content, ""]
        return "\n".join(parts)


# ==================== 응답 URL 정규화 ====================

URL_FIELDS = ("proposal_pdf_url", "internal_report_pdf_url", "presentation_url", "url")


def absolutize_urls(payload: Any, base_url: str) -> Any:
    """
    응답 페이로드의 상대 URL을 절대 URL로 바꾼 새 객체를 반환합니다.
    입력은 변경하지 않는 순수 함수입니다.
    """
    if not base_url:
        return payload
    base = base_url.rstrip("/")

    if isinstance(payload, dict):
        result = {}
        for key, value in payload.items():
            if key in URL_FIELDS and isinstance(value, str) and value.startswith("/"):
                result[key] = base + value
            else:
                result[key] = absolutize_urls(value, base_url)
        return result
    if isinstance(payload, list):
        return [absolutize_urls(item, base_url) for item in payload]
    return payload
