"""
폴백 응답기입니다.

오케스트레이터가 모든 프로바이더에서 실패했을 때만 사용하는
결정적(deterministic) 오프라인 콘텐츠를 만듭니다.

- 변형(variant) 선택: sha256(project_id) % len(pool)
  → 같은 프로젝트/단계는 항상 같은 문구, 프로젝트마다 다른 문구
- 구체적인 수치를 지어내지 않습니다. 견적 폴백은 명백히 일반적인 임시 수치만 사용합니다.
- 모든 결과는 폴백으로 표시되어 화면/내보내기에서 구분됩니다.
"""

import hashlib
import logging
from typing import Optional

from pydantic import BaseModel

from app.models import (
    Project,
    ProjectBrief,
    Scenario,
    ROIAnalysis,
    EstimateResult,
    PMBreakdown,
    PMPhase,
    PMTask,
    ChecklistItem,
)

logger = logging.getLogger(__name__)

DEGRADED_BANNER = (
    "> **Provisional content**: the AI service was unavailable, so this section was "
    "generated from a generic template. Regenerate it before relying on it."
)


class FallbackContent(BaseModel):
    """폴백 텍스트와 선택된 변형 정보."""

    text: str
    stage: int
    variant: int
    is_fallback: bool = True


# ==================== 단계별 대화 응답 풀 ====================

CHAT_POOLS: dict[int, list[str]] = {
    1: [
        'I\'m currently putting together the dual-scenario estimate for "{title}". '
        "I'm looking at both a custom High-Tech build and a No-Code MVP approach.",
        'Just gathering the final pieces for the "{title}" estimate. '
        "I'll have the feature breakdowns and ROI analysis ready soon.",
        'I\'m still reviewing the details for "{title}". If you can share a budget or '
        "target region, the estimate will be more accurate.",
    ],
    2: [
        'The assets for "{title}" are all set! You\'ve got the proposal and the internal '
        "report ready. Let me know when you want to send the proposal email.",
        'Proposal materials for "{title}" are prepared. Review the email draft and send it '
        "when you're ready.",
    ],
    3: [
        'The proposal for "{title}" is out in the wild! The execution guides are the next '
        "thing to review.",
        'With the proposal accepted for "{title}", we can walk through the High-Code and '
        "No-Code execution guides whenever you like.",
    ],
    4: [
        'The execution guides for "{title}" are sharp and ready. The PM breakdown lists the '
        "phases and tasks to track.",
        'The project plan for "{title}" is laid out by phase. Check the task checklists and '
        "give the final approval when it looks right.",
    ],
    5: [
        'We\'ve crossed the finish line on planning for "{title}". Everything is available '
        "for export.",
        'Planning for "{title}" is complete. You can export the documents at any time.',
    ],
}

RESEARCH_POOL = [
    "# Market Research\n\nLive market research is temporarily unavailable. "
    "No competitor pricing or benchmark figures are included. Regenerate the estimate "
    "later to attach sourced research.",
    "# Market Research\n\nMarket research could not be retrieved at this time. "
    "This estimate was prepared without external pricing references.",
]

EMAIL_POOL = [
    "Subject: Your proposal for {title}\n\n"
    "Hi {client},\n\n"
    "Thank you for the opportunity to put together a proposal for {title}. "
    "We prepared two approaches: a custom build and a faster no-code MVP. "
    "The attached proposal walks through scope, timeline and investment for each.\n\n"
    "Proposal: {proposal_url}\n\n"
    "We'd be glad to walk you through it on a short call.\n\n"
    "Best regards",
    "Subject: Proposal ready: {title}\n\n"
    "Hello {client},\n\n"
    "Your proposal for {title} is ready. It compares a custom development path with a "
    "no-code MVP so you can choose the balance of speed and flexibility that fits.\n\n"
    "Proposal: {proposal_url}\n\n"
    "Let us know a good time to discuss next steps.\n\n"
    "Kind regards",
]

GUIDE_A_POOL = [
    "# High-Code Execution Guide\n\n## Overview\nThis is a provisional guide.\n\n"
    "## Recommended Steps\n1. Initialize the repository and choose the primary framework\n"
    "2. Set up CI/CD pipelines\n3. Implement core features based on the approved scope\n"
    "4. Verify with automated tests\n5. Deploy to a staging environment for review",
    "# High-Code Execution Guide\n\n## Overview\nThis is a provisional guide.\n\n"
    "## Recommended Steps\n1. Confirm architecture and data model\n"
    "2. Build the backend API and authentication\n3. Build the user interface\n"
    "4. Integrate third-party services\n5. Run acceptance testing and launch",
]

GUIDE_B_POOL = [
    "# No-Code Execution Guide\n\n## Overview\nThis is a provisional guide.\n\n"
    "## Recommended Steps\n1. Select the platform\n2. Set up the database schema\n"
    "3. Build UI components\n4. Connect logic flows\n5. Test with pilot users",
    "# No-Code Execution Guide\n\n## Overview\nThis is a provisional guide.\n\n"
    "## Recommended Steps\n1. Map the core user journeys\n2. Configure data collections\n"
    "3. Assemble pages from templates\n4. Add automations and integrations\n"
    "5. Launch the MVP and gather feedback",
]

# (phase name, [task names]) 묶음. 공수는 비워 둡니다 (0h).
PM_PHASE_POOLS: list[list[tuple[str, list[str]]]] = [
    [
        ("Discovery", ["Confirm requirements with stakeholders", "Finalize scope and success criteria"]),
        ("Build", ["Set up project environment", "Implement core features"]),
        ("Launch", ["Run acceptance testing", "Deploy and hand over"]),
    ],
    [
        ("Planning", ["Kick-off meeting", "Agree on milestones and owners"]),
        ("Implementation", ["Build first release", "Review progress with the client"]),
        ("Delivery", ["Fix issues from review", "Release and document"]),
    ],
]


def select_variant(project_id: str, pool_size: int) -> int:
    """프로젝트 ID의 안정적인 해시로 변형 번호 선택."""
    if pool_size <= 0:
        raise ValueError("pool_size must be positive")
    digest = hashlib.sha256(project_id.encode("utf-8")).hexdigest()
    return int(digest, 16) % pool_size


class FallbackResponder:
    """단계별 결정적 폴백 콘텐츠 생성기."""

    def chat(self, project: Project, stage: Optional[int] = None) -> FallbackContent:
        """단계별 대화 응답."""
        stage = stage or project.current_stage
        pool = CHAT_POOLS.get(stage, CHAT_POOLS[1])
        variant = select_variant(project.id, len(pool))
        text = pool[variant].format(title=project.title or "your project")
        return self._log(FallbackContent(text=text, stage=stage, variant=variant), "chat")

    def brief(self, project: Project) -> ProjectBrief:
        """
        추출 실패 시 브리프. 원본 입력을 해석하지 않고
        missing_data로 표시하여 견적 생성을 보류합니다.
        """
        logger.warning(f"[Fallback] {project.id}: input_processing 폴백 브리프 사용")
        return ProjectBrief(
            mission="",
            client_name=project.client_name,
            estimated_budget=project.budget,
            region=project.region,
            missing_data=True,
            missing_fields=["mission", "objectives"],
        )

    def estimate(self, project: Project) -> EstimateResult:
        """일반적인 임시 수치의 견적. 시나리오 설명에 임시 수치임을 명시합니다."""
        variant = select_variant(project.id, 2)
        note = (
            "Provisional placeholder figures based on a generic project of this type. "
            "Not a quote."
        )
        logger.warning(f"[Fallback] {project.id}: estimate 폴백 (variant={variant})")
        return EstimateResult(
            scenario_a=Scenario(
                name="High-Tech Custom",
                description=note,
                features=["Core features to be confirmed"],
                timeline="To be confirmed",
                total_cost=45000,
                recommended=variant == 0,
                cons=["Figures are placeholders until the estimate is regenerated"],
            ),
            scenario_b=Scenario(
                name="No-Code MVP",
                description=note,
                features=["Core features to be confirmed"],
                timeline="To be confirmed",
                total_cost=15000,
                recommended=variant == 1,
                cons=["Figures are placeholders until the estimate is regenerated"],
            ),
            roi_analysis=ROIAnalysis(methodology="Not available: AI service unavailable."),
        )

    def research(self, project: Project) -> FallbackContent:
        variant = select_variant(project.id, len(RESEARCH_POOL))
        return self._log(
            FallbackContent(text=RESEARCH_POOL[variant], stage=1, variant=variant), "market_research"
        )

    def email(self, project: Project) -> FallbackContent:
        variant = select_variant(project.id, len(EMAIL_POOL))
        text = EMAIL_POOL[variant].format(
            title=project.title,
            client=project.client_name or "there",
            proposal_url=project.proposal_pdf_url or "(attached)",
        )
        return self._log(FallbackContent(text=text, stage=2, variant=variant), "email")

    def execution_guides(self, project: Project) -> tuple[FallbackContent, FallbackContent]:
        """(High-Code, No-Code) 가이드 쌍."""
        variant = select_variant(project.id, len(GUIDE_A_POOL))
        guide_a = FallbackContent(text=GUIDE_A_POOL[variant], stage=3, variant=variant)
        guide_b = FallbackContent(text=GUIDE_B_POOL[variant], stage=3, variant=variant)
        self._log(guide_a, "execution_guide")
        return guide_a, guide_b

    def pm_breakdown(self, project: Project) -> PMBreakdown:
        variant = select_variant(project.id, len(PM_PHASE_POOLS))
        phases = []
        for number, (phase_name, task_names) in enumerate(PM_PHASE_POOLS[variant], start=1):
            tasks = [
                PMTask(
                    id=f"P{number}-T{index}",
                    name=task_name,
                    checklist=[ChecklistItem(id=f"P{number}-T{index}-C1", action=f"Complete: {task_name}")],
                )
                for index, task_name in enumerate(task_names, start=1)
            ]
            phases.append(PMPhase(phase_number=number, phase_name=phase_name, tasks=tasks))

        logger.warning(f"[Fallback] {project.id}: pm_breakdown 폴백 (variant={variant})")
        return PMBreakdown(phases=phases)

    @staticmethod
    def _log(content: FallbackContent, operation: str) -> FallbackContent:
        logger.warning(f"[Fallback] {operation} 폴백 응답 사용 (stage={content.stage}, variant={content.variant})")
        return content
