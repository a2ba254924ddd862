"""
견적(Estimate) 관련 데이터 모델입니다.
두 가지 시나리오(A: 커스텀 개발, B: 노코드 MVP)와 ROI 분석을 정의합니다.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class ScenarioChoice(str, Enum):
    """고객이 선택할 수 있는 시나리오."""
    A = "A"  # High-Tech / Custom
    B = "B"  # No-Code / MVP


class Scenario(BaseModel):
    """단일 견적 시나리오."""
    name: str = Field(..., min_length=1, description="시나리오 이름")
    description: str = Field("", description="시나리오 설명")
    features: list[str] = Field(default_factory=list, description="포함 기능")
    tech_stack: list[str] = Field(default_factory=list, description="기술 스택")
    timeline: str = Field("", description="예상 일정")
    total_cost: float = Field(..., ge=0, description="총 비용 (USD)")
    hourly_rate: float = Field(0.0, ge=0, description="시간당 단가 (USD)")
    total_hours: float = Field(0.0, ge=0, description="총 투입 시간")
    pros: list[str] = Field(default_factory=list)
    cons: list[str] = Field(default_factory=list)
    recommended: bool = False

    # 예산 제약 모드
    budget_constrained: bool = Field(False, description="예산 초과로 제약 표시가 붙었는지 여부")
    budget_disclaimer: Optional[str] = Field(None, description="예산 초과 시 안내 문구")


class ROIAnalysis(BaseModel):
    """투자 대비 효과 분석."""
    cost_of_doing_nothing: float = 0.0
    manual_operational_cost: float = 0.0
    projected_savings: float = 0.0
    payback_period_months: float = 0.0
    three_year_roi: float = 0.0
    methodology: Optional[str] = None


class EstimateResult(BaseModel):
    """견적 생성 결과 (AI 응답을 검증한 형태)."""
    scenario_a: Scenario
    scenario_b: Scenario
    roi_analysis: ROIAnalysis = Field(default_factory=ROIAnalysis)
    budget: Optional[float] = Field(None, description="적용된 예산 제약")

    def scenario(self, choice: ScenarioChoice) -> Scenario:
        return self.scenario_a if choice == ScenarioChoice.A else self.scenario_b

    def apply_budget(self, budget: Optional[float]) -> "EstimateResult":
        """
        예산 제약 적용.

        예산을 넘는 시나리오에는 budget_constrained 플래그와 안내 문구를 붙입니다.
        비용 자체는 임의로 깎지 않습니다 (근거 없는 숫자를 만들지 않기 위함).
        """
        self.budget = budget
        for scenario in (self.scenario_a, self.scenario_b):
            scenario.budget_constrained = False
            scenario.budget_disclaimer = None
            if budget is not None and scenario.total_cost > budget:
                scenario.budget_constrained = True
                scenario.budget_disclaimer = (
                    f"This scenario (${scenario.total_cost:,.0f}) exceeds the stated budget "
                    f"of ${budget:,.0f}. Scope must be reduced or phased to fit the budget."
                )
        return self

    def to_markdown(self) -> str:
        """마크다운 형식의 견적서 생성."""
        lines = ["# Dual-Scenario Estimate", ""]

        if self.budget is not None:
            lines.append(f"**Target budget**: ${self.budget:,.0f}")
            lines.append("")

        for label, scenario in (("A", self.scenario_a), ("B", self.scenario_b)):
            title = f"## Scenario {label}: {scenario.name}"
            if scenario.recommended:
                title += " (Recommended)"
            lines.append(title)
            lines.append("")
            if scenario.description:
                lines.append(scenario.description)
                lines.append("")

            lines.append("| Item | Value |")
            lines.append("|------|-------|")
            lines.append(f"| Total cost | ${scenario.total_cost:,.0f} |")
            lines.append(f"| Hourly rate | ${scenario.hourly_rate:,.0f}/hr |")
            lines.append(f"| Total hours | {scenario.total_hours:,.0f} |")
            lines.append(f"| Timeline | {scenario.timeline or '-'} |")
            lines.append("")

            if scenario.budget_constrained and scenario.budget_disclaimer:
                lines.append(f"> **Budget notice**: {scenario.budget_disclaimer}")
                lines.append("")

            if scenario.tech_stack:
                lines.append(f"**Tech stack**: {', '.join(scenario.tech_stack)}")
                lines.append("")
            if scenario.features:
                lines.append("**Features**:")
                for feature in scenario.features:
                    lines.append(f"- {feature}")
                lines.append("")
            if scenario.pros:
                lines.append("**Pros**: " + "; ".join(scenario.pros))
            if scenario.cons:
                lines.append("**Cons**: " + "; ".join(scenario.cons))
            lines.append("")

        roi = self.roi_analysis
        lines.append("## ROI Analysis")
        lines.append("")
        lines.append("| Metric | Value |")
        lines.append("|--------|-------|")
        lines.append(f"| Cost of doing nothing | ${roi.cost_of_doing_nothing:,.0f} |")
        lines.append(f"| Manual operational cost | ${roi.manual_operational_cost:,.0f} |")
        lines.append(f"| Projected savings | ${roi.projected_savings:,.0f} |")
        lines.append(f"| Payback period | {roi.payback_period_months:g} months |")
        lines.append(f"| 3-year ROI | {roi.three_year_roi:g}% |")
        if roi.methodology:
            lines.append("")
            lines.append(f"*{roi.methodology}*")

        return "\n".join(lines)
