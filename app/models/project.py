"""
프로젝트(Project) 데이터 모델입니다.
프로젝트는 모든 단계별 산출물을 소유하는 중심 집합체이며,
변경은 StageWorkflowController를 통해서만 이루어집니다.
"""

from enum import Enum
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, model_validator
import uuid

from .estimate import Scenario, ROIAnalysis, ScenarioChoice
from .breakdown import PMBreakdown


class ProjectStatus(str, Enum):
    """
    프로젝트 진행 상태입니다.
    """

    DRAFT = "draft"                             # 1단계: 입력 처리 중
    ESTIMATE_GENERATED = "estimate_generated"   # 1단계: 견적 생성 완료
    ASSETS_READY = "assets_ready"               # 2단계: 제안서/보고서 준비 완료
    EMAIL_SENT = "email_sent"                   # 2단계: 제안 메일 발송
    ACCEPTED = "accepted"                       # 3단계: 실행 가이드
    IN_PROGRESS = "in_progress"                 # 4~5단계: PM 분해 및 진행
    COMPLETED = "completed"                     # 5단계: 최종 승인 완료


# 단계 정의 (번호 → 이름)
STAGES: dict[int, str] = {
    1: "Input Processing",
    2: "Assets",
    3: "Execution Guides",
    4: "PM Breakdown",
    5: "Completion",
}
FINAL_STAGE = 5


class ProjectBrief(BaseModel):
    """원본 입력에서 추출한 구조화된 브리프."""

    mission: str = Field("", description="프로젝트의 상위 목적 (why)")
    objectives: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    client_name: Optional[str] = None
    estimated_budget: Optional[float] = Field(None, ge=0)
    region: Optional[str] = None
    timeline: Optional[str] = None
    tech_preferences: list[str] = Field(default_factory=list)
    missing_data: bool = Field(False, description="정보가 부족하여 견적을 낼 수 없는 상태")
    missing_fields: list[str] = Field(default_factory=list, description="보충이 필요한 필드")


class Attachment(BaseModel):
    """첨부 파일 메타데이터. 파일 자체는 외부 저장소에 있습니다."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    filename: str
    mime_type: str
    size: int = Field(..., ge=0)
    url: str


class ChatMessage(BaseModel):
    """프로젝트 대화 메시지."""

    role: str = Field(..., description="user 또는 assistant")
    content: str
    stage: int
    is_fallback: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class StageEvent(BaseModel):
    """단계 전환/재생성 이력 한 건."""

    action: str
    from_stage: int
    to_stage: int
    status: str
    degraded: bool = False  # 폴백 콘텐츠가 사용되었는지 여부
    message: str = ""
    created_at: datetime = Field(default_factory=datetime.now)


class Project(BaseModel):
    """
    제안서 파이프라인의 중심 집합체입니다.
    하나의 고객 요청이 하나의 Project가 됩니다.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="프로젝트 고유 ID")
    title: str = "Untitled project"
    client_name: Optional[str] = None
    client_email: Optional[str] = None

    current_stage: int = Field(1, ge=1, le=FINAL_STAGE)
    status: ProjectStatus = ProjectStatus.DRAFT

    # 1단계: 입력 및 견적
    raw_input: str = ""
    budget: Optional[float] = Field(None, ge=0, description="예산 제약 (있으면 견적이 제약 모드로 생성됨)")
    region: Optional[str] = None
    brief: Optional[ProjectBrief] = None
    research_markdown: Optional[str] = None
    estimate_markdown: Optional[str] = None
    scenario_a: Optional[Scenario] = None
    scenario_b: Optional[Scenario] = None
    roi_analysis: Optional[ROIAnalysis] = None
    selected_scenario: Optional[ScenarioChoice] = None

    # 2단계: 에셋 및 메일
    email_content: Optional[str] = None
    email_sent_at: Optional[datetime] = None
    proposal_pdf_url: Optional[str] = None
    internal_report_pdf_url: Optional[str] = None
    presentation_url: Optional[str] = None

    # 3~4단계: 실행 가이드 및 PM 분해
    execution_guide_a: Optional[str] = None  # High-Code
    execution_guide_b: Optional[str] = None  # No-Code
    pm_breakdown: Optional[PMBreakdown] = None

    attachments: list[Attachment] = Field(default_factory=list)
    messages: list[ChatMessage] = Field(default_factory=list)

    # 폴백(degraded) 콘텐츠가 들어 있는 필드 목록
    fallback_fields: list[str] = Field(default_factory=list)
    history: list[StageEvent] = Field(default_factory=list)

    final_approved_at: Optional[datetime] = None
    archived: bool = False
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def _check_completion(self) -> "Project":
        """완료 상태는 5단계 + 최종 승인 이벤트가 있을 때만 가능합니다."""
        if self.status == ProjectStatus.COMPLETED and (
            self.current_stage != FINAL_STAGE or self.final_approved_at is None
        ):
            raise ValueError("completed 상태는 5단계에서 최종 승인 후에만 가능합니다")
        return self

    @property
    def has_scenarios(self) -> bool:
        return self.scenario_a is not None and self.scenario_b is not None

    @property
    def is_degraded(self) -> bool:
        return bool(self.fallback_fields)

    def selected(self) -> Optional[Scenario]:
        """선택된 시나리오 반환."""
        if self.selected_scenario == ScenarioChoice.A:
            return self.scenario_a
        if self.selected_scenario == ScenarioChoice.B:
            return self.scenario_b
        return None

    def mark_fallback(self, *fields: str):
        """해당 필드에 폴백 콘텐츠가 저장되었음을 표시"""
        for name in fields:
            if name not in self.fallback_fields:
                self.fallback_fields.append(name)

    def clear_fallback(self, *fields: str):
        """해당 필드가 모델 생성 콘텐츠로 교체되었음을 표시"""
        self.fallback_fields = [f for f in self.fallback_fields if f not in fields]

    def record_event(
        self,
        action: str,
        from_stage: int,
        degraded: bool = False,
        message: str = "",
    ):
        """단계 이력 기록"""
        self.history.append(StageEvent(
            action=action,
            from_stage=from_stage,
            to_stage=self.current_stage,
            status=self.status.value,
            degraded=degraded,
            message=message,
        ))
        self.updated_at = datetime.now()

    def get_progress(self) -> dict:
        """현재 진행률 정보를 계산하여 반환합니다."""
        completed = self.status == ProjectStatus.COMPLETED
        done_stages = FINAL_STAGE if completed else self.current_stage - 1
        return {
            "current_stage": self.current_stage,
            "stage_name": STAGES[self.current_stage],
            "status": self.status.value,
            "progress_percent": int((done_stages / FINAL_STAGE) * 100),
            "degraded_fields": list(self.fallback_fields),
        }
