"""워크플로우 액션 요청 모델."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from .estimate import ScenarioChoice


class WorkflowAction(str, Enum):
    """StageWorkflowController가 처리하는 사용자/관리자 액션."""
    UPDATE_BRIEF = "update_brief"
    SELECT_SCENARIO = "select_scenario"
    APPROVE = "approve"
    SEND_EMAIL = "send_email"
    ADVANCE = "advance"
    FINAL_APPROVE = "final_approve"


class RegenerationTarget(str, Enum):
    """재생성 가능한 작업."""
    ESTIMATE = "estimate"
    EMAIL = "email"
    EXECUTION_GUIDE = "execution_guide"
    PM_BREAKDOWN = "pm_breakdown"


class ActionPayload(BaseModel):
    """액션별 부가 입력. 사용하지 않는 필드는 무시됩니다."""

    # update_brief
    budget: Optional[float] = Field(None, ge=0)
    region: Optional[str] = None
    details: Optional[str] = Field(None, description="원본 입력에 덧붙일 추가 설명")
    client_email: Optional[str] = None
    client_name: Optional[str] = None

    # select_scenario
    scenario: Optional[ScenarioChoice] = None

    # send_email
    email_subject: Optional[str] = None
    email_body: Optional[str] = None

    # advance
    target_stage: Optional[int] = Field(None, ge=1, le=5)
    admin: bool = Field(False, description="관리자 권한 (이메일 미발송 상태에서도 진행 허용)")
    force: bool = Field(False, description="관리자 강제 진행 (폴백 콘텐츠여도 단계 이동)")
