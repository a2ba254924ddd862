"""PM breakdown models (phases, tasks, checklists)."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """작업 상태."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class ChecklistItem(BaseModel):
    """작업 체크리스트 항목."""
    id: str = Field(..., min_length=1, description="항목 ID")
    action: str = Field(..., min_length=1, description="수행할 행동")
    completed: bool = False


class PMTask(BaseModel):
    """단계 내 개별 작업."""
    id: str = Field(..., min_length=1, description="작업 ID")
    name: str = Field(..., min_length=1, description="작업명")
    description: str = Field("", description="작업 설명")
    estimated_hours: float = Field(0.0, ge=0, description="예상 공수 (시간)")
    assignee: Optional[str] = Field(None, description="담당 역할")
    status: TaskStatus = TaskStatus.PENDING
    checklist: list[ChecklistItem] = Field(default_factory=list, description="체크리스트")


class PMPhase(BaseModel):
    """프로젝트 단계."""
    phase_number: int = Field(..., ge=1, description="단계 순서")
    phase_name: str = Field(..., min_length=1, description="단계명")
    objectives: list[str] = Field(default_factory=list)
    deliverables: list[str] = Field(default_factory=list)
    tasks: list[PMTask] = Field(..., min_length=1, description="작업 목록")
    duration_days: int = Field(0, ge=0, description="기간 (일)")
    dependencies: list[str] = Field(default_factory=list, description="선행 단계명")

    @property
    def total_hours(self) -> float:
        """총 예상 공수."""
        return sum(task.estimated_hours for task in self.tasks)


class PMBreakdown(BaseModel):
    """PM 작업 분해 문서. 구조가 맞지 않는 AI 응답은 검증 단계에서 거부됩니다."""

    phases: list[PMPhase] = Field(..., min_length=1, description="프로젝트 단계")

    @property
    def total_hours(self) -> float:
        return sum(phase.total_hours for phase in self.phases)

    @property
    def total_tasks(self) -> int:
        return sum(len(phase.tasks) for phase in self.phases)

    def to_markdown(self) -> str:
        """마크다운 형식의 PM 분해 문서 생성."""
        lines = ["# Project Management Breakdown", ""]
        lines.append(
            f"**Phases**: {len(self.phases)} | **Tasks**: {self.total_tasks} | "
            f"**Estimated effort**: {self.total_hours:.0f}h"
        )
        lines.append("")

        for phase in sorted(self.phases, key=lambda p: p.phase_number):
            lines.append(f"## Phase {phase.phase_number}: {phase.phase_name}")
            lines.append("")
            if phase.duration_days:
                lines.append(f"**Duration**: {phase.duration_days} days")
            if phase.dependencies:
                lines.append(f"**Depends on**: {', '.join(phase.dependencies)}")
            if phase.objectives:
                lines.append("")
                lines.append("**Objectives**:")
                for objective in phase.objectives:
                    lines.append(f"- {objective}")
            if phase.deliverables:
                lines.append("")
                lines.append("**Deliverables**:")
                for deliverable in phase.deliverables:
                    lines.append(f"- {deliverable}")
            lines.append("")

            for task in phase.tasks:
                assignee = f" ({task.assignee})" if task.assignee else ""
                lines.append(f"### {task.id} {task.name}{assignee} - {task.estimated_hours:.0f}h")
                if task.description:
                    lines.append(task.description)
                for item in task.checklist:
                    mark = "x" if item.completed else " "
                    lines.append(f"- [{mark}] {item.action}")
                lines.append("")

        return "\n".join(lines)
