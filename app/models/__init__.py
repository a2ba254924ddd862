"""Data models for the proposal pipeline engine."""

from .estimate import ScenarioChoice, Scenario, ROIAnalysis, EstimateResult
from .breakdown import TaskStatus, ChecklistItem, PMTask, PMPhase, PMBreakdown
from .project import (
    ProjectStatus,
    ProjectBrief,
    Attachment,
    ChatMessage,
    StageEvent,
    Project,
    STAGES,
    FINAL_STAGE,
)
from .knowledge import KnowledgeCategory, KnowledgeEntry
from .usage import (
    UsageRecord,
    ProviderUsage,
    UsageSummary,
    ApiHealthStatus,
    ApiHealth,
)
from .workflow import WorkflowAction, RegenerationTarget, ActionPayload

__all__ = [
    # Estimate models
    "ScenarioChoice",
    "Scenario",
    "ROIAnalysis",
    "EstimateResult",
    # PM breakdown models
    "TaskStatus",
    "ChecklistItem",
    "PMTask",
    "PMPhase",
    "PMBreakdown",
    # Project models
    "ProjectStatus",
    "ProjectBrief",
    "Attachment",
    "ChatMessage",
    "StageEvent",
    "Project",
    "STAGES",
    "FINAL_STAGE",
    # Knowledge models
    "KnowledgeCategory",
    "KnowledgeEntry",
    # Usage / health models
    "UsageRecord",
    "ProviderUsage",
    "UsageSummary",
    "ApiHealthStatus",
    "ApiHealth",
    # Workflow models
    "WorkflowAction",
    "RegenerationTarget",
    "ActionPayload",
]
