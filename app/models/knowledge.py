"""Knowledge base entry model (append-only)."""

from enum import Enum
from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field
import uuid


class KnowledgeCategory(str, Enum):
    """지식 항목 분류."""
    APPROVED_ESTIMATE = "approved_estimate"
    ESTIMATE = "estimate"
    RESEARCH = "research"


class KnowledgeEntry(BaseModel):
    """
    승인 이벤트 이후에만 생성되는 불변 지식 항목.
    생성 후 수정되지 않으며 관리자만 개별 삭제할 수 있습니다.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="항목 ID")
    category: str = Field(..., min_length=1, description="분류 (approved_estimate, research 등)")
    content: str = Field(..., description="프롬프트에 주입될 본문")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="출처 프로젝트 ID, 시나리오 스냅샷, 승인 시각 등",
    )
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}
