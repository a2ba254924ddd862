"""
사용량(Usage) 및 API 상태(Health) 모델입니다.
"""

from enum import Enum
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
import uuid


class UsageRecord(BaseModel):
    """AI 호출 1회에 대한 기록 (append-only)."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    project_id: Optional[str] = Field(None, description="소유 프로젝트 ID")
    provider: str
    model: str
    operation: str = Field(..., description="작업 태그 (estimate, chat 등)")
    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)
    total_tokens: int = Field(0, ge=0)
    cost_usd: float = Field(0.0, ge=0, description="요율표로 계산한 비용")
    latency_ms: Optional[int] = None
    success: bool = True
    created_at: datetime = Field(default_factory=datetime.now)


class ProviderUsage(BaseModel):
    """프로바이더별 집계."""

    provider: str
    calls: int = 0
    failed_calls: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float = 0.0


class UsageSummary(BaseModel):
    """사용량 집계 결과. 기록이 없으면 모든 값이 0입니다."""

    project_id: Optional[str] = None
    total_calls: int = 0
    failed_calls: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_tokens: int = 0
    total_cost_usd: float = 0.0
    by_provider: list[ProviderUsage] = Field(default_factory=list)


class ApiHealthStatus(str, Enum):
    """프로바이더/서비스 상태."""
    ONLINE = "online"
    DEGRADED = "degraded"
    ERROR = "error"


class ApiHealth(BaseModel):
    """프로바이더별 마지막 상태. 호출이 끝날 때마다 덮어씁니다."""

    service: str
    status: ApiHealthStatus
    latency_ms: Optional[int] = None
    error_message: Optional[str] = None
    last_checked: datetime = Field(default_factory=datetime.now)
