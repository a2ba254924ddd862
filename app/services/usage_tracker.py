"""
AI 호출 사용량(토큰/비용/지연 시간) 기록 서비스입니다.

순수한 회계 기능만 담당하며 흐름 제어에는 관여하지 않습니다.
모든 기록은 append-only이며 조회 시 집계합니다.
"""

import logging
import math
from typing import Optional, TYPE_CHECKING

from app.models import UsageRecord, ProviderUsage, UsageSummary

if TYPE_CHECKING:
    from app.services.file_storage import FileStorage

logger = logging.getLogger(__name__)


# 100만 토큰당 USD 요율 (input, output)
# 모델이 표에 없으면 프로바이더의 "default" 행을 사용합니다.
RATE_TABLE: dict[str, dict[str, dict[str, float]]] = {
    "gemini": {
        "gemini-2.5-flash": {"input": 0.075, "output": 0.3},
        "default": {"input": 0.1, "output": 0.4},
    },
    "claude": {
        "claude-3-5-sonnet": {"input": 3.0, "output": 15.0},
        "default": {"input": 3.0, "output": 15.0},
    },
    "openai": {
        "gpt-4o": {"input": 2.5, "output": 10.0},
        "gpt-4o-mini": {"input": 0.15, "output": 0.6},
        "default": {"input": 2.5, "output": 10.0},
    },
    "perplexity": {
        "sonar-deep-research": {"input": 2.0, "output": 8.0},
        "default": {"input": 2.0, "output": 8.0},
    },
}

# 알 수 없는 프로바이더용 요율
UNKNOWN_PROVIDER_RATE = {"input": 0.0, "output": 0.0}


def estimate_tokens(text: Optional[str]) -> int:
    """토큰 수 근사치 (약 4글자 = 1토큰)."""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


def get_rate(provider: str, model: str) -> dict[str, float]:
    """프로바이더/모델 요율 조회 (모델 → default → 0)."""
    provider_rates = RATE_TABLE.get(provider)
    if provider_rates is None:
        return UNKNOWN_PROVIDER_RATE
    return provider_rates.get(model, provider_rates["default"])


def calculate_cost(provider: str, model: str, input_tokens: int, output_tokens: int) -> float:
    """토큰 수로 비용(USD) 계산."""
    rate = get_rate(provider, model)
    cost = (input_tokens / 1_000_000) * rate["input"] + (output_tokens / 1_000_000) * rate["output"]
    return round(cost, 6)


class UsageTracker:
    """UsageRecord 기록 및 집계."""

    def __init__(self, storage: "FileStorage"):
        self.storage = storage

    async def record(
        self,
        project_id: Optional[str],
        provider: str,
        model: str,
        operation: str,
        input_tokens: int,
        output_tokens: int,
        latency_ms: Optional[int] = None,
        success: bool = True,
    ) -> UsageRecord:
        """호출 1회 기록. 실패한 시도는 0토큰/0비용으로 기록될 수 있습니다."""
        record = UsageRecord(
            project_id=project_id,
            provider=provider,
            model=model,
            operation=operation,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
            cost_usd=calculate_cost(provider, model, input_tokens, output_tokens),
            latency_ms=latency_ms,
            success=success,
        )
        await self.storage.append_usage(record)

        logger.debug(
            f"[Usage] {provider}/{model} {operation}: "
            f"in={input_tokens} out={output_tokens} ${record.cost_usd:.6f} success={success}"
        )
        return record

    async def list_records(self, project_id: Optional[str] = None) -> list[UsageRecord]:
        return await self.storage.list_usage(project_id=project_id)

    async def summarize_project(self, project_id: str) -> UsageSummary:
        """프로젝트 단위 집계. 기록이 없으면 0으로 채운 결과를 반환합니다."""
        records = await self.storage.list_usage(project_id=project_id)
        summary = self._aggregate(records)
        summary.project_id = project_id
        return summary

    async def summarize_by_provider(self) -> UsageSummary:
        """전체 기록을 프로바이더별로 집계."""
        records = await self.storage.list_usage()
        return self._aggregate(records)

    @staticmethod
    def _aggregate(records: list[UsageRecord]) -> UsageSummary:
        summary = UsageSummary()
        per_provider: dict[str, ProviderUsage] = {}

        for record in records:
            summary.total_calls += 1
            summary.total_input_tokens += record.input_tokens
            summary.total_output_tokens += record.output_tokens
            summary.total_tokens += record.total_tokens
            summary.total_cost_usd += record.cost_usd
            if not record.success:
                summary.failed_calls += 1

            usage = per_provider.setdefault(record.provider, ProviderUsage(provider=record.provider))
            usage.calls += 1
            usage.input_tokens += record.input_tokens
            usage.output_tokens += record.output_tokens
            usage.total_tokens += record.total_tokens
            usage.cost_usd += record.cost_usd
            if not record.success:
                usage.failed_calls += 1

        summary.total_cost_usd = round(summary.total_cost_usd, 6)
        for usage in per_provider.values():
            usage.cost_usd = round(usage.cost_usd, 6)
        summary.by_provider = sorted(per_provider.values(), key=lambda u: u.provider)
        return summary


# 싱글톤 인스턴스
_usage_tracker: Optional[UsageTracker] = None


def get_usage_tracker() -> UsageTracker:
    global _usage_tracker
    if _usage_tracker is None:
        from app.services.file_storage import get_file_storage

        _usage_tracker = UsageTracker(get_file_storage())
    return _usage_tracker
