"""
AI 프로바이더 오케스트레이터입니다.

작업(operation)마다 설정된 프로바이더 순위대로 한 번에 하나씩 호출하고,
실패하면 즉시 다음 프로바이더로 넘어갑니다 (병렬 호출 없음 → 비용 예측 가능).

호출 규칙:
┌──────────────────────┬──────────────────┬───────────────────────┐
│ 결과                 │ UsageRecord      │ ApiHealth             │
├──────────────────────┼──────────────────┼───────────────────────┤
│ 미설정 (키 없음)     │ 기록 안 함       │ error "not configured"│
│ 실패 (예외/타임아웃/ │ 1건 (0토큰 가능) │ degraded              │
│  빈 응답/검증 실패)  │                  │                       │
│ 성공                 │ 1건              │ online                │
└──────────────────────┴──────────────────┴───────────────────────┘

모든 프로바이더가 실패하면 OrchestrationExhausted를 발생시키고,
호출자(StageWorkflowController)가 폴백 응답으로 대체합니다.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from app.config import get_settings
from app.exceptions import OrchestrationExhausted, ProviderFailure
from app.models import ApiHealthStatus
from app.services.health import ApiHealthRegistry
from app.services.providers import BaseProvider
from app.services.usage_tracker import UsageTracker, estimate_tokens

logger = logging.getLogger(__name__)


class OrchestrationResult(BaseModel):
    """성공한 호출의 결과."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    content: str
    data: Any = None  # parser가 있으면 검증된 결과
    provider: str
    model: str
    latency_ms: int


class ProviderOrchestrator:
    """작업별 프로바이더 순위에 따라 호출-폴백 프로토콜을 실행합니다."""

    def __init__(
        self,
        providers: Iterable[BaseProvider],
        usage_tracker: UsageTracker,
        health: ApiHealthRegistry,
        rankings: Optional[dict[str, list[str]]] = None,
        timeout_seconds: Optional[float] = None,
    ):
        settings = get_settings()
        self.providers: dict[str, BaseProvider] = {p.name: p for p in providers}
        self.usage_tracker = usage_tracker
        self.health = health
        # 순위 설정은 실행 중 읽기 전용
        self.rankings: dict[str, list[str]] = dict(
            rankings if rankings is not None else settings.provider_rankings
        )
        self.timeout_seconds = timeout_seconds or settings.provider_timeout_seconds

    def list_operations(self) -> list[str]:
        return sorted(self.rankings)

    def ranked_providers(self, operation: str) -> list[str]:
        return list(self.rankings.get(operation, []))

    def describe_rankings(self) -> dict[str, list[dict]]:
        """작업별 순위와 각 프로바이더 설정 여부 (헬스 화면용)."""
        description = {}
        for operation in self.list_operations():
            description[operation] = [
                {
                    "provider": name,
                    "model": self.providers[name].model if name in self.providers else None,
                    "configured": name in self.providers and self.providers[name].is_configured(),
                }
                for name in self.rankings[operation]
            ]
        return description

    async def execute(
        self,
        operation: str,
        prompt: str,
        *,
        project_id: Optional[str] = None,
        parser: Optional[Callable[[str], Any]] = None,
    ) -> OrchestrationResult:
        """
        작업 실행.

        Args:
            operation: 작업 이름 (input_processing, estimate, chat ...)
            prompt: PromptBuilder가 만든 최종 프롬프트
            project_id: 사용량 기록용 프로젝트 ID
            parser: 응답 구조 검증 함수. 예외를 던지면 해당 시도는 실패로 처리

        Raises:
            OrchestrationExhausted: 설정된 모든 프로바이더가 실패
        """
        ranking = self.ranked_providers(operation)
        if not ranking:
            logger.error(f"[Orchestrator] 순위가 설정되지 않은 작업: {operation}")
            raise OrchestrationExhausted(operation, [])

        attempts: list[dict] = []

        for name in ranking:
            provider = self.providers.get(name)
            if provider is None or not provider.is_configured():
                # 미설정 프로바이더는 패널티 없이 건너뜀 (상태만 기록)
                reason = "not registered" if provider is None else "not configured"
                logger.info(f"[Orchestrator] {operation}: {name} 건너뜀 ({reason})")
                await self.health.update(name, ApiHealthStatus.ERROR, error_message=reason)
                attempts.append({"provider": name, "status": "skipped", "error": reason})
                continue

            result = await self._attempt(provider, operation, prompt, project_id, parser)
            if isinstance(result, OrchestrationResult):
                return result

            attempts.append({
                "provider": name,
                "model": provider.model,
                "status": "failed",
                "error": result,
            })

        logger.error(
            f"[Orchestrator] {operation}: 모든 프로바이더 실패 "
            f"({', '.join(a['provider'] for a in attempts)})"
        )
        raise OrchestrationExhausted(operation, attempts)

    async def _attempt(
        self,
        provider: BaseProvider,
        operation: str,
        prompt: str,
        project_id: Optional[str],
        parser: Optional[Callable[[str], Any]],
    ):
        """
        프로바이더 1회 시도.
        성공하면 OrchestrationResult, 실패하면 에러 메시지 문자열을 반환합니다.
        """
        start = time.monotonic()
        text: Optional[str] = None
        input_tokens = 0
        output_tokens = 0

        try:
            # 타임아웃 시 진행 중인 호출은 취소되고 부분 출력은 버려짐
            response = await asyncio.wait_for(
                provider.generate_content(prompt, operation),
                timeout=self.timeout_seconds,
            )
            text = response.text
            input_tokens = response.input_tokens if response.input_tokens is not None else estimate_tokens(prompt)
            output_tokens = response.output_tokens if response.output_tokens is not None else estimate_tokens(text)

            if not text or not text.strip():
                raise ProviderFailure(provider.name, "빈 응답")

            data = None
            if parser is not None:
                try:
                    data = parser(text)
                except (ValueError, TypeError, KeyError, PydanticValidationError) as e:
                    raise ProviderFailure(provider.name, f"응답 구조 검증 실패: {e}")

        except asyncio.TimeoutError:
            error = f"[{provider.name}] 타임아웃 ({self.timeout_seconds:.0f}초)"
        except ProviderFailure as e:
            error = e.message
        except Exception as e:
            # SDK별 예외는 모두 단일 프로바이더 실패로 취급
            error = f"[{provider.name}] {type(e).__name__}: {e}"
        else:
            latency_ms = int((time.monotonic() - start) * 1000)
            await self.usage_tracker.record(
                project_id,
                provider.name,
                provider.model,
                operation,
                input_tokens,
                output_tokens,
                latency_ms=latency_ms,
                success=True,
            )
            await self.health.update(provider.name, ApiHealthStatus.ONLINE, latency_ms=latency_ms)
            logger.info(f"[Orchestrator] {operation}: {provider.name}/{provider.model} 성공 ({latency_ms}ms)")
            return OrchestrationResult(
                content=text,
                data=data,
                provider=provider.name,
                model=provider.model,
                latency_ms=latency_ms,
            )

        latency_ms = int((time.monotonic() - start) * 1000)
        # 응답을 받지 못한 시도는 0토큰으로 기록
        if text is None:
            input_tokens = output_tokens = 0
        await self.usage_tracker.record(
            project_id,
            provider.name,
            provider.model,
            operation,
            input_tokens,
            output_tokens,
            latency_ms=latency_ms,
            success=False,
        )
        await self.health.update(
            provider.name, ApiHealthStatus.DEGRADED, latency_ms=latency_ms, error_message=error
        )
        logger.warning(f"[Orchestrator] {operation}: 시도 실패 → {error}")
        return error


# 싱글톤 인스턴스
_orchestrator: Optional[ProviderOrchestrator] = None


def get_orchestrator() -> ProviderOrchestrator:
    """설정 기반 기본 프로바이더로 구성된 오케스트레이터를 반환합니다."""
    global _orchestrator
    if _orchestrator is None:
        from app.services.health import get_health_registry
        from app.services.providers import build_default_providers
        from app.services.usage_tracker import get_usage_tracker

        _orchestrator = ProviderOrchestrator(
            providers=build_default_providers(),
            usage_tracker=get_usage_tracker(),
            health=get_health_registry(),
        )
    return _orchestrator
