"""Base generator class for all stage generators.

이 모듈은 단계별 생성기(브리프, 견적, 시장 조사, 이메일, 실행 가이드,
PM 분해, 대화)가 공통으로 사용하는 기본 기능을 제공합니다.

주요 기능:
- 템플릿 메서드 패턴을 통한 일관된 생성 흐름
- 프롬프트 템플릿 등록 및 조립 (PromptBuilder)
- 프로바이더 오케스트레이터 호출 및 응답 구조 검증
- 로깅 표준화
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import TypeVar, Generic, Any, Iterable, Optional

from app.models import Project
from app.services.orchestrator import ProviderOrchestrator, OrchestrationResult
from app.services.prompt_builder import PromptBuilder
from app.services.knowledge import KnowledgeService

# 제네릭 타입 변수
OutputT = TypeVar('OutputT')  # 검증된 출력 타입 (EstimateResult 등)

logger = logging.getLogger(__name__)


class BaseGenerator(ABC, Generic[OutputT]):
    """
    단계별 생성기 추상 베이스 클래스.

    Template Method 패턴을 사용하여 일관된 생성 흐름을 보장합니다:
    1. 시작 로깅
    2. 프롬프트 변수 구성 (서브클래스에서 구현)
    3. 템플릿 조립 → 오케스트레이터 실행
    4. 응답 구조 검증 (서브클래스에서 구현)
    5. 완료 로깅

    OrchestrationExhausted는 여기서 잡지 않고 호출자에게 전달합니다.
    폴백 여부는 StageWorkflowController가 결정합니다.

    Attributes:
        operation: 오케스트레이터 작업 이름이자 프롬프트 템플릿 이름
        template: 프롬프트 템플릿 본문
        untrusted_variables: 경계 태그로 감쌀 변수 이름
        _generator_name: 로깅에 사용되는 생성기 이름

    Example:
        class MyGenerator(BaseGenerator[MyOutput]):
            operation = "my_operation"
            template = MY_PROMPT
            _generator_name = "MyGenerator"

            async def _build_variables(self, project, **kwargs):
                return {"title": project.title}

            def _parse(self, text):
                return MyOutput.model_validate(parse_json_object(text))
    """

    # 서브클래스에서 오버라이드해야 하는 클래스 속성
    operation: str = ""
    template: str = ""
    untrusted_variables: Iterable[str] = ()
    _generator_name: str = "BaseGenerator"

    def __init__(
        self,
        orchestrator: ProviderOrchestrator,
        prompt_builder: PromptBuilder,
        knowledge: Optional[KnowledgeService] = None,
    ):
        """
        생성기 초기화. 템플릿이 아직 등록되지 않았으면 등록합니다.

        Args:
            orchestrator: 프로바이더 오케스트레이터
            prompt_builder: 공유 프롬프트 조립기
            knowledge: 지식 컨텍스트가 필요한 생성기만 사용
        """
        self.orchestrator = orchestrator
        self.prompt_builder = prompt_builder
        self.knowledge = knowledge

        if not self.prompt_builder.has_template(self.operation):
            self.prompt_builder.register(
                self.operation, self.template, untrusted=self.untrusted_variables
            )

    async def generate(self, project: Project, **kwargs: Any) -> OrchestrationResult:
        """
        생성 템플릿 메서드.

        Returns:
            OrchestrationResult (data에 검증된 OutputT가 들어 있음)

        Raises:
            OrchestrationExhausted: 모든 프로바이더 실패
        """
        logger.info(f"[{self._generator_name}] 생성 시작: {project.title}")
        start_time = datetime.now()

        try:
            variables = await self._build_variables(project, **kwargs)
            prompt = self.prompt_builder.build(self.operation, variables)
            result = await self.orchestrator.execute(
                self.operation,
                prompt,
                project_id=project.id,
                parser=self._parse,
            )

            elapsed = (datetime.now() - start_time).total_seconds()
            logger.info(
                f"[{self._generator_name}] 생성 완료: {elapsed:.1f}초 "
                f"({result.provider}/{result.model})"
            )
            return result

        except Exception as e:
            elapsed = (datetime.now() - start_time).total_seconds()
            logger.error(f"[{self._generator_name}] 생성 실패 ({elapsed:.1f}초): {e}")
            raise

    @abstractmethod
    async def _build_variables(self, project: Project, **kwargs: Any) -> dict:
        """프롬프트 변수 맵 구성 (서브클래스에서 구현)."""

    @abstractmethod
    def _parse(self, text: str) -> OutputT:
        """
        응답 구조 검증 (서브클래스에서 구현).
        구조가 맞지 않으면 ValueError 계열 예외를 던지며,
        오케스트레이터는 이를 해당 프로바이더의 실패로 처리합니다.
        """

    async def _knowledge_context(self, category: str) -> str:
        """지식 컨텍스트 문자열 (지식 서비스가 없으면 빈 문자열)."""
        if self.knowledge is None:
            return ""
        return await self.knowledge.build_context(category)

    @staticmethod
    def _require_text(text: str, min_length: int = 20) -> str:
        """자유 형식 텍스트 응답의 최소 요건 검사."""
        cleaned = text.strip()
        if len(cleaned) < min_length:
            raise ValueError(f"Response too short ({len(cleaned)} chars)")
        return cleaned
