"""
제안서 파이프라인 엔진 커스텀 예외 계층입니다.
각 컴포넌트별 구조화된 에러 코드와 메시지를 제공합니다.
"""

from typing import Optional, Any


class ProposalEngineError(Exception):
    """제안서 파이프라인 엔진 기본 예외 클래스."""

    def __init__(
        self,
        message: str,
        error_code: str = "ERR_UNKNOWN",
        details: Optional[Any] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class ValidationError(ProposalEngineError):
    """필수 입력값 누락/오류 (예: 이메일 발송 전 고객 이메일 없음). AI 호출 없이 바로 반환."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, error_code="ERR_VALID_001", details=details)


class ProjectNotFoundError(ProposalEngineError):
    """존재하지 않는 프로젝트 ID."""

    def __init__(self, project_id: str):
        super().__init__(
            f"프로젝트를 찾을 수 없습니다: {project_id}",
            error_code="ERR_NOT_FOUND_001",
            details={"project_id": project_id},
        )


class KnowledgeEntryNotFoundError(ProposalEngineError):
    """존재하지 않는 지식 항목 ID."""

    def __init__(self, entry_id: str):
        super().__init__(
            f"지식 항목을 찾을 수 없습니다: {entry_id}",
            error_code="ERR_NOT_FOUND_002",
            details={"entry_id": entry_id},
        )


class StageInvariantViolation(ProposalEngineError):
    """허용되지 않은 단계 전환. 프로젝트 상태는 변경되지 않습니다."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, error_code="ERR_STAGE_001", details=details)


class TemplateNotFoundError(ProposalEngineError):
    """등록되지 않은 프롬프트 템플릿."""

    def __init__(self, template_name: str):
        super().__init__(
            f"등록되지 않은 프롬프트 템플릿입니다: {template_name}",
            error_code="ERR_PROMPT_001",
            details={"template_name": template_name},
        )


class ProviderFailure(ProposalEngineError):
    """단일 프로바이더 시도 실패. 오케스트레이터 내부에서 다음 프로바이더로 복구됩니다."""

    def __init__(self, provider: str, message: str, details: Optional[Any] = None):
        self.provider = provider
        super().__init__(
            f"[{provider}] {message}", error_code="ERR_PROVIDER_001", details=details
        )


class OrchestrationExhausted(ProposalEngineError):
    """작업에 설정된 모든 프로바이더가 실패. 폴백 응답으로 대체됩니다."""

    def __init__(self, operation: str, attempts: Optional[list[dict]] = None):
        self.operation = operation
        self.attempts = attempts or []
        super().__init__(
            f"모든 프로바이더가 실패했습니다: {operation} ({len(self.attempts)}회 시도)",
            error_code="ERR_ORCH_001",
            details={"operation": operation, "attempts": self.attempts},
        )


class DeliveryError(ProposalEngineError):
    """이메일/에셋 등 외부 협력 서비스 실패."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, error_code="ERR_DELIVERY_001", details=details)


class PersistenceError(ProposalEngineError):
    """저장소 사용 불가. 현재 요청은 실패하며 부분 저장은 없습니다."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message, error_code="ERR_STORE_001", details=details)
