"""AI 프로바이더 공통 인터페이스."""

from abc import ABC, abstractmethod
from typing import Optional
from pydantic import BaseModel, Field


class ProviderResponse(BaseModel):
    """프로바이더 호출 결과. 토큰 수를 알려주지 않는 프로바이더는 None."""

    text: str
    input_tokens: Optional[int] = Field(None, ge=0)
    output_tokens: Optional[int] = Field(None, ge=0)


class BaseProvider(ABC):
    """
    교체 가능한 AI 프로바이더의 기본 클래스.

    Attributes:
        name: 랭킹 설정과 사용량 기록에 쓰이는 프로바이더 ID
        model: 호출할 모델 ID
    """

    name: str = "base"

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    def is_configured(self) -> bool:
        """자격 증명이 설정되어 있는지 여부. False면 오케스트레이터가 건너뜁니다."""

    @abstractmethod
    async def generate_content(self, prompt: str, operation: str) -> ProviderResponse:
        """
        프롬프트 실행.

        Raises:
            ProviderFailure: 호출 실패
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r})"
