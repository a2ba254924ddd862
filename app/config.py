from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache


# 작업(operation)별 기본 프로바이더 순위
# - 추출/초안 작성: 저렴한 모델 우선
# - 견적: 품질 우선
DEFAULT_PROVIDER_RANKINGS: dict[str, list[str]] = {
    "input_processing": ["gemini", "openai", "claude"],
    "estimate": ["openai", "claude", "gemini"],
    "market_research": ["perplexity", "openai"],
    "chat": ["openai", "gemini", "claude"],
    "email": ["openai", "gemini", "claude"],
    "execution_guide": ["gemini", "claude", "openai"],
    "pm_breakdown": ["gemini", "openai", "claude"],
}

# 단계별로 재생성이 허용되는 작업
DEFAULT_REGENERATION_STAGES: dict[str, list[int]] = {
    "estimate": [1],
    "email": [2],
    "execution_guide": [3],
    "pm_breakdown": [4],
}


class Settings(BaseSettings):
    """
    애플리케이션의 설정을 관리하는 클래스입니다.
    환경 변수(.env 파일)에서 설정값을 읽어옵니다.
    """

    # AI 프로바이더 설정: 키가 비어 있으면 해당 프로바이더는 "미설정"으로 건너뜁니다.
    claude_cli_enabled: bool = True  # claude CLI가 PATH에 있을 때만 실제로 사용됨
    claude_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    perplexity_api_key: str = ""
    perplexity_model: str = "sonar-deep-research"

    # 오케스트레이션 설정
    provider_rankings: dict[str, list[str]] = Field(
        default_factory=lambda: dict(DEFAULT_PROVIDER_RANKINGS)
    )
    provider_timeout_seconds: float = 120.0  # 프로바이더 1회 시도당 제한 시간

    # 워크플로우 설정
    regeneration_stages: dict[str, list[int]] = Field(
        default_factory=lambda: dict(DEFAULT_REGENERATION_STAGES)
    )
    auto_advance_on_send: bool = True  # 이메일 발송 성공 시 3단계로 자동 진행
    knowledge_context_limit: int = 3  # 프롬프트에 주입할 지식 항목 최대 수

    # 입력 제한
    max_raw_input_chars: int = 50_000
    max_attachment_size_mb: int = 25
    max_attachments_per_project: int = 20

    # 저장소 및 외부 연동
    data_dir: str = "data"
    resend_api_key: str = ""
    email_from: str = "proposals@example.com"
    public_base_url: str = ""  # 응답의 상대 경로 URL을 절대 경로로 바꿀 때 사용

    # 서버 설정: 서버가 실행될 주소와 포트 번호
    host: str = "0.0.0.0"  # 모든 외부 접속 허용
    port: int = 8000
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])

    class Config:
        # 설정을 읽어올 파일 지정
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """
    설정을 가져오는 함수입니다.
    @lru_cache를 사용하여 한 번 읽은 설정은 메모리에 저장해두고 재사용합니다.
    """
    return Settings()
