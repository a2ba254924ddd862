"""
제안서 파이프라인 엔진의 메인 진입점 파일입니다.
웹 서버 애플리케이션을 생성하고 설정하는 역할을 담당합니다.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.api.router import api_router
from app.exceptions import (
    ProposalEngineError,
    ValidationError,
    ProjectNotFoundError,
    KnowledgeEntryNotFoundError,
    StageInvariantViolation,
    DeliveryError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

# 예외 종류 → HTTP 상태 코드
ERROR_STATUS_CODES = [
    (ValidationError, 400),
    (ProjectNotFoundError, 404),
    (KnowledgeEntryNotFoundError, 404),
    (StageInvariantViolation, 409),
    (DeliveryError, 502),
    (PersistenceError, 503),
]


def status_code_for(exc: ProposalEngineError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션의 생명주기(시작과 종료)를 관리하는 함수입니다.

    서버가 시작될 때 설정을 불러오고 프로바이더 순위를 로그로 남깁니다.
    """
    settings = get_settings()
    logger.info(f"제안서 파이프라인 엔진이 다음 주소에서 시작됩니다: {settings.host}:{settings.port}")
    for operation, providers in settings.provider_rankings.items():
        logger.info(f"[Orchestrator] {operation}: {' → '.join(providers)}")

    yield

    logger.info("제안서 파이프라인 엔진이 종료됩니다")


def create_app() -> FastAPI:
    """
    FastAPI 웹 애플리케이션을 생성하고 설정하는 함수입니다.

    주요 기능:
    1. 기본 앱 정보 설정 (제목, 설명 등)
    2. CORS 설정 (프론트엔드와의 통신 허용 설정)
    3. 커스텀 예외 → 구조화된 JSON 응답 변환
    4. API 라우터 연결 (기능별 주소 연결)
    """
    settings = get_settings()

    app = FastAPI(
        title="제안서 파이프라인 엔진",
        description="고객 요청을 견적, 제안 자료, 실행 가이드, PM 분해로 이어가는 5단계 AI 파이프라인",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS 미들웨어 설정: 프론트엔드 웹페이지가 이 서버에 접속할 수 있도록 허용하는 설정입니다.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 글로벌 예외 핸들러: 커스텀 예외를 구조화된 JSON 응답으로 변환
    @app.exception_handler(ProposalEngineError)
    async def engine_error_handler(request: Request, exc: ProposalEngineError):
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error(f"[{exc.error_code}] {exc.message}")
        return JSONResponse(
            status_code=status_code,
            content={
                "error_code": exc.error_code,
                "message": exc.message,
                "details": exc.details,
                "timestamp": datetime.now().isoformat(),
            },
        )

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        logger.error(f"처리되지 않은 예외: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error_code": "ERR_INTERNAL",
                "message": "내부 서버 오류가 발생했습니다",
                "details": None,
                "timestamp": datetime.now().isoformat(),
            },
        )

    # API 라우터 포함: /api/v1 주소 아래에 모든 기능을 연결합니다.
    app.include_router(api_router, prefix="/api/v1")

    return app


# 애플리케이션 인스턴스 생성
app = create_app()


@app.get("/")
async def root():
    """
    루트 엔드포인트: 서버의 기본 정보를 반환합니다.
    """
    return {
        "name": "제안서 파이프라인 엔진",
        "version": "1.0.0",
        "description": "AI 프로바이더 오케스트레이션 및 단계 워크플로우",
        "docs": "/docs",
        "api": "/api/v1",
    }


# 이 파일을 직접 실행했을 때 서버를 구동시키는 코드입니다.
if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
