"""
API 라우터 설정 파일입니다.
각 기능별로 나누어진 API 주소들을 하나로 모으는 역할을 합니다.
"""

from fastapi import APIRouter

from app.api.endpoints import health, projects, knowledge, usage

# 메인 API 라우터 생성
api_router = APIRouter()

# 헬스 체크 엔드포인트: 서버 및 프로바이더 상태 확인용 (/health)
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"]
)

# 프로젝트 엔드포인트: 생성, 단계 액션, 재생성, 대화, 내보내기 (/projects)
api_router.include_router(
    projects.router,
    prefix="/projects",
    tags=["projects"]
)

# 지식 베이스 엔드포인트: 승인된 산출물 관리 (/knowledge)
api_router.include_router(
    knowledge.router,
    prefix="/knowledge",
    tags=["knowledge"]
)

# 사용량 엔드포인트: 프로바이더별 비용 집계 (/usage)
api_router.include_router(
    usage.router,
    prefix="/usage",
    tags=["usage"]
)
