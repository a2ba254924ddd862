"""
헬스 체크(Health Check) 엔드포인트입니다.
서버 상태와 AI 프로바이더별 최근 호출 상태를 확인하는 용도입니다.
"""

from fastapi import APIRouter, Depends

from app.services.health import ApiHealthRegistry, get_health_registry
from app.services.orchestrator import ProviderOrchestrator, get_orchestrator

router = APIRouter()


@router.get("")
async def health_check():
    """
    기본 상태 확인 함수.
    서버가 켜져 있으면 {"status": "healthy"}를 반환합니다.
    """
    return {"status": "healthy"}


@router.get("/providers")
async def provider_health(
    registry: ApiHealthRegistry = Depends(get_health_registry),
    orchestrator: ProviderOrchestrator = Depends(get_orchestrator),
):
    """
    프로바이더 상태 확인 함수.
    각 프로바이더의 마지막 호출 결과(online/degraded/error)와
    작업별 프로바이더 순위, 설정 여부를 같이 보여줍니다.
    """
    statuses = await registry.all()
    return {
        "providers": [s.model_dump(mode="json") for s in statuses],
        "rankings": orchestrator.describe_rankings(),
    }


@router.post("/providers/reset")
async def reset_provider_health(
    registry: ApiHealthRegistry = Depends(get_health_registry),
):
    """관리자용 상태 초기화"""
    await registry.reset()
    return {"message": "프로바이더 상태가 초기화되었습니다"}
