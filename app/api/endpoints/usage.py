"""
AI 사용량/비용 집계 API입니다.
"""

from fastapi import APIRouter, Depends

from app.services.usage_tracker import UsageTracker, get_usage_tracker

router = APIRouter()


@router.get("/providers")
async def usage_by_provider(
    tracker: UsageTracker = Depends(get_usage_tracker),
) -> dict:
    """전체 프로바이더별 호출 수, 토큰, 비용 합계"""
    summary = await tracker.summarize_by_provider()
    return summary.model_dump(mode="json")
