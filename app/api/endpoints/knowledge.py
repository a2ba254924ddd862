"""
지식 베이스 관리 API입니다 (관리자용).
승인된 견적/시장 조사 항목을 조회하거나 개별 삭제합니다.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from app.models import KnowledgeCategory
from app.services.knowledge import KnowledgeService, get_knowledge_service

router = APIRouter()


@router.get("")
async def list_entries(
    category: Optional[KnowledgeCategory] = None,
    knowledge: KnowledgeService = Depends(get_knowledge_service),
) -> dict:
    """지식 항목 목록 (최신순)"""
    entries = await knowledge.list_entries(category.value if category else None)
    return {
        "total": len(entries),
        "entries": [e.model_dump(mode="json") for e in entries],
    }


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    knowledge: KnowledgeService = Depends(get_knowledge_service),
) -> dict:
    await knowledge.delete_entry(entry_id)
    return {"message": "지식 항목이 삭제되었습니다", "entry_id": entry_id}
