"""
지식 베이스 서비스입니다.

승인된 산출물(견적, 시장 조사)을 지식 항목으로 쌓아두고,
이후 생성 프롬프트에 참고 컨텍스트로 주입합니다.
조회 범위는 전체 프로젝트 공통(global)입니다.
"""

import logging
from datetime import datetime
from typing import AsyncIterator, Optional, TYPE_CHECKING

from app.config import get_settings
from app.models import Project, KnowledgeEntry, KnowledgeCategory
from app.exceptions import KnowledgeEntryNotFoundError, PersistenceError, StageInvariantViolation

if TYPE_CHECKING:
    from app.services.file_storage import FileStorage

logger = logging.getLogger(__name__)

# 프롬프트에 주입할 항목 하나의 최대 길이
MAX_ENTRY_CHARS = 4000


class KnowledgeService:
    """지식 항목 색인 및 조회."""

    def __init__(self, storage: "FileStorage"):
        self.storage = storage

    async def index(self, project: Project) -> list[KnowledgeEntry]:
        """
        승인 이벤트 시 호출. 현재 승인된 내용을 지식 항목으로 추가합니다.

        같은 프로젝트로 여러 번 호출하면 중복 항목이 생길 수 있으나,
        새 항목은 항상 현재 승인된 내용을 반영합니다.

        Returns:
            새로 추가된 항목 목록 (approved_estimate 1개 + research 0~1개)
        """
        if not project.estimate_markdown or not project.has_scenarios:
            raise StageInvariantViolation(
                "승인된 견적이 없어 지식 베이스에 색인할 수 없습니다",
                details={"project_id": project.id},
            )

        approved_at = datetime.now().isoformat()
        selected = project.selected()
        base_metadata = {
            "project_id": project.id,
            "project_title": project.title,
            "approved_at": approved_at,
        }

        entries = [
            KnowledgeEntry(
                category=KnowledgeCategory.APPROVED_ESTIMATE.value,
                content=project.estimate_markdown,
                metadata={
                    **base_metadata,
                    "selected_scenario": project.selected_scenario.value if project.selected_scenario else None,
                    "scenario_snapshot": selected.model_dump() if selected else None,
                    "budget": project.budget,
                    "degraded": "estimate" in project.fallback_fields,
                },
            )
        ]

        if project.research_markdown and "research" not in project.fallback_fields:
            entries.append(
                KnowledgeEntry(
                    category=KnowledgeCategory.RESEARCH.value,
                    content=project.research_markdown,
                    metadata=base_metadata,
                )
            )

        saved: list[KnowledgeEntry] = []
        try:
            for entry in entries:
                await self.storage.save_knowledge_entry(entry)
                saved.append(entry)
        except PersistenceError:
            await self.discard(saved)
            raise

        logger.info(f"[Knowledge] {project.id}: {len(entries)}개 항목 색인")
        return entries

    async def discard(self, entries: list[KnowledgeEntry]) -> None:
        """
        승인 저장이 실패했을 때 방금 색인한 항목을 되돌립니다.
        되돌리기 자체가 실패하면 남은 항목 ID를 로그로 남기고 원래 예외를 유지합니다.
        """
        for entry in entries:
            try:
                await self.storage.delete_knowledge_entry(entry.id)
            except PersistenceError as e:
                logger.error(f"[Knowledge] 색인 되돌리기 실패 ({entry.id}): {e.message}")
        if entries:
            logger.warning(f"[Knowledge] {len(entries)}개 항목 색인 취소")

    async def retrieve_context(
        self,
        category: str,
        limit: Optional[int] = None,
    ) -> AsyncIterator[str]:
        """
        최신순으로 항목 본문을 하나씩 내보내는 비동기 제너레이터.
        호출할 때마다 저장소를 새로 읽으므로 이전 호출의 상태를 이어받지 않습니다.
        폴백 견적으로 승인된 항목(degraded)은 참고 컨텍스트에서 제외합니다.
        """
        if limit is None:
            limit = get_settings().knowledge_context_limit
        if limit <= 0:
            return

        entries = await self.storage.list_knowledge_entries(category=category)
        usable = [e for e in entries if not e.metadata.get("degraded")]
        for entry in usable[:limit]:
            yield entry.content

    async def build_context(self, category: str, limit: Optional[int] = None) -> str:
        """프롬프트 변수로 넣을 컨텍스트 문자열 생성. 항목이 없으면 빈 문자열."""
        blocks = []
        async for content in self.retrieve_context(category, limit):
            if len(content) > MAX_ENTRY_CHARS:
                content = content[:MAX_ENTRY_CHARS] + "\n...(truncated)"
            blocks.append(f"### Reference {len(blocks) + 1}\n{content}")
        return "\n\n".join(blocks)

    async def list_entries(self, category: Optional[str] = None) -> list[KnowledgeEntry]:
        return await self.storage.list_knowledge_entries(category=category)

    async def delete_entry(self, entry_id: str) -> None:
        """관리자 개별 삭제."""
        deleted = await self.storage.delete_knowledge_entry(entry_id)
        if not deleted:
            raise KnowledgeEntryNotFoundError(entry_id)
        logger.info(f"[Knowledge] 항목 삭제: {entry_id}")


# 싱글톤 인스턴스
_knowledge_service: Optional[KnowledgeService] = None


def get_knowledge_service() -> KnowledgeService:
    global _knowledge_service
    if _knowledge_service is None:
        from app.services.file_storage import get_file_storage

        _knowledge_service = KnowledgeService(get_file_storage())
    return _knowledge_service
