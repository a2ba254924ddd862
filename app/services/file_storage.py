"""
파일 기반 저장소 서비스입니다.
데이터베이스 대신 파일 시스템(폴더와 파일)을 사용하여 데이터를 저장하고 관리합니다.

관리하는 데이터:
1. 프로젝트 (projects/{id}.json)
2. 지식 항목 (knowledge/{id}.json, 항목마다 독립 파일)
3. 사용량 기록 (usage/usage.jsonl, append-only)

쓰기는 임시 파일에 먼저 기록한 뒤 os.replace로 교체하므로
중간에 실패해도 기존 파일이 깨지지 않습니다.
"""

import asyncio
import logging
import os
import uuid
import aiofiles
from pathlib import Path
from typing import Optional, TypeVar, Type
from pydantic import BaseModel

from app.config import get_settings
from app.models import Project, KnowledgeEntry, UsageRecord
from app.exceptions import PersistenceError

logger = logging.getLogger(__name__)


T = TypeVar("T", bound=BaseModel)


class FileStorage:
    """JSON 파일 기반의 단순 저장소 클래스입니다."""

    def __init__(self, base_path: str = "data"):
        # 기본 저장 경로 설정 (기본값: data 폴더)
        self.base_path = Path(base_path)
        self.projects_path = self.base_path / "projects"
        self.knowledge_path = self.base_path / "knowledge"
        self.usage_path = self.base_path / "usage"
        self.usage_file = self.usage_path / "usage.jsonl"

        # 같은 프로세스 내 jsonl 동시 append 방지
        self._usage_lock = asyncio.Lock()

        # 필요한 폴더들이 없으면 만듭니다.
        self._ensure_directories()

    def _ensure_directories(self):
        """저장소 폴더 생성 함수"""
        try:
            for path in [self.projects_path, self.knowledge_path, self.usage_path]:
                path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(
                f"저장소 폴더를 만들 수 없습니다: {self.base_path}",
                details={"path": str(self.base_path), "error": str(e)},
            )

    # ==================== 프로젝트 관련 기능 ====================

    async def save_project(self, project: Project) -> str:
        """프로젝트를 파일로 저장합니다. 반환 시점에는 디스크에 기록이 끝난 상태입니다."""
        file_path = self.projects_path / f"{project.id}.json"
        await self._save_model(file_path, project)
        return project.id

    async def get_project(self, project_id: str) -> Optional[Project]:
        """ID로 프로젝트를 불러옵니다. 없으면 None."""
        file_path = self.projects_path / f"{project_id}.json"
        return await self._load_model(file_path, Project, strict=True)

    async def list_projects(
        self,
        skip: int = 0,
        limit: int = 50,
        include_archived: bool = False,
    ) -> list[Project]:
        """
        저장된 프로젝트 목록을 페이지 단위로 가져옵니다.
        최근 수정된 순서대로 정렬됩니다.
        """
        projects = []
        for file_path in self.projects_path.glob("*.json"):
            project = await self._load_model(file_path, Project)
            if project is None:
                continue
            # 보관(archived)된 프로젝트는 기본적으로 제외
            if project.archived and not include_archived:
                continue
            projects.append(project)

        projects.sort(key=lambda p: p.updated_at, reverse=True)
        # 페이지네이션 (원하는 범위만 자르기)
        return projects[skip:skip + limit]

    async def delete_project(self, project_id: str) -> bool:
        """프로젝트 파일을 영구 삭제합니다 (wipe 전용)."""
        file_path = self.projects_path / f"{project_id}.json"
        return self._delete_file(file_path)

    # ==================== 지식 항목 관련 기능 ====================

    async def save_knowledge_entry(self, entry: KnowledgeEntry) -> str:
        """지식 항목 저장. 항목마다 독립 파일이므로 프로젝트 간 잠금이 필요 없습니다."""
        file_path = self.knowledge_path / f"{entry.id}.json"
        await self._save_model(file_path, entry)
        return entry.id

    async def get_knowledge_entry(self, entry_id: str) -> Optional[KnowledgeEntry]:
        file_path = self.knowledge_path / f"{entry_id}.json"
        return await self._load_model(file_path, KnowledgeEntry)

    async def list_knowledge_entries(self, category: Optional[str] = None) -> list[KnowledgeEntry]:
        """지식 항목 목록 (최신순). 호출할 때마다 디스크를 다시 읽습니다."""
        entries = []
        for file_path in self.knowledge_path.glob("*.json"):
            entry = await self._load_model(file_path, KnowledgeEntry)
            if entry is None:
                continue
            if category is None or entry.category == category:
                entries.append(entry)

        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries

    async def delete_knowledge_entry(self, entry_id: str) -> bool:
        file_path = self.knowledge_path / f"{entry_id}.json"
        return self._delete_file(file_path)

    # ==================== 사용량 기록 관련 기능 ====================

    async def append_usage(self, record: UsageRecord) -> None:
        """사용량 기록 한 줄 추가 (수정/삭제 없음)."""
        line = record.model_dump_json() + "\n"
        async with self._usage_lock:
            try:
                async with aiofiles.open(self.usage_file, "a", encoding="utf-8") as f:
                    await f.write(line)
            except OSError as e:
                logger.error(f"[Storage] 사용량 기록 실패: {e}", exc_info=True)
                raise PersistenceError(
                    "사용량 기록 저장에 실패했습니다",
                    details={"path": str(self.usage_file), "error": str(e)},
                )

    async def list_usage(self, project_id: Optional[str] = None) -> list[UsageRecord]:
        """사용량 기록 조회 (기록 순서 유지)."""
        if not self.usage_file.exists():
            return []

        records = []
        try:
            async with aiofiles.open(self.usage_file, "r", encoding="utf-8") as f:
                async for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    record = UsageRecord.model_validate_json(line)
                    if project_id is None or record.project_id == project_id:
                        records.append(record)
        except OSError as e:
            raise PersistenceError(
                "사용량 기록을 읽을 수 없습니다",
                details={"path": str(self.usage_file), "error": str(e)},
            )
        return records

    # ==================== 내부 도우미 함수들 ====================

    async def _save_model(self, file_path: Path, model: BaseModel):
        """데이터 모델을 JSON 파일로 저장하는 공통 함수 (임시 파일 → 교체)"""
        tmp_path = file_path.with_suffix(f".{uuid.uuid4().hex[:8]}.tmp")
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(model.model_dump_json(indent=2))
            os.replace(tmp_path, file_path)
        except OSError as e:
            logger.error(f"[Storage] 파일 저장 실패 {file_path}: {e}", exc_info=True)
            if tmp_path.exists():
                tmp_path.unlink()
            raise PersistenceError(
                f"파일 저장에 실패했습니다: {file_path.name}",
                details={"path": str(file_path), "error": str(e)},
            )

    async def _load_model(
        self,
        file_path: Path,
        model_class: Type[T],
        strict: bool = False,
    ) -> Optional[T]:
        """
        JSON 파일을 읽어서 데이터 모델로 변환하는 공통 함수.
        strict=True면 손상된 파일을 PersistenceError로 보고하고,
        아니면 로그만 남기고 None을 반환합니다 (목록 조회용).
        """
        if not file_path.exists():
            return None

        try:
            async with aiofiles.open(file_path, "r", encoding="utf-8") as f:
                content = await f.read()
            return model_class.model_validate_json(content)
        except Exception as e:
            logger.error(f"[Storage] 파일 로딩 에러 {file_path}: {e}", exc_info=True)
            if strict:
                raise PersistenceError(
                    f"파일을 읽을 수 없습니다: {file_path.name}",
                    details={"path": str(file_path), "error": str(e)},
                )
            return None

    def _delete_file(self, file_path: Path) -> bool:
        """파일 삭제 공통 함수"""
        if not file_path.exists():
            return False
        try:
            file_path.unlink()
        except OSError as e:
            logger.error(f"[Storage] 파일 삭제 실패 {file_path}: {e}")
            raise PersistenceError(
                f"파일 삭제에 실패했습니다: {file_path.name}",
                details={"path": str(file_path), "error": str(e)},
            )
        return True


# 싱글톤 인스턴스 (프로그램 전체에서 공유)
_file_storage: Optional[FileStorage] = None


def get_file_storage() -> FileStorage:
    """FileStorage 인스턴스를 반환합니다."""
    global _file_storage
    if _file_storage is None:
        _file_storage = FileStorage(base_path=get_settings().data_dir)
    return _file_storage
