"""
프로젝트 API입니다.
프로젝트 생성, 단계 액션 실행, 재생성, 대화, 첨부, 내보내기를 제공합니다.
모든 변경은 StageWorkflowController를 거칩니다.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field

from app.config import get_settings
from app.models import (
    Project,
    WorkflowAction,
    RegenerationTarget,
    ActionPayload,
)
from app.services.assets import ASSET_KINDS, AssetService, absolutize_urls
from app.services.presentation import PPTX_MEDIA_TYPE, build_presentation
from app.services.usage_tracker import UsageTracker, get_usage_tracker
from app.services.workflow import StageWorkflowController, get_workflow_controller

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== 요청 모델 ====================

class CreateProjectRequest(BaseModel):
    """프로젝트 생성 요청"""
    raw_input: str
    title: Optional[str] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    budget: Optional[float] = None
    region: Optional[str] = None


class ActionRequest(BaseModel):
    """단계 액션 요청"""
    action: WorkflowAction
    payload: ActionPayload = Field(default_factory=ActionPayload)


class RegenerateRequest(BaseModel):
    operation: RegenerationTarget


class MessageRequest(BaseModel):
    message: str


class AttachmentRequest(BaseModel):
    """첨부 파일 메타데이터 (파일은 외부 저장소에 업로드된 상태)"""
    filename: str
    mime_type: str
    size: int
    url: str


def _present(project: Project) -> dict:
    """응답 페이로드 구성. 상대 에셋 URL은 여기서 한 번만 절대 URL로 변환합니다."""
    payload = project.model_dump(mode="json")
    payload["progress"] = project.get_progress()
    return absolutize_urls(payload, get_settings().public_base_url)


# ==================== 프로젝트 ====================

@router.post("", status_code=201)
async def create_project(
    request: CreateProjectRequest,
    controller: StageWorkflowController = Depends(get_workflow_controller),
) -> dict:
    """
    새 프로젝트 생성.
    정보가 충분하면 응답 시점에 견적(시나리오 A/B)까지 생성되어 있습니다.
    """
    project = await controller.create_project(
        raw_input=request.raw_input,
        title=request.title,
        client_name=request.client_name,
        client_email=request.client_email,
        budget=request.budget,
        region=request.region,
    )
    return _present(project)


@router.get("")
async def list_projects(
    include_archived: bool = False,
    controller: StageWorkflowController = Depends(get_workflow_controller),
) -> dict:
    """프로젝트 목록 (최근 수정순)"""
    projects = await controller.list_projects(include_archived=include_archived)
    items = [
        {
            "id": p.id,
            "title": p.title,
            "client_name": p.client_name,
            "current_stage": p.current_stage,
            "status": p.status.value,
            "archived": p.archived,
            "degraded": p.is_degraded,
            "updated_at": p.updated_at.isoformat(),
        }
        for p in projects
    ]
    return {"total": len(items), "projects": items}


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    controller: StageWorkflowController = Depends(get_workflow_controller),
) -> dict:
    project = await controller.get_project_state(project_id)
    return _present(project)


@router.post("/{project_id}/actions")
async def run_action(
    project_id: str,
    request: ActionRequest,
    controller: StageWorkflowController = Depends(get_workflow_controller),
) -> dict:
    """
    단계 액션 실행 (update_brief, select_scenario, approve, send_email, advance, final_approve).
    허용되지 않은 전환은 409, 필수 입력 누락은 400을 반환합니다.
    """
    project = await controller.advance_stage(project_id, request.action, request.payload)
    return _present(project)


@router.post("/{project_id}/regenerate")
async def regenerate(
    project_id: str,
    request: RegenerateRequest,
    controller: StageWorkflowController = Depends(get_workflow_controller),
) -> dict:
    project = await controller.regenerate(project_id, request.operation)
    return _present(project)


@router.post("/{project_id}/messages")
async def send_message(
    project_id: str,
    request: MessageRequest,
    controller: StageWorkflowController = Depends(get_workflow_controller),
) -> dict:
    """프로젝트 대화. 응답 메시지만 반환합니다."""
    reply = await controller.send_message(project_id, request.message)
    return reply.model_dump(mode="json")


@router.post("/{project_id}/attachments", status_code=201)
async def add_attachment(
    project_id: str,
    request: AttachmentRequest,
    controller: StageWorkflowController = Depends(get_workflow_controller),
) -> dict:
    project = await controller.add_attachment(
        project_id,
        filename=request.filename,
        mime_type=request.mime_type,
        size=request.size,
        url=request.url,
    )
    return _present(project)


@router.delete("/{project_id}")
async def archive_project(
    project_id: str,
    controller: StageWorkflowController = Depends(get_workflow_controller),
) -> dict:
    """사용자 삭제 (보관 처리)"""
    await controller.archive_project(project_id)
    return {"message": "프로젝트가 보관되었습니다", "project_id": project_id}


@router.delete("/{project_id}/wipe")
async def wipe_project(
    project_id: str,
    controller: StageWorkflowController = Depends(get_workflow_controller),
) -> dict:
    """관리자 영구 삭제. 지식 항목과 사용량 기록은 유지됩니다."""
    await controller.wipe_project(project_id)
    return {"message": "프로젝트가 영구 삭제되었습니다", "project_id": project_id}


# ==================== 산출물 ====================

@router.get("/{project_id}/assets/{kind}")
async def get_asset(
    project_id: str,
    kind: str,
    format: str = "markdown",
    controller: StageWorkflowController = Depends(get_workflow_controller),
) -> Response:
    """
    에셋 문서 (proposal, internal-report, presentation).
    발표 자료는 format=pptx로 PowerPoint 파일을 받을 수 있습니다.
    """
    if kind not in ASSET_KINDS:
        raise HTTPException(status_code=404, detail=f"알 수 없는 에셋 종류: {kind}")
    if format not in ("markdown", "pptx") or (format == "pptx" and kind != "presentation"):
        raise HTTPException(status_code=400, detail=f"지원하지 않는 형식입니다: {format}")

    project = await controller.get_project_state(project_id)
    if project.proposal_pdf_url is None:
        raise HTTPException(status_code=404, detail="에셋이 아직 생성되지 않았습니다")

    if format == "pptx":
        return Response(
            content=build_presentation(project),
            media_type=PPTX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{project.id}.pptx"'},
        )

    content = AssetService().render(project, kind)
    return Response(content=content, media_type="text/markdown")


@router.get("/{project_id}/export")
async def export_project(
    project_id: str,
    format: str = "markdown",
    controller: StageWorkflowController = Depends(get_workflow_controller),
) -> Response:
    """
    프로젝트 내보내기.

    지원하는 형식:
    - markdown: 전체 산출물 마크다운 (.md), 폴백 섹션에는 경고 배너 포함
    - json: 프로젝트 원본 데이터 (.json)
    """
    project = await controller.get_project_state(project_id)

    if format == "markdown":
        content = AssetService().export_markdown(project)
        return Response(
            content=content,
            media_type="text/markdown",
            headers={"Content-Disposition": f'attachment; filename="{project.id}.md"'},
        )
    elif format == "json":
        content = json.dumps(_present(project), ensure_ascii=False, indent=2)
        return Response(
            content=content,
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{project.id}.json"'},
        )

    raise HTTPException(status_code=400, detail=f"지원하지 않는 형식입니다: {format}")


@router.get("/{project_id}/usage")
async def project_usage(
    project_id: str,
    controller: StageWorkflowController = Depends(get_workflow_controller),
    tracker: UsageTracker = Depends(get_usage_tracker),
) -> dict:
    """프로젝트별 AI 사용량/비용 요약"""
    await controller.get_project_state(project_id)
    summary = await tracker.summarize_project(project_id)
    return summary.model_dump(mode="json")
