"""
프로젝트 단계 워크플로우 컨트롤러입니다.

프로젝트의 생명주기(상태 머신)를 소유하며, 모든 프로젝트 변경은 여기를 거칩니다.

단계(Stage):
1. 입력 처리 (Input Processing): 브리프 추출 → 정보가 충분하면 견적 생성 → "approve"로 2단계
2. 에셋 (Assets): 제안서/보고서 URL + 메일 초안 → "send_email"(상태만 변경) → 3단계
3. 실행 가이드 (Execution Guides): High-Code / No-Code 가이드 생성 → 4단계
4. PM 분해 (PM Breakdown): 단계/작업/체크리스트 → 5단계 또는 "final_approve"
5. 완료 (Completion): 종료 상태. 조회/내보내기만 가능

실패 처리:
- 전환에 필요한 AI 작업이 전부 실패하면 폴백 콘텐츠를 저장(표시)하고 단계는 진행하지 않음
- 필수 입력 누락은 ValidationError로 바로 반환 (AI 호출 없음)
- 허용되지 않은 전환은 StageInvariantViolation (프로젝트 상태 변경 없음)

동시성:
- 프로젝트별 asyncio.Lock으로 변경 작업을 직렬화
- 저장이 끝난 뒤에만 스냅샷을 반환
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from app.config import get_settings, Settings
from app.exceptions import (
    OrchestrationExhausted,
    PersistenceError,
    ProjectNotFoundError,
    StageInvariantViolation,
    ValidationError,
)
from app.models import (
    Project,
    ProjectStatus,
    ProjectBrief,
    Attachment,
    ChatMessage,
    EstimateResult,
    ROIAnalysis,
    ScenarioChoice,
    WorkflowAction,
    RegenerationTarget,
    ActionPayload,
    FINAL_STAGE,
)
from app.utils.validation import (
    validate_raw_input,
    validate_email,
    validate_budget,
    validate_attachment,
)
from app.services.assets import AssetService
from app.services.email_sender import EmailSender, split_subject
from app.services.fallback import FallbackResponder
from app.services.file_storage import FileStorage
from app.services.knowledge import KnowledgeService
from app.services.orchestrator import ProviderOrchestrator
from app.services.prompt_builder import PromptBuilder
from app.layers.layer1_intake import IntakeGenerator, IntakeResult, merge_brief
from app.layers.layer2_estimate import EstimateGenerator, ResearchGenerator
from app.layers.layer3_assets import EmailGenerator
from app.layers.layer4_execution import ExecutionGuideGenerator
from app.layers.layer5_pm import PMBreakdownGenerator
from app.layers.chat import ChatGenerator

logger = logging.getLogger(__name__)

# 폴백 여부를 추적하는 콘텐츠 필드 → 실제 모델 생성 콘텐츠가 들어 있는 속성
CONTENT_ATTRIBUTES = {
    "brief": "brief",
    "research": "research_markdown",
    "estimate": "scenario_a",
    "email": "email_content",
    "execution_guide": "execution_guide_a",
    "pm_breakdown": "pm_breakdown",
}

# 단계 진입 시 설정되는 상태
ENTRY_STATUS = {
    3: ProjectStatus.ACCEPTED,
    4: ProjectStatus.IN_PROGRESS,
    5: ProjectStatus.IN_PROGRESS,
}


class StageWorkflowController:
    """프로젝트 상태 머신. 외부에 노출되는 유일한 변경 경로입니다."""

    def __init__(
        self,
        storage: FileStorage,
        orchestrator: ProviderOrchestrator,
        knowledge: KnowledgeService,
        email_sender: EmailSender,
        fallback: Optional[FallbackResponder] = None,
        assets: Optional[AssetService] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        settings: Optional[Settings] = None,
    ):
        self.storage = storage
        self.orchestrator = orchestrator
        self.knowledge = knowledge
        self.email_sender = email_sender
        self.fallback = fallback or FallbackResponder()
        self.assets = assets or AssetService()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.settings = settings or get_settings()

        # 단계별 생성기 (템플릿은 공유 PromptBuilder에 등록됨)
        self.intake = IntakeGenerator(orchestrator, self.prompt_builder)
        self.research = ResearchGenerator(orchestrator, self.prompt_builder)
        self.estimator = EstimateGenerator(orchestrator, self.prompt_builder, knowledge)
        self.emailer = EmailGenerator(orchestrator, self.prompt_builder)
        self.guides = ExecutionGuideGenerator(orchestrator, self.prompt_builder)
        self.pm = PMBreakdownGenerator(orchestrator, self.prompt_builder)
        self.chat = ChatGenerator(orchestrator, self.prompt_builder)

        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _locked(self, project_id: str) -> AsyncIterator[None]:
        """
        프로젝트별 직렬화 지점.
        잠금을 기다리거나 쥐고 있는 작업이 하나도 없으면 잠금 객체를 정리합니다.
        """
        lock = self._locks.setdefault(project_id, asyncio.Lock())
        self._lock_users[project_id] = self._lock_users.get(project_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[project_id] -= 1
            if self._lock_users[project_id] == 0:
                del self._lock_users[project_id]
                del self._locks[project_id]

    # ==================== 외부 노출 작업 ====================

    async def create_project(
        self,
        raw_input: str,
        title: Optional[str] = None,
        client_name: Optional[str] = None,
        client_email: Optional[str] = None,
        budget: Optional[float] = None,
        region: Optional[str] = None,
    ) -> Project:
        """
        첫 입력으로 프로젝트 생성 후 브리프 추출을 실행합니다.
        정보가 충분하면 같은 요청 안에서 견적까지 생성합니다.
        """
        raw_input = validate_raw_input(raw_input)
        budget = validate_budget(budget)
        if client_email:
            client_email = validate_email(client_email)

        project = Project(
            title=(title or "").strip() or "Untitled project",
            client_name=client_name,
            client_email=client_email,
            raw_input=raw_input,
            budget=budget,
            region=(region or "").strip() or None,
        )
        project.record_event("create", from_stage=1)
        logger.info(f"[Workflow] 프로젝트 생성: {project.id}")

        async with self._locked(project.id):
            await self._process_input(project, title_given=bool(title))
            await self._save(project)
        return project

    async def get_project_state(self, project_id: str) -> Project:
        return await self._load(project_id)

    async def list_projects(self, include_archived: bool = False) -> list[Project]:
        return await self.storage.list_projects(include_archived=include_archived)

    async def advance_stage(
        self,
        project_id: str,
        action: WorkflowAction,
        payload: Optional[ActionPayload] = None,
    ) -> Project:
        """
        액션 실행.

        Raises:
            ProjectNotFoundError: 없는 프로젝트
            StageInvariantViolation: 허용되지 않은 전환 (상태 변경 없음)
            ValidationError: 필수 입력 누락 (AI 호출 없음)
            DeliveryError: 이메일 발송 실패
            PersistenceError: 저장 실패
        """
        payload = payload or ActionPayload()
        handlers: dict[WorkflowAction, Callable[[Project, ActionPayload], Awaitable[None]]] = {
            WorkflowAction.UPDATE_BRIEF: self._update_brief,
            WorkflowAction.SELECT_SCENARIO: self._select_scenario,
            WorkflowAction.APPROVE: self._approve,
            WorkflowAction.SEND_EMAIL: self._send_email,
            WorkflowAction.ADVANCE: self._advance,
            WorkflowAction.FINAL_APPROVE: self._final_approve,
        }
        handler = handlers[action]

        async with self._locked(project_id):
            project = await self._load_mutable(project_id)
            logger.info(f"[Workflow] {project_id}: {action.value} (stage={project.current_stage})")
            await handler(project, payload)

        # 발송 성공 후 자동 진행은 별도의 전환으로 저장
        if (
            action == WorkflowAction.SEND_EMAIL
            and self.settings.auto_advance_on_send
            and project.current_stage == 2
        ):
            async with self._locked(project_id):
                project = await self._load_mutable(project_id)
                if project.current_stage == 2 and project.status == ProjectStatus.EMAIL_SENT:
                    await self._advance(project, ActionPayload(target_stage=3))

        return project

    async def regenerate(self, project_id: str, operation: RegenerationTarget) -> Project:
        """
        현재 단계의 콘텐츠를 제자리에서 다시 생성합니다. 단계는 바뀌지 않습니다.
        허용 단계는 설정(regeneration_stages)을 따릅니다.
        """
        async with self._locked(project_id):
            project = await self._load_mutable(project_id)
            stage = project.current_stage

            if stage == FINAL_STAGE:
                raise StageInvariantViolation(
                    "완료 단계에서는 콘텐츠를 다시 생성할 수 없습니다",
                    details={"project_id": project_id, "operation": operation.value},
                )

            allowed = self.settings.regeneration_stages.get(operation.value, [])
            if stage not in allowed:
                raise StageInvariantViolation(
                    f"{stage}단계에서는 {operation.value} 재생성이 허용되지 않습니다",
                    details={"current_stage": stage, "allowed_stages": allowed},
                )

            if operation == RegenerationTarget.ESTIMATE:
                if project.brief is None or project.brief.missing_data:
                    raise ValidationError(
                        "견적을 만들기 위한 정보가 부족합니다",
                        details={"missing_fields": project.brief.missing_fields if project.brief else []},
                    )
                degraded = await self._generate_estimate(project)
            elif operation == RegenerationTarget.EMAIL:
                degraded = await self._generate_email(project)
            elif operation == RegenerationTarget.EXECUTION_GUIDE:
                degraded = await self._generate_guides(project)
            else:
                degraded = await self._generate_pm_breakdown(project)

            project.record_event(f"regenerate:{operation.value}", from_stage=stage, degraded=degraded)
            await self._save(project)
        return project

    async def send_message(self, project_id: str, message: str) -> ChatMessage:
        """대화 메시지 처리. 모든 프로바이더가 실패하면 단계별 폴백 응답을 사용합니다."""
        if not message or not message.strip():
            raise ValidationError("메시지가 비어있습니다")

        async with self._locked(project_id):
            project = await self._load_mutable(project_id)
            if project.current_stage == FINAL_STAGE:
                raise StageInvariantViolation(
                    "완료된 프로젝트에서는 대화를 생성할 수 없습니다",
                    details={"project_id": project_id},
                )

            stage = project.current_stage
            try:
                result = await self.chat.generate(project, message=message.strip())
                reply = ChatMessage(role="assistant", content=result.data, stage=stage)
            except OrchestrationExhausted:
                content = self.fallback.chat(project)
                reply = ChatMessage(role="assistant", content=content.text, stage=stage, is_fallback=True)

            project.messages.append(ChatMessage(role="user", content=message.strip(), stage=stage))
            project.messages.append(reply)
            project.updated_at = datetime.now()
            await self._save(project)
        return reply

    async def add_attachment(
        self,
        project_id: str,
        filename: str,
        mime_type: str,
        size: int,
        url: str,
    ) -> Project:
        """첨부 파일 메타데이터 추가 (파일 자체는 외부 저장소)."""
        async with self._locked(project_id):
            project = await self._load_mutable(project_id)
            validate_attachment(filename, mime_type, size, url, existing_count=len(project.attachments))
            project.attachments.append(
                Attachment(filename=filename, mime_type=mime_type, size=size, url=url)
            )
            project.updated_at = datetime.now()
            await self._save(project)
        return project

    async def archive_project(self, project_id: str) -> Project:
        """사용자 삭제 = 보관 처리 (물리 삭제 아님)."""
        async with self._locked(project_id):
            project = await self._load(project_id)
            if not project.archived:
                project.archived = True
                project.record_event("archive", from_stage=project.current_stage)
                await self._save(project)
        logger.info(f"[Workflow] 프로젝트 보관: {project_id}")
        return project

    async def wipe_project(self, project_id: str) -> None:
        """유일한 영구 삭제 경로 (관리자)."""
        async with self._locked(project_id):
            deleted = await self.storage.delete_project(project_id)
            if not deleted:
                raise ProjectNotFoundError(project_id)
        logger.warning(f"[Workflow] 프로젝트 영구 삭제: {project_id}")

    # ==================== 액션 처리 ====================

    async def _update_brief(self, project: Project, payload: ActionPayload) -> None:
        """1단계에서 부족한 브리프 정보 보충."""
        self._require_stage(project, {1}, "update_brief")

        if payload.client_email is not None:
            project.client_email = validate_email(payload.client_email)
        if payload.budget is not None:
            project.budget = validate_budget(payload.budget)
        if payload.region:
            project.region = payload.region.strip()
        if payload.client_name:
            project.client_name = payload.client_name.strip()

        details = (payload.details or "").strip() or None
        if details:
            project.raw_input = f"{project.raw_input}\n\nAdditional details:\n{details}"

        content_changed = any([payload.budget is not None, payload.region, payload.client_name, details])
        if content_changed or project.brief is None:
            await self._process_input(project, details=details)
        else:
            project.record_event("update_brief", from_stage=1)
        await self._save(project)

    async def _select_scenario(self, project: Project, payload: ActionPayload) -> None:
        self._require_stage(project, {1, 2}, "select_scenario")
        self._require_scenarios(project)
        if payload.scenario is None:
            raise ValidationError("선택할 시나리오(A 또는 B)가 필요합니다", details={"field": "scenario"})

        project.selected_scenario = payload.scenario
        project.record_event(f"select_scenario:{payload.scenario.value}", from_stage=project.current_stage)
        await self._save(project)

    async def _approve(self, project: Project, payload: ActionPayload) -> None:
        """
        견적 승인 (1 → 2).
        에셋 URL 발급 → 메일 초안 생성 → 지식 베이스 색인 → 저장 순서로 진행합니다.
        메일 초안이 폴백이어도 승인은 막지 않습니다.
        프로젝트 저장이 실패하면 색인한 지식 항목을 되돌립니다.
        """
        self._require_stage(project, {1}, "approve")
        self._require_scenarios(project)

        if payload.scenario is not None:
            project.selected_scenario = payload.scenario
        elif project.selected_scenario is None:
            project.selected_scenario = self._recommended(project)

        project.current_stage = 2
        project.status = ProjectStatus.ASSETS_READY
        self.assets.generate(project)
        degraded = await self._generate_email(project)

        entries = await self.knowledge.index(project)
        project.record_event("approve", from_stage=1, degraded=degraded)
        try:
            await self._save(project)
        except PersistenceError:
            await self.knowledge.discard(entries)
            raise

    async def _send_email(self, project: Project, payload: ActionPayload) -> None:
        """제안 메일 발송. 단계는 바뀌지 않고 상태만 email_sent가 됩니다."""
        self._require_stage(project, {2}, "send_email")

        # 필수 입력 검사가 AI 호출보다 먼저
        recipient = validate_email(payload.client_email or project.client_email)
        project.client_email = recipient

        if payload.email_body:
            subject = payload.email_subject or f"Your proposal for {project.title}"
            body = payload.email_body
            project.email_content = f"Subject: {subject}\n\n{body}"
            project.clear_fallback("email")
        else:
            if not project.email_content:
                await self._generate_email(project)
            subject, body = split_subject(project.email_content, f"Your proposal for {project.title}")
            if payload.email_subject:
                subject = payload.email_subject

        await self.email_sender.send(recipient, subject, body)

        project.status = ProjectStatus.EMAIL_SENT
        project.email_sent_at = datetime.now()
        project.record_event("send_email", from_stage=2, degraded="email" in project.fallback_fields)
        await self._save(project)

    async def _advance(self, project: Project, payload: ActionPayload) -> None:
        """한 단계 진행 (2→3, 3→4, 4→5). 단계 건너뛰기는 허용하지 않습니다."""
        current = project.current_stage
        if current == FINAL_STAGE:
            raise StageInvariantViolation(
                "완료 단계 이후로는 진행할 수 없습니다",
                details={"current_stage": current},
            )

        target = payload.target_stage or current + 1
        if target != current + 1:
            raise StageInvariantViolation(
                f"{current}단계에서 {target}단계로 바로 이동할 수 없습니다",
                details={"current_stage": current, "target_stage": target},
            )
        if current == 1:
            raise StageInvariantViolation(
                "1단계는 견적 승인(approve)으로만 완료할 수 있습니다",
                details={"current_stage": current},
            )
        if current == 2 and project.status != ProjectStatus.EMAIL_SENT and not payload.admin:
            raise StageInvariantViolation(
                "제안 메일 발송 전에는 3단계로 진행할 수 없습니다 (관리자 권한 필요)",
                details={"current_stage": current, "status": project.status.value},
            )
        if current == 4 and project.pm_breakdown is None:
            raise StageInvariantViolation(
                "PM 분해 결과가 없어 완료 단계로 진행할 수 없습니다",
                details={"current_stage": current},
            )

        # 진입 작업 실행 (3: 실행 가이드, 4: PM 분해)
        degraded = False
        if target == 3:
            degraded = await self._generate_guides(project)
        elif target == 4:
            degraded = await self._generate_pm_breakdown(project)

        if degraded and not payload.force:
            logger.warning(
                f"[Workflow] {project.id}: {target}단계 진입 작업이 폴백으로 대체되어 단계를 유지합니다"
            )
            project.record_event(
                f"advance:{target}",
                from_stage=current,
                degraded=True,
                message="entry operation degraded; stage not advanced",
            )
            await self._save(project)
            return

        project.current_stage = target
        project.status = ENTRY_STATUS[target]
        project.record_event(f"advance:{target}", from_stage=current, degraded=degraded)
        await self._save(project)

    async def _final_approve(self, project: Project, payload: ActionPayload) -> None:
        """최종 승인: 4단계(바로가기) 또는 5단계에서 완료 처리."""
        self._require_stage(project, {4, 5}, "final_approve")
        if project.status == ProjectStatus.COMPLETED:
            raise StageInvariantViolation(
                "이미 최종 승인된 프로젝트입니다",
                details={"project_id": project.id},
            )
        if project.pm_breakdown is None:
            raise StageInvariantViolation(
                "PM 분해 결과가 없어 최종 승인할 수 없습니다",
                details={"current_stage": project.current_stage},
            )

        from_stage = project.current_stage
        project.current_stage = FINAL_STAGE
        project.final_approved_at = datetime.now()
        project.status = ProjectStatus.COMPLETED
        project.record_event("final_approve", from_stage=from_stage)
        await self._save(project)

    # ==================== 콘텐츠 생성 ====================

    async def _process_input(
        self,
        project: Project,
        details: Optional[str] = None,
        title_given: bool = True,
    ) -> None:
        """브리프 추출 → 병합 → 정보가 충분하면 견적 생성."""
        intake, _ = await self._run_operation(
            project, "brief", self.intake, self.fallback.brief, details=details
        )
        if isinstance(intake, IntakeResult):
            if not title_given and intake.title and project.title == "Untitled project":
                project.title = intake.title
            brief = intake.brief
        elif isinstance(intake, ProjectBrief):
            brief = intake  # 폴백 브리프
        else:
            brief = project.brief  # 기존 모델 생성 브리프 유지

        merged = merge_brief(project, brief)
        project.brief = merged

        # 원문에서 추출한 예산/지역을 프로젝트 값으로 채택 (운영자 입력이 우선)
        if project.budget is None and merged.estimated_budget:
            project.budget = merged.estimated_budget
        if not project.region and merged.region:
            project.region = merged.region
        if not project.client_name and merged.client_name:
            project.client_name = merged.client_name

        if merged.missing_data:
            logger.info(f"[Workflow] {project.id}: 정보 부족 ({', '.join(merged.missing_fields)}), 견적 보류")
            project.record_event(
                "input_processed",
                from_stage=1,
                degraded="brief" in project.fallback_fields,
                message=f"missing: {', '.join(merged.missing_fields)}",
            )
            return

        degraded = await self._generate_estimate(project)
        project.record_event("estimate_generated", from_stage=1, degraded=degraded)

    async def _generate_estimate(self, project: Project) -> bool:
        """시장 조사 + 견적. 예산 제약 표시는 폴백 견적에도 동일하게 적용합니다."""
        if not project.research_markdown or "research" in project.fallback_fields:
            research, _ = await self._run_operation(
                project, "research", self.research, lambda p: self.fallback.research(p).text
            )
            if research is not None:
                project.research_markdown = research

        estimate, degraded = await self._run_operation(
            project, "estimate", self.estimator, self.fallback.estimate
        )
        if isinstance(estimate, EstimateResult):
            estimate.apply_budget(project.budget)
            project.scenario_a = estimate.scenario_a
            project.scenario_b = estimate.scenario_b
            project.roi_analysis = estimate.roi_analysis
            project.estimate_markdown = estimate.to_markdown()
        elif project.has_scenarios:
            # 기존 견적 유지 시에도 현재 예산 기준으로 다시 표시
            kept = EstimateResult(
                scenario_a=project.scenario_a,
                scenario_b=project.scenario_b,
                roi_analysis=project.roi_analysis or ROIAnalysis(),
            ).apply_budget(project.budget)
            project.estimate_markdown = kept.to_markdown()

        if project.current_stage == 1:
            project.status = ProjectStatus.ESTIMATE_GENERATED
        return degraded

    async def _generate_email(self, project: Project) -> bool:
        email, degraded = await self._run_operation(
            project, "email", self.emailer, lambda p: self.fallback.email(p).text
        )
        if email is not None:
            project.email_content = email
        return degraded

    async def _generate_guides(self, project: Project) -> bool:
        guides, degraded = await self._run_operation(
            project, "execution_guide", self.guides, self.fallback.execution_guides
        )
        if isinstance(guides, tuple):
            project.execution_guide_a, project.execution_guide_b = guides[0].text, guides[1].text
        elif guides is not None:
            project.execution_guide_a, project.execution_guide_b = guides.guide_a, guides.guide_b
        return degraded

    async def _generate_pm_breakdown(self, project: Project) -> bool:
        if project.selected_scenario is None and project.has_scenarios:
            project.selected_scenario = self._recommended(project)
        breakdown, degraded = await self._run_operation(
            project, "pm_breakdown", self.pm, self.fallback.pm_breakdown
        )
        if breakdown is not None:
            project.pm_breakdown = breakdown
        return degraded

    async def _run_operation(
        self,
        project: Project,
        field: str,
        generator,
        fallback_factory: Callable[[Project], Any],
        **kwargs: Any,
    ) -> tuple[Any, bool]:
        """
        생성기 실행 공통 흐름.

        Returns:
            (값, 폴백 여부)
            - 성공: (검증된 결과, False)
            - 전부 실패 + 기존 모델 생성 콘텐츠 있음: (None, False) → 기존 값 유지
            - 전부 실패 + 기존 콘텐츠 없음/폴백: (폴백 콘텐츠, True)
        """
        try:
            result = await generator.generate(project, **kwargs)
        except OrchestrationExhausted as e:
            if self._has_model_content(project, field):
                logger.warning(
                    f"[Workflow] {project.id}: {e.operation} 실패, 기존 콘텐츠 유지 ({field})"
                )
                return None, False
            logger.warning(f"[Workflow] {project.id}: {e.operation} 실패, 폴백 콘텐츠 저장 ({field})")
            project.mark_fallback(field)
            return fallback_factory(project), True

        project.clear_fallback(field)
        return result.data, False

    # ==================== 내부 도우미 함수들 ====================

    @staticmethod
    def _has_model_content(project: Project, field: str) -> bool:
        attribute = CONTENT_ATTRIBUTES[field]
        return getattr(project, attribute) is not None and field not in project.fallback_fields

    @staticmethod
    def _recommended(project: Project) -> ScenarioChoice:
        """추천 시나리오 (표시가 없으면 A)."""
        if project.scenario_b is not None and project.scenario_b.recommended and not (
            project.scenario_a is not None and project.scenario_a.recommended
        ):
            return ScenarioChoice.B
        return ScenarioChoice.A

    @staticmethod
    def _require_stage(project: Project, stages: set[int], action: str) -> None:
        if project.current_stage not in stages:
            raise StageInvariantViolation(
                f"{project.current_stage}단계에서는 {action} 액션을 실행할 수 없습니다",
                details={
                    "action": action,
                    "current_stage": project.current_stage,
                    "allowed_stages": sorted(stages),
                },
            )

    @staticmethod
    def _require_scenarios(project: Project) -> None:
        if not project.has_scenarios:
            raise StageInvariantViolation(
                "견적 시나리오가 아직 없습니다",
                details={"project_id": project.id, "status": project.status.value},
            )

    async def _load(self, project_id: str) -> Project:
        project = await self.storage.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    async def _load_mutable(self, project_id: str) -> Project:
        """변경 가능한 프로젝트 로드 (보관된 프로젝트는 거부)."""
        project = await self._load(project_id)
        if project.archived:
            raise StageInvariantViolation(
                "보관된 프로젝트는 변경할 수 없습니다",
                details={"project_id": project_id},
            )
        return project

    async def _save(self, project: Project) -> None:
        project.updated_at = datetime.now()
        await self.storage.save_project(project)


# 싱글톤 인스턴스
_workflow_controller: Optional[StageWorkflowController] = None


def get_workflow_controller() -> StageWorkflowController:
    """기본 설정으로 구성된 StageWorkflowController를 반환합니다."""
    global _workflow_controller
    if _workflow_controller is None:
        from app.services.email_sender import ResendEmailSender
        from app.services.file_storage import get_file_storage
        from app.services.knowledge import get_knowledge_service
        from app.services.orchestrator import get_orchestrator

        _workflow_controller = StageWorkflowController(
            storage=get_file_storage(),
            orchestrator=get_orchestrator(),
            knowledge=get_knowledge_service(),
            email_sender=ResendEmailSender(),
        )
    return _workflow_controller
