"""StageWorkflowController unit tests.

단계 전환 규칙, 폴백 처리, 지식 색인, 동시성 직렬화를 검증합니다.
"""

import asyncio
import json

import pytest
from unittest.mock import AsyncMock

from app.config import Settings
from app.exceptions import (
    DeliveryError,
    PersistenceError,
    ProjectNotFoundError,
    StageInvariantViolation,
    ValidationError,
)
from app.models import (
    ActionPayload,
    ProjectStatus,
    RegenerationTarget,
    ScenarioChoice,
    WorkflowAction,
)
from app.services.fallback import FallbackResponder
from app.services.workflow import StageWorkflowController


RAW_INPUT = "We run 12 clinics in the US and need patients to book appointments online."

VAGUE_INTAKE = json.dumps({
    "title": "Something digital",
    "mission": "Improve our business with an app",
    "region": None,
    "estimated_budget": None,
    "missing_data": True,
    "missing_fields": ["budget", "region"],
})


async def _create(controller, **kwargs):
    kwargs.setdefault("client_email", "ops@acme.test")
    return await controller.create_project(RAW_INPUT, **kwargs)


async def _at_stage_2(controller):
    project = await _create(controller)
    return await controller.advance_stage(project.id, WorkflowAction.APPROVE)


async def _at_stage_4(controller):
    project = await _at_stage_2(controller)
    await controller.advance_stage(project.id, WorkflowAction.SEND_EMAIL)
    await controller.advance_stage(project.id, WorkflowAction.ADVANCE, ActionPayload(target_stage=3))
    return await controller.advance_stage(project.id, WorkflowAction.ADVANCE, ActionPayload(target_stage=4))


# ==================== 1단계: 입력 처리 ====================

class TestInputProcessing:

    @pytest.mark.asyncio
    async def test_sufficient_input_generates_estimate(self, controller, usage_tracker):
        project = await _create(controller)

        assert project.current_stage == 1
        assert project.status == ProjectStatus.ESTIMATE_GENERATED
        assert project.title == "Clinic Booking Platform"
        assert project.region == "US"
        assert project.scenario_a.total_cost == 60000
        assert project.research_markdown.startswith("# Market Research")
        assert "# Dual-Scenario Estimate" in project.estimate_markdown
        assert project.fallback_fields == []

        operations = [r.operation for r in await usage_tracker.list_records(project.id)]
        assert operations == ["input_processing", "market_research", "estimate"]

    @pytest.mark.asyncio
    async def test_explicit_title_is_kept(self, controller):
        project = await _create(controller, title="Acme booking")
        assert project.title == "Acme booking"

    @pytest.mark.asyncio
    async def test_missing_data_stays_in_draft(self, controller, fake_provider):
        fake_provider.responses["input_processing"] = VAGUE_INTAKE

        project = await _create(controller)

        assert project.status == ProjectStatus.DRAFT
        assert project.brief.missing_data is True
        assert project.brief.missing_fields == ["budget", "region"]
        assert project.scenario_a is None
        assert [op for op, _ in fake_provider.calls] == ["input_processing"]

    @pytest.mark.asyncio
    async def test_update_brief_with_budget_generates_constrained_estimate(self, controller, fake_provider):
        fake_provider.responses["input_processing"] = VAGUE_INTAKE
        project = await _create(controller)

        updated = await controller.advance_stage(
            project.id,
            WorkflowAction.UPDATE_BRIEF,
            ActionPayload(budget=20000, details="Booking for 12 clinics"),
        )

        assert updated.status == ProjectStatus.ESTIMATE_GENERATED
        assert updated.brief.missing_data is False
        assert updated.budget == 20000
        assert "Additional details:\nBooking for 12 clinics" in updated.raw_input
        assert updated.scenario_a.budget_constrained is True
        assert updated.scenario_b.budget_constrained is False
        assert "$20,000" in updated.estimate_markdown

    @pytest.mark.asyncio
    async def test_budget_at_creation_flags_over_budget_scenario(self, controller):
        project = await _create(controller, budget=20000)

        assert project.scenario_a.budget_constrained is True
        assert "exceeds the stated budget of $20,000" in project.scenario_a.budget_disclaimer
        assert project.scenario_b.budget_constrained is False

    @pytest.mark.asyncio
    async def test_budget_written_as_text_is_parsed(self, controller, fake_provider):
        intake = json.loads(fake_provider.responses["input_processing"])
        intake["estimated_budget"] = "$20k"
        fake_provider.responses["input_processing"] = json.dumps(intake)

        project = await _create(controller)

        assert project.budget == 20000
        assert project.scenario_a.budget_constrained is True
        assert project.scenario_b.budget_constrained is False

    @pytest.mark.asyncio
    async def test_invalid_inputs_rejected_before_any_call(self, controller, fake_provider):
        with pytest.raises(ValidationError):
            await controller.create_project("   ")
        with pytest.raises(ValidationError):
            await controller.create_project(RAW_INPUT, client_email="not-an-email")
        with pytest.raises(ValidationError):
            await controller.create_project(RAW_INPUT, budget=-5)

        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_update_brief_only_in_stage_1(self, controller):
        project = await _at_stage_2(controller)

        with pytest.raises(StageInvariantViolation):
            await controller.advance_stage(project.id, WorkflowAction.UPDATE_BRIEF, ActionPayload(budget=1000))

    @pytest.mark.asyncio
    async def test_select_scenario_requires_estimate(self, controller, fake_provider):
        fake_provider.responses["input_processing"] = VAGUE_INTAKE
        project = await _create(controller)

        with pytest.raises(StageInvariantViolation):
            await controller.advance_stage(
                project.id, WorkflowAction.SELECT_SCENARIO, ActionPayload(scenario=ScenarioChoice.B)
            )

    @pytest.mark.asyncio
    async def test_select_scenario(self, controller):
        project = await _create(controller)

        with pytest.raises(ValidationError):
            await controller.advance_stage(project.id, WorkflowAction.SELECT_SCENARIO)

        updated = await controller.advance_stage(
            project.id, WorkflowAction.SELECT_SCENARIO, ActionPayload(scenario=ScenarioChoice.B)
        )
        assert updated.selected_scenario == ScenarioChoice.B
        assert updated.current_stage == 1


# ==================== 폴백 ====================

class TestDegradedMode:

    @pytest.mark.asyncio
    async def test_intake_exhausted_uses_fallback_brief(self, controller, fake_provider):
        fake_provider.fail()

        project = await _create(controller)

        assert project.status == ProjectStatus.DRAFT
        assert project.fallback_fields == ["brief"]
        assert project.brief.missing_data is True
        assert project.history[-1].degraded is True

    @pytest.mark.asyncio
    async def test_estimate_exhausted_stores_flagged_placeholder(self, controller, fake_provider):
        fake_provider.fail("estimate", "market_research")

        project = await _create(controller, budget=20000)

        assert set(project.fallback_fields) == {"estimate", "research"}
        assert project.scenario_a.total_cost == 45000
        assert project.scenario_a.budget_constrained is True
        assert project.status == ProjectStatus.ESTIMATE_GENERATED

    @pytest.mark.asyncio
    async def test_regeneration_failure_keeps_model_content(self, controller, fake_provider):
        project = await _create(controller)
        fake_provider.fail("estimate")

        regenerated = await controller.regenerate(project.id, RegenerationTarget.ESTIMATE)

        assert regenerated.scenario_a.total_cost == 60000
        assert "estimate" not in regenerated.fallback_fields
        assert regenerated.history[-1].action == "regenerate:estimate"
        assert regenerated.current_stage == 1

    @pytest.mark.asyncio
    async def test_regeneration_replaces_fallback(self, controller, fake_provider):
        fake_provider.fail("estimate")
        project = await _create(controller)
        fake_provider.restore()

        regenerated = await controller.regenerate(project.id, RegenerationTarget.ESTIMATE)

        assert regenerated.scenario_a.total_cost == 60000
        assert "estimate" not in regenerated.fallback_fields

    @pytest.mark.asyncio
    async def test_degraded_entry_operation_does_not_advance(self, controller, fake_provider):
        project = await _at_stage_2(controller)
        await controller.advance_stage(project.id, WorkflowAction.SEND_EMAIL)
        fake_provider.fail("execution_guide")

        held = await controller.advance_stage(project.id, WorkflowAction.ADVANCE)

        assert held.current_stage == 2
        assert "execution_guide" in held.fallback_fields
        assert held.execution_guide_a.startswith("# High-Code Execution Guide")
        assert held.history[-1].degraded is True

        forced = await controller.advance_stage(project.id, WorkflowAction.ADVANCE, ActionPayload(force=True))
        assert forced.current_stage == 3
        assert forced.status == ProjectStatus.ACCEPTED


# ==================== 승인 및 에셋 ====================

class TestApproval:

    @pytest.mark.asyncio
    async def test_approve_indexes_exactly_one_estimate(self, controller, knowledge_service):
        project = await _create(controller)

        approved = await controller.advance_stage(project.id, WorkflowAction.APPROVE)

        entries = await knowledge_service.list_entries("approved_estimate")
        assert len(entries) == 1
        assert entries[0].content == approved.estimate_markdown
        assert entries[0].metadata["selected_scenario"] == "A"
        assert len(await knowledge_service.list_entries("research")) == 1

        assert approved.current_stage == 2
        assert approved.status == ProjectStatus.ASSETS_READY
        assert approved.selected_scenario == ScenarioChoice.A
        assert approved.proposal_pdf_url == f"/api/v1/projects/{project.id}/assets/proposal"
        assert approved.email_content.startswith("Subject:")

    @pytest.mark.asyncio
    async def test_approve_with_explicit_choice(self, controller):
        project = await _create(controller)

        approved = await controller.advance_stage(
            project.id, WorkflowAction.APPROVE, ActionPayload(scenario=ScenarioChoice.B)
        )

        assert approved.selected_scenario == ScenarioChoice.B

    @pytest.mark.asyncio
    async def test_approve_without_estimate_rejected(self, controller, fake_provider, knowledge_service):
        fake_provider.responses["input_processing"] = VAGUE_INTAKE
        project = await _create(controller)

        with pytest.raises(StageInvariantViolation):
            await controller.advance_stage(project.id, WorkflowAction.APPROVE)

        assert await knowledge_service.list_entries() == []
        assert (await controller.get_project_state(project.id)).current_stage == 1

    @pytest.mark.asyncio
    async def test_fallback_email_draft_does_not_block_approval(self, controller, fake_provider):
        project = await _create(controller)
        fake_provider.fail("email")

        approved = await controller.advance_stage(project.id, WorkflowAction.APPROVE)

        assert approved.current_stage == 2
        assert "email" in approved.fallback_fields

    @pytest.mark.asyncio
    async def test_failed_save_leaves_no_knowledge_entries(self, controller, temp_storage, knowledge_service):
        project = await _create(controller)
        temp_storage.save_project = AsyncMock(side_effect=PersistenceError("disk unavailable"))

        with pytest.raises(PersistenceError):
            await controller.advance_stage(project.id, WorkflowAction.APPROVE)

        assert await knowledge_service.list_entries() == []
        stored = await controller.get_project_state(project.id)
        assert stored.current_stage == 1
        assert stored.status != ProjectStatus.ASSETS_READY


# ==================== 2단계: 이메일 ====================

class TestSendEmail:

    @pytest.mark.asyncio
    async def test_missing_client_email_rejected_without_provider_call(self, controller, fake_provider, email_sender):
        project = await controller.create_project(RAW_INPUT)
        await controller.advance_stage(project.id, WorkflowAction.APPROVE)
        calls_before = len(fake_provider.calls)

        with pytest.raises(ValidationError) as exc_info:
            await controller.advance_stage(project.id, WorkflowAction.SEND_EMAIL)

        assert exc_info.value.details == {"field": "client_email"}
        assert len(fake_provider.calls) == calls_before
        email_sender.send.assert_not_called()
        assert (await controller.get_project_state(project.id)).status == ProjectStatus.ASSETS_READY

    @pytest.mark.asyncio
    async def test_send_uses_draft_subject(self, controller, email_sender):
        project = await _at_stage_2(controller)

        sent = await controller.advance_stage(project.id, WorkflowAction.SEND_EMAIL)

        email_sender.send.assert_awaited_once()
        to, subject, body = email_sender.send.await_args.args
        assert to == "ops@acme.test"
        assert subject == "Your clinic booking proposal"
        assert body.startswith("Hi Acme team")
        assert sent.status == ProjectStatus.EMAIL_SENT
        assert sent.current_stage == 2
        assert sent.email_sent_at is not None

    @pytest.mark.asyncio
    async def test_payload_overrides_draft(self, controller, email_sender):
        project = await _at_stage_2(controller)

        await controller.advance_stage(
            project.id,
            WorkflowAction.SEND_EMAIL,
            ActionPayload(client_email="ceo@acme.test", email_subject="Hello", email_body="Custom body"),
        )

        email_sender.send.assert_awaited_once_with("ceo@acme.test", "Hello", "Custom body")

    @pytest.mark.asyncio
    async def test_delivery_failure_leaves_state_unchanged(self, controller, email_sender):
        project = await _at_stage_2(controller)
        email_sender.send.side_effect = DeliveryError("smtp down")

        with pytest.raises(DeliveryError):
            await controller.advance_stage(project.id, WorkflowAction.SEND_EMAIL)

        stored = await controller.get_project_state(project.id)
        assert stored.status == ProjectStatus.ASSETS_READY
        assert stored.email_sent_at is None

    @pytest.mark.asyncio
    async def test_auto_advance_after_send(
        self, temp_storage, orchestrator, knowledge_service, email_sender
    ):
        controller = StageWorkflowController(
            storage=temp_storage,
            orchestrator=orchestrator,
            knowledge=knowledge_service,
            email_sender=email_sender,
            settings=Settings(auto_advance_on_send=True),
        )
        project = await _at_stage_2(controller)

        advanced = await controller.advance_stage(project.id, WorkflowAction.SEND_EMAIL)

        assert advanced.current_stage == 3
        assert advanced.status == ProjectStatus.ACCEPTED
        assert [e.action for e in advanced.history[-2:]] == ["send_email", "advance:3"]


# ==================== 단계 진행 ====================

class TestAdvance:

    @pytest.mark.asyncio
    async def test_skipping_a_stage_is_rejected_and_state_unchanged(self, controller, fake_provider):
        project = await _at_stage_2(controller)
        before = await controller.get_project_state(project.id)
        calls_before = len(fake_provider.calls)

        with pytest.raises(StageInvariantViolation):
            await controller.advance_stage(
                project.id, WorkflowAction.ADVANCE, ActionPayload(target_stage=4, admin=True)
            )

        assert await controller.get_project_state(project.id) == before
        assert len(fake_provider.calls) == calls_before

    @pytest.mark.asyncio
    async def test_stage_1_must_use_approve(self, controller):
        project = await _create(controller)

        with pytest.raises(StageInvariantViolation):
            await controller.advance_stage(project.id, WorkflowAction.ADVANCE)

    @pytest.mark.asyncio
    async def test_stage_3_requires_sent_email_or_admin(self, controller):
        project = await _at_stage_2(controller)

        with pytest.raises(StageInvariantViolation):
            await controller.advance_stage(project.id, WorkflowAction.ADVANCE)

        advanced = await controller.advance_stage(project.id, WorkflowAction.ADVANCE, ActionPayload(admin=True))
        assert advanced.current_stage == 3
        assert advanced.execution_guide_b.startswith("# No-Code Guide")

    @pytest.mark.asyncio
    async def test_full_walk_to_completion(self, controller):
        project = await _at_stage_4(controller)

        assert project.current_stage == 4
        assert project.status == ProjectStatus.IN_PROGRESS
        assert project.pm_breakdown.total_tasks == 2

        completed = await controller.advance_stage(project.id, WorkflowAction.FINAL_APPROVE)

        assert completed.current_stage == 5
        assert completed.status == ProjectStatus.COMPLETED
        assert completed.final_approved_at is not None

        # 단계는 단조 증가
        stages = [event.to_stage for event in completed.history]
        assert stages == sorted(stages)

    @pytest.mark.asyncio
    async def test_advance_to_5_then_final_approve(self, controller):
        project = await _at_stage_4(controller)

        at_five = await controller.advance_stage(project.id, WorkflowAction.ADVANCE)
        assert at_five.current_stage == 5
        assert at_five.status == ProjectStatus.IN_PROGRESS

        completed = await controller.advance_stage(project.id, WorkflowAction.FINAL_APPROVE)
        assert completed.status == ProjectStatus.COMPLETED

        with pytest.raises(StageInvariantViolation):
            await controller.advance_stage(project.id, WorkflowAction.FINAL_APPROVE)

    @pytest.mark.asyncio
    async def test_final_approve_before_stage_4_rejected(self, controller):
        project = await _at_stage_2(controller)

        with pytest.raises(StageInvariantViolation):
            await controller.advance_stage(project.id, WorkflowAction.FINAL_APPROVE)

    @pytest.mark.asyncio
    async def test_stage_5_is_terminal(self, controller):
        project = await _at_stage_4(controller)
        await controller.advance_stage(project.id, WorkflowAction.FINAL_APPROVE)

        with pytest.raises(StageInvariantViolation):
            await controller.advance_stage(project.id, WorkflowAction.ADVANCE)
        with pytest.raises(StageInvariantViolation):
            await controller.regenerate(project.id, RegenerationTarget.PM_BREAKDOWN)
        with pytest.raises(StageInvariantViolation):
            await controller.send_message(project.id, "one more thing")


# ==================== 재생성 ====================

class TestRegenerate:

    @pytest.mark.asyncio
    async def test_operation_not_allowed_at_stage(self, controller):
        project = await _at_stage_2(controller)

        with pytest.raises(StageInvariantViolation):
            await controller.regenerate(project.id, RegenerationTarget.ESTIMATE)

    @pytest.mark.asyncio
    async def test_regenerate_email_in_stage_2(self, controller, fake_provider):
        project = await _at_stage_2(controller)
        fake_provider.responses["email"] = "Subject: Revised proposal\n\nHere is the revised version of the proposal."

        regenerated = await controller.regenerate(project.id, RegenerationTarget.EMAIL)

        assert regenerated.email_content.startswith("Subject: Revised proposal")
        assert regenerated.current_stage == 2

    @pytest.mark.asyncio
    async def test_estimate_needs_sufficient_brief(self, controller, fake_provider):
        fake_provider.responses["input_processing"] = VAGUE_INTAKE
        project = await _create(controller)

        with pytest.raises(ValidationError):
            await controller.regenerate(project.id, RegenerationTarget.ESTIMATE)


# ==================== 대화 ====================

class TestChat:

    @pytest.mark.asyncio
    async def test_send_message(self, controller):
        project = await _create(controller)

        reply = await controller.send_message(project.id, "How is it going?")

        stored = await controller.get_project_state(project.id)
        assert reply.content == "The estimate is ready for your review."
        assert reply.is_fallback is False
        assert [m.role for m in stored.messages] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_fallback_reply_is_stage_aware(self, controller, fake_provider):
        project = await _create(controller)
        fake_provider.fail("chat")

        reply = await controller.send_message(project.id, "status?")

        expected = FallbackResponder().chat(project)
        assert reply.is_fallback is True
        assert reply.content == expected.text
        assert reply.stage == 1

    @pytest.mark.asyncio
    async def test_empty_message_rejected(self, controller):
        project = await _create(controller)
        with pytest.raises(ValidationError):
            await controller.send_message(project.id, "  ")


# ==================== 보관 / 삭제 / 첨부 ====================

class TestLifecycle:

    @pytest.mark.asyncio
    async def test_unknown_project(self, controller):
        with pytest.raises(ProjectNotFoundError):
            await controller.get_project_state("missing")
        with pytest.raises(ProjectNotFoundError):
            await controller.advance_stage("missing", WorkflowAction.APPROVE)

    @pytest.mark.asyncio
    async def test_archived_project_is_read_only(self, controller):
        project = await _create(controller)

        archived = await controller.archive_project(project.id)

        assert archived.archived is True
        assert await controller.list_projects() == []
        assert len(await controller.list_projects(include_archived=True)) == 1
        with pytest.raises(StageInvariantViolation):
            await controller.advance_stage(project.id, WorkflowAction.APPROVE)

    @pytest.mark.asyncio
    async def test_wipe_keeps_knowledge_and_usage(self, controller, knowledge_service, usage_tracker):
        project = await _at_stage_2(controller)

        await controller.wipe_project(project.id)

        with pytest.raises(ProjectNotFoundError):
            await controller.get_project_state(project.id)
        with pytest.raises(ProjectNotFoundError):
            await controller.wipe_project(project.id)
        assert len(await knowledge_service.list_entries("approved_estimate")) == 1
        assert (await usage_tracker.summarize_project(project.id)).total_calls > 0

    @pytest.mark.asyncio
    async def test_add_attachment(self, controller):
        project = await _create(controller)

        updated = await controller.add_attachment(
            project.id, "brief.pdf", "application/pdf", 2048, "https://files.test/brief.pdf"
        )

        assert updated.attachments[0].filename == "brief.pdf"
        with pytest.raises(ValidationError):
            await controller.add_attachment(project.id, "x.exe", "application/x-msdownload", 1, "/x.exe")


# ==================== 동시성 / 저장 실패 ====================

class TestConcurrency:

    @pytest.mark.asyncio
    async def test_concurrent_advances_are_serialized(self, controller):
        project = await _at_stage_2(controller)
        await controller.advance_stage(project.id, WorkflowAction.SEND_EMAIL)
        payload = ActionPayload(target_stage=3)

        results = await asyncio.gather(
            controller.advance_stage(project.id, WorkflowAction.ADVANCE, payload),
            controller.advance_stage(project.id, WorkflowAction.ADVANCE, payload),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, StageInvariantViolation)]
        assert len(successes) == 1
        assert len(failures) == 1
        stored = await controller.get_project_state(project.id)
        assert stored.current_stage == 3
        assert [e.action for e in stored.history].count("advance:3") == 1

    @pytest.mark.asyncio
    async def test_persistence_failure_propagates(self, controller, temp_storage):
        project = await _create(controller)
        temp_storage.save_project = AsyncMock(side_effect=PersistenceError("disk unavailable"))

        with pytest.raises(PersistenceError):
            await controller.advance_stage(project.id, WorkflowAction.APPROVE)

    @pytest.mark.asyncio
    async def test_project_locks_are_released(self, controller):
        project = await _at_stage_2(controller)
        await controller.advance_stage(project.id, WorkflowAction.SEND_EMAIL)
        payload = ActionPayload(target_stage=3)

        await asyncio.gather(
            controller.advance_stage(project.id, WorkflowAction.ADVANCE, payload),
            controller.advance_stage(project.id, WorkflowAction.ADVANCE, payload),
            return_exceptions=True,
        )
        await controller.send_message(project.id, "Any update?")

        assert controller._locks == {}
        assert controller._lock_users == {}

    @pytest.mark.asyncio
    async def test_lock_released_after_failure(self, controller):
        with pytest.raises(ProjectNotFoundError):
            await controller.advance_stage("missing", WorkflowAction.APPROVE)

        assert "missing" not in controller._locks
