"""공유 pytest fixture 모음."""

import json
from typing import Optional, Union

import pytest
from unittest.mock import AsyncMock

from app.config import Settings
from app.models import Project, ProjectBrief, Scenario, ROIAnalysis
from app.services.providers import BaseProvider, ProviderResponse
from app.exceptions import ProviderFailure


# ==================== 모델 응답 샘플 ====================

INTAKE_RESPONSE = json.dumps({
    "title": "Clinic Booking Platform",
    "mission": "Let patients book clinic appointments online",
    "objectives": ["Online booking", "SMS reminders"],
    "constraints": ["HIPAA compliance"],
    "client_name": "Acme Clinics",
    "estimated_budget": None,
    "region": "US",
    "timeline": "3 months",
    "tech_preferences": [],
    "missing_data": False,
    "missing_fields": [],
})

ESTIMATE_RESPONSE = json.dumps({
    "scenario_a": {
        "name": "High-Tech Custom",
        "description": "Custom web and mobile build",
        "features": ["Booking engine", "Patient portal"],
        "tech_stack": ["FastAPI", "React"],
        "timeline": "16 weeks",
        "total_cost": 60000,
        "hourly_rate": 100,
        "total_hours": 600,
        "recommended": True,
    },
    "scenario_b": {
        "name": "No-Code MVP",
        "description": "Bubble MVP",
        "features": ["Booking engine"],
        "tech_stack": ["Bubble"],
        "timeline": "6 weeks",
        "total_cost": 18000,
        "hourly_rate": 75,
        "total_hours": 240,
    },
    "roi_analysis": {
        "cost_of_doing_nothing": 120000,
        "projected_savings": 80000,
        "payback_period_months": 9,
        "three_year_roi": 210,
    },
})

RESEARCH_RESPONSE = (
    "# Market Research\n\nClinic booking platforms typically range from "
    "$20k to $80k depending on integrations."
)

EMAIL_RESPONSE = (
    "Subject: Your clinic booking proposal\n\n"
    "Hi Acme team,\n\nPlease find the proposal for the booking platform attached.\n\nBest regards"
)

GUIDE_RESPONSE = json.dumps({
    "guide_a": "# High-Code Guide\n\n1. Set up the FastAPI backend\n2. Build the React front end",
    "guide_b": "# No-Code Guide\n\n1. Create the Bubble app\n2. Configure the booking workflow",
})

PM_RESPONSE = json.dumps({
    "phases": [
        {
            "phase_number": 1,
            "phase_name": "Discovery",
            "tasks": [
                {
                    "id": "P1-T1",
                    "name": "Stakeholder interviews",
                    "estimated_hours": 8,
                    "checklist": [{"id": "P1-T1-C1", "action": "Schedule interviews"}],
                }
            ],
        },
        {
            "phase_number": 2,
            "phase_name": "Build",
            "tasks": [{"id": "P2-T1", "name": "Booking engine", "estimated_hours": 120}],
        },
    ]
})

CANNED_RESPONSES = {
    "input_processing": INTAKE_RESPONSE,
    "estimate": ESTIMATE_RESPONSE,
    "market_research": RESEARCH_RESPONSE,
    "email": EMAIL_RESPONSE,
    "execution_guide": GUIDE_RESPONSE,
    "pm_breakdown": PM_RESPONSE,
    "chat": "The estimate is ready for your review.",
}

ALL_OPERATIONS = list(CANNED_RESPONSES)


# ==================== 가짜 프로바이더 ====================

class FakeProvider(BaseProvider):
    """작업별 고정 응답을 돌려주는 테스트용 프로바이더."""

    def __init__(
        self,
        name: str = "fake",
        responses: Optional[dict[str, Union[str, Exception]]] = None,
        configured: bool = True,
        model: str = "fake-model",
        tokens: Optional[tuple[int, int]] = (100, 50),
    ):
        super().__init__(model)
        self.name = name
        self.responses = dict(CANNED_RESPONSES if responses is None else responses)
        self.configured = configured
        self.tokens = tokens
        self.calls: list[tuple[str, str]] = []

    def is_configured(self) -> bool:
        return self.configured

    async def generate_content(self, prompt: str, operation: str) -> ProviderResponse:
        self.calls.append((operation, prompt))
        response = self.responses.get(operation)
        if response is None:
            raise ProviderFailure(self.name, f"no response for {operation}")
        if isinstance(response, Exception):
            raise response
        if self.tokens is None:
            return ProviderResponse(text=response)
        return ProviderResponse(text=response, input_tokens=self.tokens[0], output_tokens=self.tokens[1])

    def fail(self, *operations: str) -> None:
        """지정한 작업이 항상 실패하도록 설정."""
        for operation in operations or ALL_OPERATIONS:
            self.responses[operation] = ProviderFailure(self.name, "service unavailable")

    def restore(self) -> None:
        self.responses = dict(CANNED_RESPONSES)


def rankings_for(*names: str) -> dict[str, list[str]]:
    return {operation: list(names) for operation in ALL_OPERATIONS}


# ==================== 서비스 fixture ====================

@pytest.fixture
def temp_storage(tmp_path):
    """임시 디렉토리 기반 FileStorage fixture."""
    from app.services.file_storage import FileStorage
    return FileStorage(base_path=str(tmp_path))


@pytest.fixture
def health_registry():
    from app.services.health import ApiHealthRegistry, InMemoryKeyValueStore
    return ApiHealthRegistry(InMemoryKeyValueStore())


@pytest.fixture
def usage_tracker(temp_storage):
    from app.services.usage_tracker import UsageTracker
    return UsageTracker(temp_storage)


@pytest.fixture
def knowledge_service(temp_storage):
    from app.services.knowledge import KnowledgeService
    return KnowledgeService(temp_storage)


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def orchestrator(fake_provider, usage_tracker, health_registry):
    """가짜 프로바이더 하나로 모든 작업을 처리하는 오케스트레이터."""
    from app.services.orchestrator import ProviderOrchestrator
    return ProviderOrchestrator(
        providers=[fake_provider],
        usage_tracker=usage_tracker,
        health=health_registry,
        rankings=rankings_for("fake"),
        timeout_seconds=5,
    )


@pytest.fixture
def email_sender():
    sender = AsyncMock()
    sender.send = AsyncMock(return_value="msg-001")
    return sender


@pytest.fixture
def workflow_settings():
    """자동 진행 없이 단계를 하나씩 검증하기 위한 설정."""
    return Settings(auto_advance_on_send=False)


@pytest.fixture
def controller(temp_storage, orchestrator, knowledge_service, email_sender, workflow_settings):
    from app.services.workflow import StageWorkflowController
    return StageWorkflowController(
        storage=temp_storage,
        orchestrator=orchestrator,
        knowledge=knowledge_service,
        email_sender=email_sender,
        settings=workflow_settings,
    )


@pytest.fixture
async def client(controller, usage_tracker, knowledge_service, health_registry, orchestrator):
    """의존성을 테스트용 서비스로 교체한 httpx AsyncClient."""
    from httpx import AsyncClient, ASGITransport
    from app.main import app
    from app.services.health import get_health_registry
    from app.services.knowledge import get_knowledge_service
    from app.services.orchestrator import get_orchestrator
    from app.services.usage_tracker import get_usage_tracker
    from app.services.workflow import get_workflow_controller

    app.dependency_overrides[get_workflow_controller] = lambda: controller
    app.dependency_overrides[get_usage_tracker] = lambda: usage_tracker
    app.dependency_overrides[get_knowledge_service] = lambda: knowledge_service
    app.dependency_overrides[get_health_registry] = lambda: health_registry
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ==================== 모델 fixture ====================

@pytest.fixture
def sample_project():
    """견적까지 생성된 1단계 프로젝트."""
    return Project(
        id="proj-001",
        title="Clinic Booking Platform",
        client_name="Acme Clinics",
        client_email="ops@acme.test",
        raw_input="We need an online booking system for our clinics in the US.",
        region="US",
        brief=ProjectBrief(mission="Let patients book online", objectives=["Online booking"], region="US"),
        scenario_a=Scenario(name="High-Tech Custom", total_cost=60000, recommended=True),
        scenario_b=Scenario(name="No-Code MVP", total_cost=18000),
        roi_analysis=ROIAnalysis(three_year_roi=210),
        estimate_markdown="# Dual-Scenario Estimate\n\nScenario A: $60,000",
        research_markdown="# Market Research\n\nTypical range $20k-$80k.",
    )
