"""Data model unit tests."""

from datetime import datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.models import (
    EstimateResult,
    PMBreakdown,
    Project,
    ProjectStatus,
    Scenario,
    ScenarioChoice,
)


class TestProject:

    def test_defaults(self):
        project = Project()
        assert project.current_stage == 1
        assert project.status == ProjectStatus.DRAFT
        assert project.is_degraded is False

    def test_stage_bounds(self):
        with pytest.raises(PydanticValidationError):
            Project(current_stage=6)
        with pytest.raises(PydanticValidationError):
            Project(current_stage=0)

    def test_completed_requires_final_approval(self):
        with pytest.raises(PydanticValidationError):
            Project(current_stage=5, status=ProjectStatus.COMPLETED)
        with pytest.raises(PydanticValidationError):
            Project(current_stage=4, status=ProjectStatus.COMPLETED, final_approved_at=datetime.now())

        project = Project(current_stage=5, status=ProjectStatus.COMPLETED, final_approved_at=datetime.now())
        assert project.get_progress()["progress_percent"] == 100

    def test_fallback_markers(self):
        project = Project()
        project.mark_fallback("estimate", "research")
        project.mark_fallback("estimate")

        assert project.fallback_fields == ["estimate", "research"]
        project.clear_fallback("estimate")
        assert project.fallback_fields == ["research"]

    def test_record_event_snapshots_stage_and_status(self):
        project = Project(current_stage=2, status=ProjectStatus.ASSETS_READY)
        project.record_event("approve", from_stage=1, degraded=True)

        event = project.history[-1]
        assert (event.from_stage, event.to_stage) == (1, 2)
        assert event.status == "assets_ready"
        assert event.degraded is True

    def test_selected(self, sample_project):
        assert sample_project.selected() is None
        sample_project.selected_scenario = ScenarioChoice.B
        assert sample_project.selected().name == "No-Code MVP"

    def test_json_round_trip(self, sample_project):
        restored = Project.model_validate_json(sample_project.model_dump_json())
        assert restored == sample_project


class TestEstimate:

    def _estimate(self) -> EstimateResult:
        return EstimateResult(
            scenario_a=Scenario(name="Custom", total_cost=50000),
            scenario_b=Scenario(name="MVP", total_cost=12000),
        )

    def test_budget_flags_only_scenarios_over_budget(self):
        estimate = self._estimate().apply_budget(20000)

        assert estimate.scenario_a.budget_constrained is True
        assert "$20,000" in estimate.scenario_a.budget_disclaimer
        assert estimate.scenario_b.budget_constrained is False
        assert estimate.scenario_b.budget_disclaimer is None

    def test_budget_change_clears_flags(self):
        estimate = self._estimate().apply_budget(20000).apply_budget(100000)

        assert estimate.scenario_a.budget_constrained is False
        assert estimate.scenario_a.budget_disclaimer is None

    def test_costs_are_never_altered(self):
        estimate = self._estimate().apply_budget(1000)
        assert estimate.scenario_a.total_cost == 50000

    def test_markdown_contains_budget_notice(self):
        markdown = self._estimate().apply_budget(20000).to_markdown()

        assert "**Target budget**: $20,000" in markdown
        assert "Budget notice" in markdown
        assert "## ROI Analysis" in markdown

    def test_negative_cost_rejected(self):
        with pytest.raises(PydanticValidationError):
            Scenario(name="x", total_cost=-1)


class TestPMBreakdown:

    def test_requires_phases_with_tasks(self):
        with pytest.raises(PydanticValidationError):
            PMBreakdown(phases=[])
        with pytest.raises(PydanticValidationError):
            PMBreakdown.model_validate({"phases": [{"phase_number": 1, "phase_name": "A", "tasks": []}]})

    def test_totals_and_markdown(self):
        breakdown = PMBreakdown.model_validate({
            "phases": [
                {
                    "phase_number": 1,
                    "phase_name": "Build",
                    "tasks": [
                        {"id": "T1", "name": "API", "estimated_hours": 10,
                         "checklist": [{"id": "C1", "action": "Write endpoints", "completed": True}]},
                        {"id": "T2", "name": "UI", "estimated_hours": 5},
                    ],
                }
            ]
        })

        assert breakdown.total_hours == 15
        assert breakdown.total_tasks == 2
        markdown = breakdown.to_markdown()
        assert "## Phase 1: Build" in markdown
        assert "- [x] Write endpoints" in markdown
