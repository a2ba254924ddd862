"""Prompts for the PM breakdown."""

PM_BREAKDOWN_PROMPT = """You are an experienced project manager (PMP).
Create a phased project management breakdown for the selected approach.

PROJECT: {{title}}
SELECTED APPROACH: {{approach}}
SCENARIO DETAILS:
{{scenario}}

EXECUTION GUIDE (reference):
{{guide}}

Rules:
1. 3 to 6 phases in logical order, each with at least one task.
2. Each task is completable by one person within 1 to 5 days.
3. Every task has a short checklist of concrete actions.
4. Total estimated hours should be consistent with the scenario's total_hours when given.

Return ONLY a JSON object:
{
  "phases": [
    {
      "phase_number": 1,
      "phase_name": "Discovery",
      "objectives": ["..."],
      "deliverables": ["..."],
      "duration_days": 5,
      "dependencies": [],
      "tasks": [
        {
          "id": "P1-T1",
          "name": "Stakeholder interviews",
          "description": "...",
          "estimated_hours": 8,
          "assignee": "Project Manager",
          "checklist": [
            {"id": "P1-T1-C1", "action": "Schedule interviews", "completed": false}
          ]
        }
      ]
    }
  ]
}"""
