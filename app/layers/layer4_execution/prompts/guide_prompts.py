"""Prompts for execution guides (High-Code / No-Code)."""

GUIDE_PROMPT = """You are writing two step-by-step execution manuals for the same project.

PROJECT: {{title}}
MISSION: {{mission}}
OBJECTIVES:
{{objectives}}

=== MANUAL A (High-Code Approach) ===
{{scenario_a}}

=== MANUAL B (No-Code Approach) ===
{{scenario_b}}

SELECTED BY CLIENT: Scenario {{selected}}

Each manual is markdown with: Overview, Prerequisites, numbered Build Steps, Testing, Launch Checklist.

Return ONLY a JSON object:
{
  "guide_a": "# Manual A ...",
  "guide_b": "# Manual B ..."
}"""
