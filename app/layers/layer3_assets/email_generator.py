"""Email draft generator - approved scenario to proposal email."""

from typing import Any

from app.models import Project
from app.layers.base_generator import BaseGenerator

from .prompts import EMAIL_PROMPT


class EmailGenerator(BaseGenerator[str]):
    """2단계 제안 메일 초안. 첫 줄은 'Subject:' 형식이어야 합니다."""

    operation = "email"
    template = EMAIL_PROMPT
    untrusted_variables = ("title", "client_name", "raw_input")
    _generator_name = "EmailGenerator"

    async def _build_variables(self, project: Project, **kwargs: Any) -> dict:
        selected = project.selected()
        return {
            "title": project.title,
            "client_name": project.client_name,
            "scenario": selected.model_dump(
                include={"name", "description", "total_cost", "timeline", "features", "budget_disclaimer"}
            ) if selected else None,
            "proposal_url": project.proposal_pdf_url,
            "presentation_url": project.presentation_url,
            "raw_input": project.raw_input,
        }

    def _parse(self, text: str) -> str:
        cleaned = self._require_text(text, min_length=40)
        if not cleaned.lower().startswith("subject:"):
            raise ValueError("Email draft must start with a 'Subject:' line")
        return cleaned
