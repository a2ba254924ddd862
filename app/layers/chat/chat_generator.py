"""Stage-aware project assistant chat."""

from typing import Any

from app.models import Project, STAGES
from app.layers.base_generator import BaseGenerator

from .prompts import CHAT_PROMPT

# 프롬프트에 넣을 최근 메시지 수
HISTORY_LIMIT = 10


class ChatGenerator(BaseGenerator[str]):
    """현재 단계 정보를 포함한 대화 응답 생성."""

    operation = "chat"
    template = CHAT_PROMPT
    untrusted_variables = ("title", "missing_fields", "history", "message")
    _generator_name = "ChatGenerator"

    async def _build_variables(self, project: Project, **kwargs: Any) -> dict:
        recent = project.messages[-HISTORY_LIMIT:]
        history = "\n".join(f"{m.role}: {m.content}" for m in recent) or None
        return {
            "title": project.title,
            "stage": project.current_stage,
            "stage_name": STAGES[project.current_stage],
            "status": project.status.value,
            "selected": project.selected_scenario.value if project.selected_scenario else None,
            "missing_fields": ", ".join(project.brief.missing_fields) if project.brief and project.brief.missing_fields else "none",
            "history": history,
            "message": kwargs.get("message", ""),
        }

    def _parse(self, text: str) -> str:
        return self._require_text(text, min_length=1)
