"""AI 응답에서 JSON을 추출하는 파서.

모델 응답은 종종 마크다운 코드 블록이나 설명 문장을 포함하므로,
3단계 파싱 전략을 사용합니다.

┌─────────────────────────────────────────────────────────────┐
│ 단계     │ 방법                     │ 성공 시               │
├─────────────────────────────────────────────────────────────┤
│ 1. 직접  │ 마크다운 제거 후 파싱    │ 바로 반환             │
│ 2. 추출  │ JSON 구조 찾아서 파싱    │ 추출된 JSON 반환      │
│ 3. 실패  │ -                        │ ValueError 발생       │
└─────────────────────────────────────────────────────────────┘
"""

import json
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def strip_code_fences(response: str) -> str:
    """```json ... ``` 형태의 코드 블록 표시 제거."""
    cleaned = response.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def _extract_json_block(text: str) -> Optional[str]:
    """중괄호/대괄호 깊이를 추적하여 첫 번째 완전한 JSON 구조를 잘라냅니다."""
    obj_idx = text.find("{")
    arr_idx = text.find("[")
    candidates = [i for i in (obj_idx, arr_idx) if i != -1]
    if not candidates:
        return None

    start_idx = min(candidates)
    bracket = text[start_idx]
    closing = "}" if bracket == "{" else "]"

    depth = 0
    in_string = False
    escaped = False
    for i, char in enumerate(text[start_idx:], start_idx):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == bracket:
            depth += 1
        elif char == closing:
            depth -= 1
            if depth == 0:
                return text[start_idx:i + 1]
    return None


def parse_json_response(response: str) -> Any:
    """
    모델 응답에서 JSON 파싱.

    처리 가능한 응답 형식 예시:
    - 순수 JSON: {"key": "value"}
    - 코드 블록: ```json\\n{"key": "value"}\\n```
    - 텍스트 포함: 결과입니다: {"key": "value"}

    Raises:
        ValueError: 비어 있거나 JSON을 찾을 수 없는 경우
    """
    if response is None or not response.strip():
        raise ValueError("Empty response")

    # ========== 1단계: 마크다운 코드 블록 제거 후 직접 파싱 ==========
    cleaned = strip_code_fences(response)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.debug(f"[JSON] 직접 파싱 실패: {e}")
        first_error = e

    # ========== 2단계: JSON 구조 추출 파싱 ==========
    block = _extract_json_block(cleaned)
    if block is not None:
        try:
            return json.loads(block)
        except json.JSONDecodeError as e2:
            logger.debug(f"[JSON] 추출 파싱 실패: {e2}")

    # ========== 3단계: 최종 실패 ==========
    raise ValueError(f"Failed to parse JSON response: {first_error}")


def parse_json_object(response: str) -> dict:
    """JSON 객체(dict)만 허용하는 파서."""
    result = parse_json_response(response)
    if not isinstance(result, dict):
        raise ValueError(f"Expected JSON object, got {type(result).__name__}")
    return result
