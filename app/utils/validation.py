"""입력 유효성 검증 유틸리티.

프로바이더를 호출하기 전에 필수 입력값을 검사합니다.
여기서 발생한 ValidationError는 AI 재시도 없이 호출자에게 바로 전달됩니다.
"""

import re
from typing import Optional
from urllib.parse import urlparse

from app.config import get_settings
from app.exceptions import ValidationError


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# 첨부 파일로 허용되는 MIME 타입 접두어
ALLOWED_MIME_PREFIXES = (
    "text/",
    "image/",
    "application/pdf",
    "application/json",
    "application/vnd.openxmlformats-officedocument",
    "application/msword",
    "application/vnd.ms-excel",
    "application/vnd.ms-powerpoint",
)


def validate_raw_input(raw_input: str) -> str:
    """
    프로젝트 원본 입력 검증.

    Returns:
        앞뒤 공백을 제거한 입력

    Raises:
        ValidationError: 비어 있거나 길이 제한 초과
    """
    settings = get_settings()

    if raw_input is None or not raw_input.strip():
        raise ValidationError("프로젝트 설명이 비어있습니다")

    cleaned = raw_input.strip()
    if len(cleaned) > settings.max_raw_input_chars:
        raise ValidationError(
            f"프로젝트 설명이 너무 깁니다 (최대 {settings.max_raw_input_chars}자)",
            details={"length": len(cleaned), "max_length": settings.max_raw_input_chars},
        )
    return cleaned


def validate_email(email: Optional[str], field: str = "client_email") -> str:
    """
    이메일 주소 검증.

    Raises:
        ValidationError: 누락 또는 형식 오류
    """
    if not email or not email.strip():
        raise ValidationError(
            "고객 이메일 주소가 필요합니다",
            details={"field": field},
        )

    cleaned = email.strip()
    if not EMAIL_PATTERN.match(cleaned):
        raise ValidationError(
            f"잘못된 이메일 형식입니다: {cleaned}",
            details={"field": field, "value": cleaned},
        )
    return cleaned


def validate_budget(budget: Optional[float]) -> Optional[float]:
    """예산 검증. 음수나 0은 허용하지 않습니다."""
    if budget is None:
        return None
    if budget <= 0:
        raise ValidationError(
            "예산은 0보다 커야 합니다",
            details={"field": "budget", "value": budget},
        )
    return float(budget)


# "$20k", "1.5M", "45,000 - 60,000 USD" 같은 자유 형식 예산 표기
BUDGET_AMOUNT_PATTERN = re.compile(
    r"(\d[\d,]*(?:\.\d+)?)\s*(k|thousand|mm|million|m)?\b",
    re.IGNORECASE,
)

BUDGET_MULTIPLIERS = {
    "k": 1_000,
    "thousand": 1_000,
    "m": 1_000_000,
    "mm": 1_000_000,
    "million": 1_000_000,
}


def parse_budget_text(value: Optional[str]) -> Optional[float]:
    """
    자유 형식 예산 문자열을 금액으로 변환합니다.
    범위("$45,000-$60,000")는 상한을 사용하고, 금액을 찾지 못하면 None을 반환합니다.
    """
    if not value:
        return None

    amounts = []
    for number, suffix in BUDGET_AMOUNT_PATTERN.findall(str(value)):
        try:
            amount = float(number.replace(",", ""))
        except ValueError:
            continue
        if suffix:
            amount *= BUDGET_MULTIPLIERS[suffix.lower()]
        amounts.append(amount)

    if not amounts or max(amounts) <= 0:
        return None
    return max(amounts)


def validate_attachment(
    filename: str,
    mime_type: str,
    size: int,
    url: str,
    existing_count: int = 0,
) -> None:
    """
    첨부 파일 메타데이터 검증.
    파일 내용은 외부 저장소에 있으므로 메타데이터만 확인합니다.

    Raises:
        ValidationError: 형식/크기/개수 제한 위반
    """
    settings = get_settings()

    if not filename or not filename.strip():
        raise ValidationError("파일명이 비어있습니다")

    if not mime_type or not mime_type.startswith(ALLOWED_MIME_PREFIXES):
        raise ValidationError(
            f"허용되지 않는 파일 형식입니다: {mime_type}",
            details={"mime_type": mime_type},
        )

    max_bytes = settings.max_attachment_size_mb * 1024 * 1024
    if size < 0 or size > max_bytes:
        raise ValidationError(
            f"파일 크기가 제한을 초과했습니다 (최대 {settings.max_attachment_size_mb}MB)",
            details={"size_bytes": size, "max_size_bytes": max_bytes},
        )

    parsed = urlparse(url or "")
    if not (parsed.scheme in ("http", "https") and parsed.netloc) and not url.startswith("/"):
        raise ValidationError(
            "첨부 파일 URL이 올바르지 않습니다",
            details={"url": url},
        )

    if existing_count >= settings.max_attachments_per_project:
        raise ValidationError(
            f"첨부 가능한 최대 파일 수를 초과했습니다 (최대 {settings.max_attachments_per_project}개)",
            details={"count": existing_count, "max_count": settings.max_attachments_per_project},
        )
