"""유틸리티 모듈."""

from .validation import (
    validate_raw_input,
    validate_email,
    validate_budget,
    validate_attachment,
)
from .json_parsing import parse_json_response, parse_json_object, strip_code_fences

__all__ = [
    "validate_raw_input",
    "validate_email",
    "validate_budget",
    "validate_attachment",
    "parse_json_response",
    "parse_json_object",
    "strip_code_fences",
]
