"""Validation utility unit tests."""

import pytest

from app.exceptions import ValidationError
from app.utils.validation import (
    parse_budget_text,
    validate_attachment,
    validate_budget,
    validate_email,
    validate_raw_input,
)


class TestRawInput:

    def test_strips_whitespace(self):
        assert validate_raw_input("  build a CRM  ") == "build a CRM"

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_empty_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_raw_input(value)

    def test_too_long_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_raw_input("x" * 50_001)
        assert exc_info.value.details["max_length"] == 50_000


class TestEmail:

    def test_valid(self):
        assert validate_email(" ops@acme.test ") == "ops@acme.test"

    def test_missing(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_email(None)
        assert exc_info.value.details == {"field": "client_email"}

    @pytest.mark.parametrize("value", ["no-at-sign", "a@b", "a b@c.d"])
    def test_malformed(self, value):
        with pytest.raises(ValidationError):
            validate_email(value)


class TestBudget:

    def test_none_passes(self):
        assert validate_budget(None) is None

    def test_positive(self):
        assert validate_budget(20000) == 20000.0

    @pytest.mark.parametrize("value", [0, -100])
    def test_non_positive_rejected(self, value):
        with pytest.raises(ValidationError):
            validate_budget(value)


class TestBudgetText:

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("$20k", 20_000),
            ("20K USD", 20_000),
            ("1.5M", 1_500_000),
            ("2 million dollars", 2_000_000),
            ("$45,000-$60,000", 60_000),
            ("between 30k and 50k", 50_000),
            ("12000", 12_000),
        ],
    )
    def test_parses_amounts(self, text, expected):
        assert parse_budget_text(text) == expected

    @pytest.mark.parametrize("text", ["TBD", "", None, "$0"])
    def test_unparseable_is_none(self, text):
        assert parse_budget_text(text) is None


class TestAttachment:

    def test_valid(self):
        validate_attachment("brief.pdf", "application/pdf", 1024, "https://files.test/brief.pdf")
        validate_attachment("notes.txt", "text/plain", 10, "/uploads/notes.txt")

    def test_disallowed_mime(self):
        with pytest.raises(ValidationError):
            validate_attachment("run.exe", "application/x-msdownload", 10, "https://files.test/run.exe")

    def test_too_large(self):
        with pytest.raises(ValidationError):
            validate_attachment("big.pdf", "application/pdf", 26 * 1024 * 1024, "https://files.test/big.pdf")

    def test_bad_url(self):
        with pytest.raises(ValidationError):
            validate_attachment("a.pdf", "application/pdf", 10, "ftp://files.test/a.pdf")

    def test_too_many(self):
        with pytest.raises(ValidationError):
            validate_attachment("a.pdf", "application/pdf", 10, "/a.pdf", existing_count=20)
