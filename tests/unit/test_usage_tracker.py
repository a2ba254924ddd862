"""UsageTracker unit tests."""

import pytest

from app.services.usage_tracker import calculate_cost, estimate_tokens, get_rate


class TestRates:

    def test_estimate_tokens(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens(None) == 0
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2

    def test_known_model_rate(self):
        assert get_rate("openai", "gpt-4o") == {"input": 2.5, "output": 10.0}

    def test_unknown_model_uses_default_row(self):
        assert get_rate("openai", "gpt-unknown") == get_rate("openai", "default")

    def test_unknown_provider_costs_nothing(self):
        assert calculate_cost("fake", "fake-model", 1000, 1000) == 0.0

    def test_calculate_cost(self):
        # 1M input * 2.5 + 0.5M output * 10.0
        assert calculate_cost("openai", "gpt-4o", 1_000_000, 500_000) == pytest.approx(7.5)


class TestSummaries:

    @pytest.mark.asyncio
    async def test_empty_project_summary_is_zeroed(self, usage_tracker):
        summary = await usage_tracker.summarize_project("nothing")

        assert summary.project_id == "nothing"
        assert summary.total_calls == 0
        assert summary.total_tokens == 0
        assert summary.total_cost_usd == 0.0
        assert summary.by_provider == []

    @pytest.mark.asyncio
    async def test_record_computes_totals_and_cost(self, usage_tracker):
        record = await usage_tracker.record("p1", "openai", "gpt-4o", "estimate", 1000, 500, latency_ms=120)

        assert record.total_tokens == 1500
        assert record.cost_usd == calculate_cost("openai", "gpt-4o", 1000, 500)
        assert record.success is True

    @pytest.mark.asyncio
    async def test_summaries_group_by_provider(self, usage_tracker):
        await usage_tracker.record("p1", "openai", "gpt-4o", "estimate", 100, 50)
        await usage_tracker.record("p1", "gemini", "gemini-2.5-flash", "chat", 10, 5, success=False)
        await usage_tracker.record("p2", "openai", "gpt-4o", "chat", 200, 100)

        project = await usage_tracker.summarize_project("p1")
        overall = await usage_tracker.summarize_by_provider()

        assert project.total_calls == 2
        assert project.failed_calls == 1
        assert [u.provider for u in project.by_provider] == ["gemini", "openai"]

        assert overall.total_calls == 3
        openai = next(u for u in overall.by_provider if u.provider == "openai")
        assert openai.calls == 2
        assert openai.total_tokens == 450
