"""Prompts for dual-scenario estimate and market research."""

ESTIMATE_PROMPT = """You are a Lead AI Solutions Architect preparing a dual-scenario cost estimate.

SCENARIO A (High-Tech / Custom): senior engineering rates (around $150/hr), full code ownership, scalable.
SCENARIO B (No-Code / MVP): low-code or no-code platforms (around $75/hr), faster delivery, platform limits.

PROJECT
- Title: {{title}}
- Region: {{region}}
- Brief:
{{brief}}

CLIENT REQUEST:
{{raw_input}}

BUDGET CONSTRAINT:
{{budget_instructions}}

MARKET RESEARCH (may be empty):
{{research}}

PREVIOUSLY APPROVED ESTIMATES (reference only, most recent first):
{{knowledge_context}}

Return ONLY a JSON object with this structure:
{
  "scenario_a": {
    "name": "High-Tech Custom",
    "description": "...",
    "features": ["..."],
    "tech_stack": ["..."],
    "timeline": "12 weeks",
    "total_cost": 45000,
    "hourly_rate": 150,
    "total_hours": 300,
    "pros": ["..."],
    "cons": ["..."],
    "recommended": true
  },
  "scenario_b": { "...same fields...": "" },
  "roi_analysis": {
    "cost_of_doing_nothing": 0,
    "manual_operational_cost": 0,
    "projected_savings": 0,
    "payback_period_months": 0,
    "three_year_roi": 0,
    "methodology": "How the figures were derived"
  }
}"""

BUDGET_CONSTRAINED_INSTRUCTIONS = """The client's maximum budget is ${budget:,.0f} USD.
Both scenarios MUST fit within this budget. Reduce scope or phase delivery to stay within it.
If a scenario genuinely cannot be delivered within the budget, still return your honest total_cost
and explain the gap in its description."""

NO_BUDGET_INSTRUCTIONS = "No budget was specified. Estimate the scope as described."

RESEARCH_PROMPT = """Research the following software project and provide factual, sourced information.

PROJECT
- Title: {{title}}
- Region: {{region}}
- Mission: {{mission}}

CLIENT REQUEST:
{{raw_input}}

Provide, in markdown:
1. COMPETITOR PRICING: typical agency, consultant and freelancer prices for similar projects, with sources.
2. TIME BENCHMARK: effort without AI tooling compared to AI-assisted delivery.
3. ROI ANALYSIS: typical business impact of having vs. not having this kind of solution.
4. INDUSTRY VALIDATION: one real, verifiable quote from an industry leader, with its source.

Be specific with numbers and cite your sources. Start with a "# Market Research" heading."""
