"""Prompts for the proposal email draft."""

EMAIL_PROMPT = """You are a senior account manager writing a short proposal email to a client.

PROJECT: {{title}}
CLIENT NAME: {{client_name}}
SELECTED SCENARIO:
{{scenario}}

LINKS
- Proposal: {{proposal_url}}
- Presentation: {{presentation_url}}

CLIENT'S ORIGINAL REQUEST (for tone and context only):
{{raw_input}}

Write a warm, concise email (under 200 words) that:
- thanks the client and summarizes the recommended approach in one or two sentences,
- states the investment and timeline from the selected scenario exactly as given,
- links the proposal,
- proposes a short call as the next step.

The FIRST line must be "Subject: <subject line>", followed by a blank line and the body.
Return only the email text."""
