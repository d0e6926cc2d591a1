"""Prompt templates for fleet overview generation and MCP prompts."""

import json
from typing import Any

FLEET_OVERVIEW_SYSTEM_PROMPT = (
    "You are the Chrome Enterprise Premium assistant (CEP assistant), a knowledgeable "
    "Chrome Enterprise Premium expert who helps IT admins secure and manage their browser "
    "fleet. You're direct, helpful, and focused on actionable insights. Write like a human "
    "in a chat: smooth, conversational, and concise. Never be generic, robotic, or listy."
)

_OUTPUT_REQUIREMENTS = """## Output Requirements

### Headline
Write a single welcoming sentence as a light check-in. Keep it under 15 words. Do NOT include
emails, domains, or URLs. Keep it calm, high-level, and non-alarmist. Examples:
- "Welcome back. Here's a quick fleet check-in."
- "You're set to review a few key fleet highlights."

### Summary
Write 2-3 sentences as a single paragraph. Make it conversational and actionable. Avoid colons,
parentheses, and bullet-like phrasing. Explain what matters and what the admin can do next
(e.g., "I can help you set up connector policies"). Do NOT include emails, domains, or URLs.
If `eventSampled` is true, do NOT claim a full total; describe it as a sample.

### Posture Cards (generate 3-5 cards, prioritized by importance)
1. **DLP Coverage**: Are DLP rules configured? How many?
2. **Event Monitoring**: Are Chrome events being captured? Use `eventWindowLabel`, `eventCount`,
   `blockedEventCount`, and `eventSampled` to make the value meaningful.
3. **Connector Policies**: Are data connectors configured?
4. **Browser Security**: Cookie encryption, incognito mode, Safe Browsing status (infer from
   connector policies if available).

For each card:
- `label`: Clear, human name (e.g., "Data Protection Rules", "Security Events")
- `value`: The metric (e.g., "50 rules", "Last 15 days: 120+ events (sampled)", "Not configured")
- `note`: Contextual, human-readable insight, not a date
- `status`: "healthy", "warning", "critical", or "info"
- `progress`: Optional 0-100 percentage if applicable
- `priority`: 1-10 (1=most important)
- `action`: Command to run when clicked (e.g., "List data protection rules")
- `lastUpdated`: ISO timestamp if available

### Suggestions (generate 2-4 actionable suggestions based on gaps)
Each suggestion must have:
- `text`: Short button label (3-5 words, imperative verb), e.g. "Create a DLP rule"
- `action`: The command to execute (one sentence max)
- `priority`: 1-10 (1=most urgent)
- `category`: "security", "compliance", "monitoring", or "optimization"
Do NOT include emails, domains, or URLs in suggestions. Be specific about what action to take.

### Sources
List the actual API sources used: "Admin SDK Reports", "Cloud Identity", "Chrome Policy"
"""


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def build_fleet_overview_prompt(
    facts: dict[str, Any],
    context: dict[str, Any],
    knowledge: dict[str, Any],
) -> str:
    """
    Build the user prompt for fleet overview generation.

    Args:
        facts: Serialized FleetFacts
        context: Raw per-source payloads
        knowledge: Serialized knowledge context

    Returns:
        Prompt text
    """
    return (
        "Analyze this Chrome Enterprise fleet data and generate a compelling overview.\n\n"
        f"## Fleet Facts\n{_dump(facts)}\n\n"
        f"## Raw API Data\n{_dump(context)}\n\n"
        f"## Knowledge Context\n{_dump(knowledge)}\n\n"
        f"{_OUTPUT_REQUIREMENTS}"
    )


# MCP prompt definitions
PROMPTS = {
    "fleet_checkin": {
        "description": "Quick Chrome fleet security check-in with rendering instructions",
        "arguments": [{"name": "focus", "required": False}],
    },
}


def get_prompt(name: str, arguments: dict[str, str]) -> dict[str, Any] | None:
    """
    Get a prompt by name with arguments filled in.

    Returns dict with 'messages' key for MCP GetPromptResult.
    """
    if name not in PROMPTS:
        return None

    focus = arguments.get("focus", "").strip()
    knowledge_arg = f', knowledge_query="{focus}"' if focus else ""
    return {
        "messages": [
            {
                "role": "user",
                "content": f"""Give me a check-in on my Chrome fleet.

1. Call get_fleet_overview(max_events=50{knowledge_arg}).
2. Render the headline as a single sentence, then the summary paragraph verbatim.
3. Render each posture card as: label, value, note, with the status as a colored marker
   (healthy=green, warning=yellow, critical=red, info=blue). Sort cards by priority.
4. Render suggestions as buttons ordered by priority; clicking one runs its `action`.
5. If meta.narrative_source is "fallback", do not mention it; the data is still accurate.
6. Never invent counts that are not in the response.""",
            }
        ]
    }
