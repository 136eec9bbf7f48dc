"""Outbound Slack message templates.

The reminder text documents the reply format ``parse_checkin`` accepts, so
the numbered items and the example here have to stay in step with it.
"""

from __future__ import annotations

from typing import Any, Dict, List

INSTRUCTIONS = (
    "*1.* What you worked on\n"
    "*2.* What's next\n"
    '*3.* Blockers (or "none")\n'
    "*4.* Score (1-5)"
)
PLAIN_INSTRUCTIONS = (
    "1. What you worked on\n"
    "2. What's next\n"
    '3. Blockers (or "none")\n'
    "4. Score (1-5)"
)
EXAMPLE = "1. Fixed the login bug\n2. Dashboard redesign\n3. None\n4. 4"


def reminder_message(team_name: str) -> Dict[str, Any]:
    blocks: List[Dict[str, Any]] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": f"\U0001F3C1 {team_name} Standup"},
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": "Reply to this message with your standup update in this format:\n\n" + INSTRUCTIONS,
            },
        },
        {
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": f"Example: ```{EXAMPLE}```"}],
        },
    ]
    return {"text": f"Time for your daily standup with {team_name}!", "blocks": blocks}


def help_message() -> Dict[str, Any]:
    return {
        "text": (
            "❌ Invalid format. Please reply with:\n\n"
            f"{PLAIN_INSTRUCTIONS}\n\nExample:\n```{EXAMPLE}```"
        )
    }


def confirmation_message(score: int) -> Dict[str, Any]:
    return {
        "text": f"✅ Standup recorded! Score: {score}/5",
        "blocks": [
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": (
                        f"✅ *Standup recorded!*\n\nScore: *{score}/5*\n"
                        "Your team can see this on the dashboard."
                    ),
                },
            }
        ],
    }


__all__ = ["EXAMPLE", "reminder_message", "help_message", "confirmation_message"]
