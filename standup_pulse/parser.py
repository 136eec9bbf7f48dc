"""Parse free-text Slack replies into structured check-ins."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional

ITEM_PATTERN = re.compile(r"^([1-4])\.\s+(.*)$")
SCORE_PATTERN = re.compile(r"\s*([+-]?\d+)")
NO_BLOCKERS = "None"
MIN_SCORE = 1
MAX_SCORE = 5


@dataclass(slots=True)
class ParsedCheckIn:
    worked_on: str
    working_next: str
    blockers: str
    score: int

    def as_fields(self) -> Dict[str, object]:
        return {
            "worked_on": self.worked_on,
            "working_next": self.working_next,
            "blockers": self.blockers,
            "score": self.score,
        }


def _parse_score(value: Optional[str]) -> Optional[int]:
    """Read the leading integer, so "4/5" and "3 - meh" still count."""

    match = SCORE_PATTERN.match(value or "")
    if not match:
        return None
    score = int(match.group(1))
    if score < MIN_SCORE or score > MAX_SCORE:
        return None
    return score


def parse_checkin(text: Optional[str]) -> Optional[ParsedCheckIn]:
    """Return the check-in in ``text``, or None when it should get the help reply.

    Items are matched by their numeric prefix, not their position, and the
    first line carrying a given number wins.
    """

    if not text:
        return None

    items: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        match = ITEM_PATTERN.match(line)
        if match and match.group(1) not in items:
            items[match.group(1)] = match.group(2).strip()

    worked_on = items.get("1")
    working_next = items.get("2")
    score = _parse_score(items.get("4"))
    if not worked_on or not working_next or score is None:
        return None

    return ParsedCheckIn(
        worked_on=worked_on,
        working_next=working_next,
        blockers=items.get("3") or NO_BLOCKERS,
        score=score,
    )


__all__ = ["ParsedCheckIn", "parse_checkin", "NO_BLOCKERS"]
