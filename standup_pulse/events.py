"""Typed view of the Slack Events API envelope.

Raw webhook JSON is converted into one of the event classes below before any
business logic sees it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Union


class MalformedEnvelope(ValueError):
    """Raised when a verified payload does not look like a Slack envelope."""


@dataclass(frozen=True, slots=True)
class UrlVerification:
    challenge: str


@dataclass(frozen=True, slots=True)
class MessageEvent:
    user: str
    text: str
    channel: str


@dataclass(frozen=True, slots=True)
class IgnoredEvent:
    reason: str


InboundEvent = Union[UrlVerification, MessageEvent, IgnoredEvent]

# Edits, bot echoes and thread replies carry one of these keys.
IGNORED_MARKERS = ("bot_id", "subtype", "thread_ts")


def parse_envelope(payload: Any) -> InboundEvent:
    if not isinstance(payload, Mapping):
        raise MalformedEnvelope("payload is not an object")

    kind = payload.get("type")
    if kind == "url_verification":
        challenge = payload.get("challenge")
        if not isinstance(challenge, str):
            raise MalformedEnvelope("url_verification without a challenge")
        return UrlVerification(challenge=challenge)

    if kind != "event_callback":
        return IgnoredEvent(reason=f"envelope type {kind!r}")

    event = payload.get("event")
    if not isinstance(event, Mapping):
        raise MalformedEnvelope("event_callback without an event")
    if event.get("type") != "message":
        return IgnoredEvent(reason=f"event type {event.get('type')!r}")
    for marker in IGNORED_MARKERS:
        if event.get(marker):
            return IgnoredEvent(reason=f"message with {marker}")

    user = event.get("user")
    channel = event.get("channel")
    if not isinstance(user, str) or not user or not isinstance(channel, str) or not channel:
        raise MalformedEnvelope("message event without user or channel")
    text = event.get("text")
    return MessageEvent(user=user, text=text if isinstance(text, str) else "", channel=channel)


__all__ = [
    "MalformedEnvelope",
    "UrlVerification",
    "MessageEvent",
    "IgnoredEvent",
    "InboundEvent",
    "parse_envelope",
]
