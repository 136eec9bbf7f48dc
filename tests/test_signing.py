"""
Tests for Slack request signature verification.
"""
import pytest

from standup_pulse.signing import compute_signature, verify_signature

SECRET = "8f742231b10e8888abcd99yyyzzz85a5"
BODY = b'{"type":"event_callback","event":{"type":"message","user":"U1","text":"hi"}}'
TIMESTAMP = "1760868000"
NOW = 1760868000.0


@pytest.fixture
def signature():
    return compute_signature(SECRET, TIMESTAMP, BODY)


def test_signature_format(signature):
    assert signature.startswith("v0=")
    assert len(signature) == len("v0=") + 64


def test_valid_signature_verifies(signature):
    assert verify_signature(SECRET, BODY, TIMESTAMP, signature, now=NOW) is True


def test_str_and_bytes_bodies_agree(signature):
    assert verify_signature(SECRET, BODY.decode(), TIMESTAMP, signature, now=NOW) is True


def test_known_vector():
    # Example from Slack's request-signing documentation.
    body = (
        "token=xyzz0WbapA4vBCDEFasx0q6G&team_id=T1DC2JH3J&team_domain=testteamnow"
        "&channel_id=G8PSS9T3V&channel_name=foobar&user_id=U2CERLKJA&user_name=roadrunner"
        "&command=%2Fwebhook-collect&text=&response_url=https%3A%2F%2Fhooks.slack.com"
        "%2Fcommands%2FT1DC2JH3J%2F397700885554%2F96rGlfmibIGlgcZRskXaIFfN"
        "&trigger_id=398738663015.47445629121.803a0bc887a14d10d2c447fce8b6703c"
    )
    expected = "v0=a2114d57b48eac39b9ad189dd8316235a7b4a8d21a10bd27519666489c69b503"
    assert verify_signature(SECRET, body, "1531420618", expected, now=1531420618) is True


@pytest.mark.parametrize("position", [3, 10, 40, 66])
def test_any_single_character_change_in_signature_fails(signature, position):
    replacement = "0" if signature[position] != "0" else "1"
    mutated = signature[:position] + replacement + signature[position + 1:]
    assert verify_signature(SECRET, BODY, TIMESTAMP, mutated, now=NOW) is False


def test_any_body_change_fails(signature):
    mutated = BODY.replace(b"hi", b"ho")
    assert verify_signature(SECRET, mutated, TIMESTAMP, signature, now=NOW) is False


def test_wrong_secret_fails(signature):
    assert verify_signature("another-secret", BODY, TIMESTAMP, signature, now=NOW) is False


def test_stale_timestamp_fails_even_when_signed_correctly():
    stale = str(int(NOW) - 301)
    signature = compute_signature(SECRET, stale, BODY)
    assert verify_signature(SECRET, BODY, stale, signature, now=NOW) is False


def test_timestamp_at_the_edge_of_the_window_passes():
    edge = str(int(NOW) - 300)
    signature = compute_signature(SECRET, edge, BODY)
    assert verify_signature(SECRET, BODY, edge, signature, now=NOW) is True


def test_far_future_timestamp_fails():
    future = str(int(NOW) + 301)
    signature = compute_signature(SECRET, future, BODY)
    assert verify_signature(SECRET, BODY, future, signature, now=NOW) is False


@pytest.mark.parametrize(
    "timestamp, provided",
    [(None, "v0=abc"), ("", "v0=abc"), ("not-a-number", "v0=abc"), (TIMESTAMP, None), (TIMESTAMP, "v0=short")],
)
def test_missing_or_malformed_inputs_return_false(timestamp, provided):
    assert verify_signature(SECRET, BODY, timestamp, provided, now=NOW) is False
