"""
Tests for parsing Slack replies into check-ins, and for the reminder text that documents the format.
"""
import pytest

from standup_pulse.messages import EXAMPLE, confirmation_message, help_message, reminder_message
from standup_pulse.parser import ParsedCheckIn, parse_checkin


class TestParseCheckin:
    def test_full_reply(self):
        assert parse_checkin("1. A\n2. B\n3. C\n4. 3") == ParsedCheckIn("A", "B", "C", 3)

    def test_missing_blockers_become_none_sentinel(self):
        parsed = parse_checkin("1. A\n2. B\n4. 3")
        assert parsed is not None
        assert parsed.blockers == "None"

    def test_empty_blockers_become_none_sentinel(self):
        assert parse_checkin("1. A\n2. B\n3. \n4. 3").blockers == "None"

    @pytest.mark.parametrize("score_line", ["4. 7", "4. 0", "4. x", "4. 7/5", "4. "])
    def test_invalid_score_rejected(self, score_line):
        assert parse_checkin(f"1. A\n2. B\n3. C\n{score_line}") is None

    @pytest.mark.parametrize(
        "score_line, expected", [("4. 4/5", 4), ("4. 3 - meh", 3), ("4. 3.5", 3)]
    )
    def test_score_reads_leading_integer(self, score_line, expected):
        assert parse_checkin(f"1. A\n2. B\n{score_line}").score == expected

    @pytest.mark.parametrize("score", [1, 5])
    def test_score_bounds_inclusive(self, score):
        assert parse_checkin(f"1. A\n2. B\n4. {score}").score == score

    @pytest.mark.parametrize(
        "text",
        [
            "2. B\n3. C\n4. 3",
            "1. A\n3. C\n4. 3",
            "1. A\n2. B\n3. C",
            "1. \n2. B\n4. 3",
            "",
            None,
            "just some chatter",
        ],
    )
    def test_missing_required_items_rejected(self, text):
        assert parse_checkin(text) is None

    def test_order_of_items_does_not_matter(self):
        assert parse_checkin("4. 2\n2. next\n1. done") == ParsedCheckIn("done", "next", "None", 2)

    def test_whitespace_and_blank_lines_are_trimmed(self):
        text = "\n   1.   Shipped the API   \n\n  2. Tests\n\t3. Waiting on review\n 4. 5  \n"
        assert parse_checkin(text) == ParsedCheckIn("Shipped the API", "Tests", "Waiting on review", 5)

    def test_first_line_for_a_number_wins(self):
        parsed = parse_checkin("1. first\n1. second\n2. B\n4. 4")
        assert parsed.worked_on == "first"

    def test_prefix_needs_a_space(self):
        assert parse_checkin("1.A\n2. B\n4. 3") is None

    def test_numbers_outside_one_to_four_ignored(self):
        assert parse_checkin("1. A\n2. B\n5. extra\n4. 3") == ParsedCheckIn("A", "B", "None", 3)


class TestMessages:
    def test_reminder_example_is_a_valid_reply(self):
        assert parse_checkin(EXAMPLE) == ParsedCheckIn(
            "Fixed the login bug", "Dashboard redesign", "None", 4
        )

    def test_reminder_mentions_team_and_example(self):
        message = reminder_message("Platform")
        assert message["text"] == "Time for your daily standup with Platform!"
        assert "Platform Standup" in message["blocks"][0]["text"]["text"]
        assert EXAMPLE in message["blocks"][2]["elements"][0]["text"]

    def test_reminder_lists_all_four_items(self):
        section = reminder_message("Platform")["blocks"][1]["text"]["text"]
        for number in range(1, 5):
            assert f"*{number}.*" in section

    def test_help_message_contains_example(self):
        assert EXAMPLE in help_message()["text"]

    def test_confirmation_shows_score(self):
        assert confirmation_message(4)["text"] == "✅ Standup recorded! Score: 4/5"
