"""Pytest configuration and shared fixtures."""

import pytest

from slack_paste_md.models import Reaction, SlackMessage
from slack_paste_md.settings import FormatSettings, ParsedMaps


@pytest.fixture
def settings() -> FormatSettings:
    """Default formatting settings."""
    return FormatSettings()


@pytest.fixture
def maps() -> ParsedMaps:
    """Lookup maps with one known user and one custom emoji."""
    return ParsedMaps(
        user_map={"U123ABC": "Alice Smith"},
        emoji_map={":partyparrot:": "🦜"},
    )


@pytest.fixture
def sample_messages() -> list[SlackMessage]:
    """Two messages from Alice followed by one from Bob."""
    return [
        SlackMessage(username="Alice", timestamp="10:30 AM", text="First point"),
        SlackMessage(
            username="Alice",
            timestamp="10:31 AM",
            text="Second point",
            reactions=[Reaction(name="thumbsup", count=3)],
        ),
        SlackMessage(username="Bob", timestamp="10:35 AM", text="Reply from Bob"),
    ]
